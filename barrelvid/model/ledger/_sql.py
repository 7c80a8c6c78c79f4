from __future__ import annotations
from typing import Callable, AsyncContextManager, List

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ...helpers import utcnow, email_key
from ...infra.sql import storage_errors
from ..orm import Purchase, Rider

Gated = Callable[[], AsyncContextManager[None]]


class Ledger:
    def __init__(self, *, db: AsyncSession, gated: Gated) -> None:
        self.db = db
        self.gated = gated

    async def record_purchase(self, email: str, rider_id: int,
                              payment_method: str, amount: int) -> Purchase:
        async with storage_errors("creating purchase"), self.gated():
            async with self.db.begin():
                rider = await self.db.get(Rider, rider_id)
                purchase = Purchase(
                    email=email.strip(),
                    email_key=email_key(email),
                    rider_id=rider_id,
                    event_id=rider.event_id if rider is not None else None,
                    payment_method=payment_method,
                    amount=amount,
                    created_at=utcnow(),
                )
                self.db.add(purchase)
                await self.db.flush()
        return purchase

    async def is_entitled(self, email: str, rider_id: int) -> bool:
        async with storage_errors("checking purchase"), self.gated():
            async with self.db.begin():
                result = await self.db.execute(
                    select(Purchase.id)
                    .where(Purchase.email_key == email_key(email),
                           Purchase.rider_id == rider_id)
                    .limit(1)
                )
                return result.first() is not None

    async def purchases_by_email(self, email: str) -> List[Purchase]:
        async with storage_errors("fetching purchases"), self.gated():
            async with self.db.begin():
                result = await self.db.execute(
                    select(Purchase)
                    .where(Purchase.email_key == email_key(email))
                    .order_by(Purchase.id)
                )
                return list(result.scalars().all())

    async def sales_count_for_event(self, event_id: int) -> int:
        async with storage_errors("fetching sales data"), self.gated():
            async with self.db.begin():
                # current riders of the event, looked up on every call
                rider_ids = (await self.db.execute(
                    select(Rider.id).where(Rider.event_id == event_id)
                )).scalars().all()
                result = await self.db.execute(
                    select(func.count(Purchase.id)).where(or_(
                        Purchase.event_id == event_id,
                        Purchase.rider_id.in_(list(rider_ids)),
                    ))
                )
                return int(result.scalar_one())
