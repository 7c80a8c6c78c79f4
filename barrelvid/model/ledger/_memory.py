from __future__ import annotations
from typing import List

from ...helpers import utcnow, email_key
from ..memdb import MemoryDB
from ..orm import Purchase, Rider


class Ledger:
    def __init__(self, *, mem: MemoryDB) -> None:
        self.mem = mem

    async def record_purchase(self, email: str, rider_id: int,
                              payment_method: str, amount: int) -> Purchase:
        rider = self.mem.get(Rider, rider_id)
        return self.mem.insert(Purchase(
            email=email.strip(),
            email_key=email_key(email),
            rider_id=rider_id,
            event_id=rider.event_id if rider is not None else None,
            payment_method=payment_method,
            amount=amount,
            created_at=utcnow(),
        ))

    async def is_entitled(self, email: str, rider_id: int) -> bool:
        key = email_key(email)
        return any(
            p.email_key == key and p.rider_id == rider_id
            for p in self.mem.rows(Purchase)
        )

    async def purchases_by_email(self, email: str) -> List[Purchase]:
        key = email_key(email)
        return [p for p in self.mem.rows(Purchase) if p.email_key == key]

    async def sales_count_for_event(self, event_id: int) -> int:
        rider_ids = {
            r.id for r in self.mem.rows(Rider) if r.event_id == event_id
        }
        return sum(
            1 for p in self.mem.rows(Purchase)
            if p.event_id == event_id or p.rider_id in rider_ids
        )
