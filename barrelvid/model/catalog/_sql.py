from __future__ import annotations
from typing import Callable, AsyncContextManager, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ...errors import NotFoundError
from ...helpers import utcnow
from ...infra.sql import storage_errors
from ..orm import Event, Rider

Gated = Callable[[], AsyncContextManager[None]]


class CatalogStore:
    def __init__(self, *, db: AsyncSession, gated: Gated) -> None:
        self.db = db
        self.gated = gated

    # ---- events
    async def list_events(self) -> List[Event]:
        async with storage_errors("fetching events"), self.gated():
            async with self.db.begin():
                result = await self.db.execute(
                    select(Event).order_by(Event.id)
                )
                return list(result.scalars().all())

    async def get_event(self, event_id: int) -> Optional[Event]:
        async with storage_errors("fetching event"), self.gated():
            async with self.db.begin():
                return await self.db.get(Event, event_id)

    async def create_event(self, *, name: str, date: str,
                           thumbnail_url: str) -> Event:
        ev = Event(name=name, date=date, thumbnail_url=thumbnail_url,
                   created_at=utcnow())
        async with storage_errors("creating event"), self.gated():
            async with self.db.begin():
                self.db.add(ev)
                await self.db.flush()
        return ev

    async def delete_event(self, event_id: int) -> bool:
        """Delete an event and all of its riders in one transaction."""
        async with storage_errors("deleting event"), self.gated():
            async with self.db.begin():
                ev = await self.db.get(Event, event_id)
                if ev is None:
                    return False
                await self.db.execute(
                    delete(Rider).where(Rider.event_id == event_id)
                )
                await self.db.delete(ev)
        return True

    # ---- riders
    async def list_riders(self, event_id: Optional[int] = None) -> List[Rider]:
        q = select(Rider).order_by(Rider.id)
        if event_id is not None:
            q = q.where(Rider.event_id == event_id)
        async with storage_errors("fetching riders"), self.gated():
            async with self.db.begin():
                result = await self.db.execute(q)
                return list(result.scalars().all())

    async def get_riders_by_event_id(self, event_id: int) -> List[Rider]:
        return await self.list_riders(event_id=event_id)

    async def get_rider(self, rider_id: int) -> Optional[Rider]:
        async with storage_errors("fetching rider"), self.gated():
            async with self.db.begin():
                return await self.db.get(Rider, rider_id)

    async def create_rider(self, *, event_id: int, name: str, price: int,
                           video_url: str, thumbnail_url: str = "") -> Rider:
        rider = Rider(event_id=event_id, name=name, price=price,
                      video_url=video_url, thumbnail_url=thumbnail_url or "",
                      created_at=utcnow())
        async with storage_errors("creating rider"), self.gated():
            async with self.db.begin():
                if await self.db.get(Event, event_id) is None:
                    raise NotFoundError("Event not found")
                self.db.add(rider)
                await self.db.flush()
        return rider

    async def delete_rider(self, rider_id: int) -> bool:
        async with storage_errors("deleting rider"), self.gated():
            async with self.db.begin():
                result = await self.db.execute(
                    delete(Rider).where(Rider.id == rider_id)
                )
                return result.rowcount > 0
