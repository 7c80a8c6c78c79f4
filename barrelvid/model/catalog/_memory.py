from __future__ import annotations
import logging
from typing import List, Optional

from ...errors import NotFoundError, StorageError
from ...helpers import utcnow
from ..memdb import MemoryDB
from ..orm import Event, Rider

logger = logging.getLogger(__name__)


class CatalogStore:
    def __init__(self, *, mem: MemoryDB) -> None:
        self.mem = mem

    # ---- events
    async def list_events(self) -> List[Event]:
        return list(self.mem.rows(Event))

    async def get_event(self, event_id: int) -> Optional[Event]:
        return self.mem.get(Event, event_id)

    async def create_event(self, *, name: str, date: str,
                           thumbnail_url: str) -> Event:
        return self.mem.insert(Event(
            name=name, date=date, thumbnail_url=thumbnail_url,
            created_at=utcnow(),
        ))

    async def delete_event(self, event_id: int) -> bool:
        if self.mem.get(Event, event_id) is None:
            return False
        for rider in await self.get_riders_by_event_id(event_id):
            self.mem.delete(Rider, rider.id)
        if not self.mem.delete(Event, event_id):
            # riders are gone already; report instead of pretending
            logger.error("event %s vanished while deleting its riders",
                         event_id)
            raise StorageError("Error deleting event")
        return True

    # ---- riders
    async def list_riders(self, event_id: Optional[int] = None) -> List[Rider]:
        riders = self.mem.rows(Rider)
        if event_id is None:
            return list(riders)
        return [r for r in riders if r.event_id == event_id]

    async def get_riders_by_event_id(self, event_id: int) -> List[Rider]:
        return await self.list_riders(event_id=event_id)

    async def get_rider(self, rider_id: int) -> Optional[Rider]:
        return self.mem.get(Rider, rider_id)

    async def create_rider(self, *, event_id: int, name: str, price: int,
                           video_url: str, thumbnail_url: str = "") -> Rider:
        if self.mem.get(Event, event_id) is None:
            raise NotFoundError("Event not found")
        return self.mem.insert(Rider(
            event_id=event_id, name=name, price=price, video_url=video_url,
            thumbnail_url=thumbnail_url or "", created_at=utcnow(),
        ))

    async def delete_rider(self, rider_id: int) -> bool:
        return self.mem.delete(Rider, rider_id)
