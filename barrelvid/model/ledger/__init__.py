# model/ledger/__init__.py
import os
from typing import Optional, Callable, AsyncContextManager, Iterable, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession

from ..memdb import MemoryDB
from ..orm import Event

Gated = Callable[[], AsyncContextManager[None]]

BACKEND = os.getenv("STORE_BACKEND", "memory").lower()  # 'memory' | 'sql'

# revenue on the sales dashboard is counted at a flat rate, not per rider
SALE_PRICE = 80

if BACKEND == "sql":
    from ._sql import Ledger as _Ledger
else:
    from ._memory import Ledger as _Ledger


def new_ledger(*, db: Optional[AsyncSession] = None,
               mem: Optional[MemoryDB] = None,
               gated: Gated = None):
    if BACKEND == "sql":
        if db is None:
            raise RuntimeError("Ledger(sql) requires db=AsyncSession")
        if gated is None:
            raise RuntimeError("Ledger(sql) requires gated=Gated")
        return _Ledger(db=db, gated=gated)
    else:
        if mem is None:
            raise RuntimeError("Ledger(memory) requires mem=MemoryDB")
        return _Ledger(mem=mem)


async def sales_summary(ledger, events: Iterable[Event]) -> List[Dict[str, Any]]:
    out = []
    for ev in events:
        count = await ledger.sales_count_for_event(ev.id)
        out.append({
            "eventId": ev.id,
            "eventName": ev.name,
            "salesCount": count,
            "revenue": count * SALE_PRICE,
        })
    return out


Ledger = _Ledger
__all__ = ["Ledger", "new_ledger", "sales_summary", "SALE_PRICE", "BACKEND"]
