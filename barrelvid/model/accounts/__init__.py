# model/accounts/__init__.py
import os
from typing import Optional, Callable, AsyncContextManager
from sqlalchemy.ext.asyncio import AsyncSession

from ..memdb import MemoryDB

Gated = Callable[[], AsyncContextManager[None]]

BACKEND = os.getenv("STORE_BACKEND", "memory").lower()  # 'memory' | 'sql'

if BACKEND == "sql":
    from ._sql import AccountStore as _AccountStore
else:
    from ._memory import AccountStore as _AccountStore


def new_store(*, db: Optional[AsyncSession] = None,
              mem: Optional[MemoryDB] = None,
              gated: Gated = None):
    if BACKEND == "sql":
        if db is None or gated is None:
            raise RuntimeError(
                "AccountStore(sql) requires db=AsyncSession and gated=Gated"
            )
        return _AccountStore(db=db, gated=gated)
    else:
        if mem is None:
            raise RuntimeError("AccountStore(memory) requires mem=MemoryDB")
        return _AccountStore(mem=mem)


AccountStore = _AccountStore
__all__ = ["AccountStore", "new_store", "BACKEND"]
