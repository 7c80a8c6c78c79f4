# model/catalog/__init__.py
import os
from typing import Optional, Callable, AsyncContextManager
from sqlalchemy.ext.asyncio import AsyncSession

from ..memdb import MemoryDB

Gated = Callable[[], AsyncContextManager[None]]

BACKEND = os.getenv("STORE_BACKEND", "memory").lower()  # 'memory' | 'sql'

if BACKEND == "sql":
    from ._sql import CatalogStore as _CatalogStore
else:
    from ._memory import CatalogStore as _CatalogStore


# Factory keeps server.py simple and constructor-agnostic:
def new_store(*, db: Optional[AsyncSession] = None,
              mem: Optional[MemoryDB] = None,
              gated: Gated = None):
    if BACKEND == "sql":
        if db is None:
            raise RuntimeError("CatalogStore(sql) requires db=AsyncSession")
        if gated is None:
            raise RuntimeError("CatalogStore(sql) requires gated=Gated")
        return _CatalogStore(db=db, gated=gated)
    else:
        if mem is None:
            raise RuntimeError("CatalogStore(memory) requires mem=MemoryDB")
        return _CatalogStore(mem=mem)


CatalogStore = _CatalogStore
__all__ = ["CatalogStore", "new_store", "BACKEND"]
