import os
from typing import Optional
import redis.asyncio as redis

from ._memory import MemorySessions

BACKEND = os.getenv("PAYSESSION_BACKEND", "memory").lower()  # 'memory' | 'redis'

if BACKEND == "redis":
    from ._redis import PaymentSessionStore as _PaymentSessionStore
else:
    from ._memory import PaymentSessionStore as _PaymentSessionStore


# Factory keeps server.py simple and constructor-agnostic:
def new_store(*, r: Optional[redis.Redis] = None,
              sessions: Optional[MemorySessions] = None,
              ttl_seconds: int = 300):
    if BACKEND == "redis":
        if r is None:
            raise RuntimeError(
                "PaymentSessionStore(redis) requires r=redis.Redis"
            )
        return _PaymentSessionStore(r=r, ttl_seconds=ttl_seconds)
    else:
        if sessions is None:
            raise RuntimeError(
                "PaymentSessionStore(memory) requires sessions=MemorySessions"
            )
        return _PaymentSessionStore(sessions=sessions, ttl_seconds=ttl_seconds)


PaymentSessionStore = _PaymentSessionStore
__all__ = ["PaymentSessionStore", "MemorySessions", "new_store", "BACKEND"]
