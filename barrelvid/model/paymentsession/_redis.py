# pending wallet checkouts kept in redis
from __future__ import annotations
from typing import Optional, Dict, Any
import time
import redis.asyncio as redis


# ---- keys
def k_ps(psid: str) -> str: return f"ps:{psid}"
def k_fulfill(psid: str) -> str: return f"fulfill:{psid}"


PENDING_INDEX = "pendings"


class PaymentSessionStore:
    def __init__(self, r: redis.Redis, ttl_seconds: int) -> None:
        self.r = r
        self.ttl = ttl_seconds

    async def save_payment_session(
            self, psid: str, mapping: Dict[str, Any]) -> None:
        # values must be strings for decode_responses=True
        pipe = self.r.pipeline(transaction=True)
        pipe.hset(k_ps(psid), mapping={k: str(v) for k, v in mapping.items()})
        pipe.expire(k_ps(psid), self.ttl + 60)
        pipe.zadd(
            PENDING_INDEX,
            {psid: float(mapping.get("created_at", time.time()))}
        )
        await pipe.execute()

    async def get_payment_session(self, psid: str) -> Optional[Dict[str, str]]:
        h = await self.r.hgetall(k_ps(psid))
        return h or None

    async def fulfill_gate(self, psid: str) -> bool:
        # NX gate for fulfillment, 24h TTL
        ok = await self.r.set(k_fulfill(psid), "1", nx=True, ex=24*3600)
        return bool(ok)

    async def release_gate(self, psid: str) -> None:
        await self.r.delete(k_fulfill(psid))

    async def remove_pending(self, psid: str) -> None:
        pipe = self.r.pipeline(transaction=True)
        pipe.zrem(PENDING_INDEX, psid)
        pipe.delete(k_ps(psid))
        await pipe.execute()
