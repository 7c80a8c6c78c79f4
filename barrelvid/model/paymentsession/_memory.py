from __future__ import annotations
from typing import Optional, Dict, Any
import time

# same lifetime as the redis NX key
FULFILL_TTL_SECONDS = 24 * 3600


class MemorySessions:
    """Process-local session table; one instance lives on app.state."""

    def __init__(self) -> None:
        self.sessions: Dict[str, Dict[str, str]] = {}
        self.expires: Dict[str, float] = {}
        # psid -> time the gate lapses
        self.fulfilled: Dict[str, float] = {}


class PaymentSessionStore:
    def __init__(self, sessions: MemorySessions, ttl_seconds: int) -> None:
        self.s = sessions
        self.ttl = ttl_seconds

    async def save_payment_session(
            self, psid: str, mapping: Dict[str, Any]) -> None:
        self.s.sessions[psid] = {k: str(v) for k, v in mapping.items()}
        self.s.expires[psid] = time.time() + self.ttl + 60

    async def get_payment_session(self, psid: str) -> Optional[Dict[str, str]]:
        if self.s.expires.get(psid, 0.0) < time.time():
            await self.remove_pending(psid)
            return None
        return self.s.sessions.get(psid)

    async def fulfill_gate(self, psid: str) -> bool:
        now = time.time()
        for k in [k for k, exp in self.s.fulfilled.items() if exp < now]:
            del self.s.fulfilled[k]
        if psid in self.s.fulfilled:
            return False
        self.s.fulfilled[psid] = now + FULFILL_TTL_SECONDS
        return True

    async def release_gate(self, psid: str) -> None:
        self.s.fulfilled.pop(psid, None)

    async def remove_pending(self, psid: str) -> None:
        self.s.sessions.pop(psid, None)
        self.s.expires.pop(psid, None)
