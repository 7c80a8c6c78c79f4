from __future__ import annotations
from typing import Optional

from ...helpers import hash_password, verify_password
from ..memdb import MemoryDB
from ..orm import User


class AccountStore:
    def __init__(self, *, mem: MemoryDB) -> None:
        self.mem = mem

    async def get_by_username(self, username: str) -> Optional[User]:
        for user in self.mem.rows(User):
            if user.username == username:
                return user
        return None

    async def create_admin(self, username: str, password: str) -> User:
        return self.mem.insert(
            User(username=username, password_hash=hash_password(password))
        )

    async def authenticate(self, username: str,
                           password: str) -> Optional[User]:
        user = await self.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user
