from __future__ import annotations
from typing import Callable, AsyncContextManager, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...helpers import hash_password, verify_password
from ...infra.sql import storage_errors
from ..orm import User

Gated = Callable[[], AsyncContextManager[None]]


class AccountStore:
    def __init__(self, *, db: AsyncSession, gated: Gated) -> None:
        self.db = db
        self.gated = gated

    async def get_by_username(self, username: str) -> Optional[User]:
        async with storage_errors("fetching user"), self.gated():
            async with self.db.begin():
                result = await self.db.execute(
                    select(User).where(User.username == username).limit(1)
                )
                return result.scalars().first()

    async def create_admin(self, username: str, password: str) -> User:
        user = User(username=username, password_hash=hash_password(password))
        async with storage_errors("creating user"), self.gated():
            async with self.db.begin():
                self.db.add(user)
                await self.db.flush()
        return user

    async def authenticate(self, username: str,
                           password: str) -> Optional[User]:
        user = await self.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user
