"""User repository for lookups and profile upserts."""

from __future__ import annotations

from sqlalchemy import select

from smena.models.user import User
from smena.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Encapsulates persistence logic for User entities."""

    async def create(
        self,
        *,
        telegram_id: int,
        first_name: str,
        last_name: str | None = None,
        username: str | None = None,
    ) -> User:
        user = User(
            telegram_id=telegram_id,
            first_name=first_name,
            last_name=last_name,
            username=username,
        )
        await self.add(user)
        await self.session.refresh(user)
        return user

    async def get_by_telegram_id(self, telegram_id: int) -> User | None:
        stmt = select(User).where(User.telegram_id == telegram_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_profile(
        self,
        user: User,
        *,
        first_name: str,
        last_name: str | None,
        username: str | None,
    ) -> User:
        user.first_name = first_name
        user.last_name = last_name
        user.username = username
        await self.session.flush()
        return user


__all__ = ["UserRepository"]
