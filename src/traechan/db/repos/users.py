from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from traechan import domain
from traechan.db.mappers import to_domain_user
from traechan.db.models import User
from traechan.db.repos.base import BaseRepository


class UserRepository(BaseRepository[User]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_id(self, user_id: int) -> domain.User | None:
        row = await self.get_row(user_id)
        if row is None:
            return None
        return to_domain_user(row)

    async def get_by_email(self, email: str) -> domain.User | None:
        row = await self.first_where(User.email == email.strip())
        if row is None:
            return None
        return to_domain_user(row)

    async def create(self, data: domain.NewUser) -> domain.User:
        row = await self.add(
            User(email=data.email, name=data.display_name, avatar_url=data.avatar_url)
        )
        await self.commit()
        return to_domain_user(row)
