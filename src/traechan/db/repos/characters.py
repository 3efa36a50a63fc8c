from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from traechan import domain
from traechan.db.mappers import to_domain_character, to_domain_user_character
from traechan.db.models import Character, UserCharacter
from traechan.db.repos.base import BaseRepository


class CharacterRepository(BaseRepository[Character]):
    """Character master data (one row per ``CharacterCode``)."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Character)

    async def upsert(self, data: domain.Character) -> domain.Character:
        # Existing rows are left untouched so hand edits survive re-seeding.
        row = await self.get_row(data.character_code)
        if row is None:
            row = await self.add(
                Character(
                    character_code=data.character_code,
                    name=data.name,
                    description=data.description,
                )
            )
        return to_domain_character(row)

    async def list_all(self) -> list[domain.Character]:
        result = await self.session.execute(
            select(Character).order_by(Character.character_code.asc())
        )
        return [to_domain_character(row) for row in result.scalars().all()]


class UserCharacterRepository(BaseRepository[UserCharacter]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserCharacter)

    async def list_by_user_id(self, user_id: int) -> list[domain.UserCharacter]:
        result = await self.session.execute(
            select(UserCharacter)
            .where(UserCharacter.user_id == user_id)
            .order_by(UserCharacter.created_at.asc(), UserCharacter.id.asc())
        )
        return [to_domain_user_character(row) for row in result.scalars().all()]

    async def find_active_by_user_id(self, user_id: int) -> domain.UserCharacter | None:
        row = await self.first_where(
            UserCharacter.user_id == user_id,
            UserCharacter.is_active.is_(True),
        )
        if row is None:
            return None
        return to_domain_user_character(row)

    async def create(self, user_id: int, data: domain.NewUserCharacter) -> domain.UserCharacter:
        row = await self.add(
            UserCharacter(
                user_id=user_id,
                character_code=data.character_code,
                nickname=data.nickname,
                is_active=data.is_active,
            )
        )
        await self.commit()
        return to_domain_user_character(row)
