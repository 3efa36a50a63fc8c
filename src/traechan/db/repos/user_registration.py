from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from traechan import domain
from traechan.db.mappers import to_domain_user
from traechan.db.models import AuthAccount, User, UserCharacter


class UserRegistrationRepository:
    """Writes the rows that make up a first login.

    The user, its auth account and its default character are flushed in one
    transaction and committed together. Any failure rolls the whole session
    back before the error is re-raised, so no partial registration survives.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_user_with_account_and_character(
        self, data: domain.RegistrationInput
    ) -> domain.User:
        try:
            user = await self._create_user(data.user)
            await self._create_auth_account(user, data.auth_account)
            await self._create_user_character(user, data.user_character)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return to_domain_user(user)

    async def _create_user(self, data: domain.NewUser) -> User:
        user = User(email=data.email, name=data.display_name, avatar_url=data.avatar_url)
        self.session.add(user)
        await self.session.flush()
        return user

    async def _create_auth_account(self, user: User, data: domain.NewAuthAccount) -> AuthAccount:
        account = AuthAccount(
            user_id=user.id,
            provider=data.provider,
            provider_account_id=data.provider_account_id,
            access_token=data.access_token,
            refresh_token=data.refresh_token,
            id_token=data.id_token,
            expires_at=data.expires_at,
            scope=data.scope,
            token_type=data.token_type,
        )
        self.session.add(account)
        await self.session.flush()
        return account

    async def _create_user_character(
        self, user: User, data: domain.NewUserCharacter
    ) -> UserCharacter:
        character = UserCharacter(
            user_id=user.id,
            character_code=data.character_code,
            nickname=data.nickname,
            is_active=data.is_active,
        )
        self.session.add(character)
        await self.session.flush()
        return character
