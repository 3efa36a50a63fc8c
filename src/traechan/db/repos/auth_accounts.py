from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from traechan import domain
from traechan.db.mappers import to_domain_auth_account, to_domain_user
from traechan.db.models import AuthAccount
from traechan.db.repos.base import BaseRepository


class AuthAccountRepository(BaseRepository[AuthAccount]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AuthAccount)

    async def find_by_provider(
        self, provider: str, provider_account_id: str
    ) -> domain.AuthAccountWithUser | None:
        result = await self.session.execute(
            select(AuthAccount)
            .options(joinedload(AuthAccount.user))
            .where(
                AuthAccount.provider == provider,
                AuthAccount.provider_account_id == provider_account_id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return domain.AuthAccountWithUser(
            account=to_domain_auth_account(row),
            user=to_domain_user(row.user),
        )

    async def create(self, user_id: int, data: domain.NewAuthAccount) -> domain.AuthAccount:
        row = await self.add(
            AuthAccount(
                user_id=user_id,
                provider=data.provider,
                provider_account_id=data.provider_account_id,
                access_token=data.access_token,
                refresh_token=data.refresh_token,
                id_token=data.id_token,
                expires_at=data.expires_at,
                scope=data.scope,
                token_type=data.token_type,
            )
        )
        await self.commit()
        return to_domain_auth_account(row)
