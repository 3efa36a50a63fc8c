from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from traechan.domain import (
    DEFAULT_CHARACTER_CODE,
    DEFAULT_CHARACTER_NICKNAME,
    GOOGLE_PROVIDER,
    AuthAccountWithUser,
    ExternalIdentity,
    NewAuthAccount,
    NewUser,
    NewUserCharacter,
    RegistrationInput,
    User,
)
from traechan.logging_config import log_with_fields

_logger = logging.getLogger(__name__)


class IdentityExchanger(Protocol):
    async def exchange_code_for_identity(self, code: str) -> ExternalIdentity: ...


class AccountLookup(Protocol):
    async def find_by_provider(
        self, provider: str, provider_account_id: str
    ) -> AuthAccountWithUser | None: ...


class RegistrationStore(Protocol):
    async def create_user_with_account_and_character(self, data: RegistrationInput) -> User: ...


class SessionTokenSigner(Protocol):
    def generate_token(self, user_id: int) -> str: ...


@dataclass(frozen=True)
class AuthRepositories:
    auth_accounts: AccountLookup
    registrations: RegistrationStore


@dataclass(frozen=True)
class AuthenticationResult:
    is_new_user: bool
    token: str
    user: User


def build_registration_input(identity: ExternalIdentity) -> RegistrationInput:
    return RegistrationInput(
        user=NewUser(
            email=identity.email,
            display_name=identity.display_name,
            avatar_url=identity.avatar_url,
        ),
        auth_account=NewAuthAccount(
            provider=GOOGLE_PROVIDER,
            provider_account_id=identity.external_id,
        ),
        user_character=NewUserCharacter(
            character_code=DEFAULT_CHARACTER_CODE,
            nickname=DEFAULT_CHARACTER_NICKNAME,
            is_active=True,
        ),
    )


async def authenticate_with_external_provider(
    code: str,
    repositories: AuthRepositories,
    oauth_client: IdentityExchanger,
    *,
    token_signer: SessionTokenSigner,
    logger: logging.Logger = _logger,
) -> AuthenticationResult:
    """Sign a user in with a Google authorization code.

    The code is exchanged for the caller's Google identity, which is looked up
    by ``(provider, external id)``. A known identity reuses its user exactly as
    stored; profile fields are not refreshed from the new payload. An unknown
    identity registers a user, its auth account and its default character in
    one transaction. Either way a session token is signed for the user.

    Collaborator failures propagate unchanged: nothing here retries, and a
    duplicate-key error from two racing first logins surfaces to the caller.
    """
    if not code:
        raise ValueError("authorization code must not be empty")

    logger.info("starting google authentication")

    identity = await oauth_client.exchange_code_for_identity(code)
    log_with_fields(
        logger,
        logging.DEBUG,
        "retrieved google identity",
        external_id=identity.external_id,
        email=identity.email,
    )

    existing = await repositories.auth_accounts.find_by_provider(
        GOOGLE_PROVIDER, identity.external_id
    )

    if existing is not None:
        user = existing.user
        is_new_user = False
        log_with_fields(logger, logging.INFO, "existing user found", user_id=user.id)
    else:
        is_new_user = True
        logger.info("creating new user")
        user = await repositories.registrations.create_user_with_account_and_character(
            build_registration_input(identity)
        )
        log_with_fields(logger, logging.INFO, "new user created", user_id=user.id)

    token = token_signer.generate_token(user.id)
    log_with_fields(logger, logging.DEBUG, "session token generated", user_id=user.id)

    return AuthenticationResult(is_new_user=is_new_user, token=token, user=user)
