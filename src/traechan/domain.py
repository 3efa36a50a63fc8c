"""Domain types.

These are plain frozen dataclasses, independent of the ORM. Repositories map
their rows onto them field by field (see ``traechan.db.mappers``).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

GOOGLE_PROVIDER = "google"


class CharacterCode(enum.StrEnum):
    TRAECHAN = "TRAECHAN"
    MASTER = "MASTER"


DEFAULT_CHARACTER_CODE = CharacterCode.TRAECHAN
DEFAULT_CHARACTER_NICKNAME = "トレちゃん"


@dataclass(frozen=True)
class ExternalIdentity:
    provider: str
    external_id: str
    email: str | None
    display_name: str | None
    avatar_url: str | None = None


@dataclass(frozen=True)
class User:
    id: int
    email: str | None
    display_name: str | None
    avatar_url: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class AuthAccount:
    id: int
    provider: str
    provider_account_id: str
    user_id: int
    access_token: str | None
    refresh_token: str | None
    id_token: str | None
    expires_at: int | None
    scope: str | None
    token_type: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class AuthAccountWithUser:
    account: AuthAccount
    user: User


@dataclass(frozen=True)
class Character:
    character_code: CharacterCode
    name: str
    description: str


@dataclass(frozen=True)
class UserCharacter:
    id: int
    user_id: int
    character_code: CharacterCode
    nickname: str
    is_active: bool
    level: int
    experience: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class NewUser:
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class NewAuthAccount:
    provider: str
    provider_account_id: str
    access_token: str | None = None
    refresh_token: str | None = None
    id_token: str | None = None
    expires_at: int | None = None
    scope: str | None = None
    token_type: str | None = None


@dataclass(frozen=True)
class NewUserCharacter:
    character_code: CharacterCode
    nickname: str
    is_active: bool = False


@dataclass(frozen=True)
class RegistrationInput:
    user: NewUser
    auth_account: NewAuthAccount
    user_character: NewUserCharacter
