from __future__ import annotations

from datetime import UTC, datetime

from traechan import domain
from traechan.db import models


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values for timezone-aware columns; stored values are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def to_domain_user(row: models.User) -> domain.User:
    return domain.User(
        id=row.id,
        email=row.email,
        display_name=row.name,
        avatar_url=row.avatar_url,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def to_domain_auth_account(row: models.AuthAccount) -> domain.AuthAccount:
    return domain.AuthAccount(
        id=row.id,
        provider=row.provider,
        provider_account_id=row.provider_account_id,
        user_id=row.user_id,
        access_token=row.access_token,
        refresh_token=row.refresh_token,
        id_token=row.id_token,
        expires_at=row.expires_at,
        scope=row.scope,
        token_type=row.token_type,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def to_domain_character(row: models.Character) -> domain.Character:
    return domain.Character(
        character_code=domain.CharacterCode(row.character_code),
        name=row.name,
        description=row.description,
    )


def to_domain_user_character(row: models.UserCharacter) -> domain.UserCharacter:
    return domain.UserCharacter(
        id=row.id,
        user_id=row.user_id,
        character_code=domain.CharacterCode(row.character_code),
        nickname=row.nickname,
        is_active=row.is_active,
        level=row.level,
        experience=row.experience,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )
