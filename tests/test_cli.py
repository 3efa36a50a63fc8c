from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from traechan.cli import DEFAULT_CHARACTERS, _seed_characters
from traechan.db.repos import CharacterRepository
from traechan.domain import Character, CharacterCode


@pytest.mark.asyncio
async def test_seed_characters_is_idempotent(db_session: AsyncSession) -> None:
    assert await _seed_characters() == len(DEFAULT_CHARACTERS)
    assert await _seed_characters() == len(DEFAULT_CHARACTERS)

    characters = await CharacterRepository(db_session).list_all()
    assert sorted(c.character_code for c in characters) == sorted(
        [CharacterCode.MASTER, CharacterCode.TRAECHAN]
    )


@pytest.mark.asyncio
async def test_upsert_keeps_existing_master_data(db_session: AsyncSession) -> None:
    repo = CharacterRepository(db_session)

    kept = await repo.upsert(
        Character(character_code=CharacterCode.MASTER, name="renamed", description="")
    )

    assert kept.name == "マスター"
