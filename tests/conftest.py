from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import traechan.db as db
from traechan.app import create_app
from traechan.cli import DEFAULT_CHARACTERS
from traechan.db.models import Base
from traechan.db.repos import CharacterRepository
from traechan.security.tokens import TokenSigner
from traechan.settings import get_settings

TEST_JWT_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def _test_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRAECHAN_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("TRAECHAN_JWT_EXPIRATION", "30d")
    monkeypatch.delenv("TRAECHAN_GOOGLE_CLIENT_ID", raising=False)
    monkeypatch.delenv("TRAECHAN_GOOGLE_CLIENT_SECRET", raising=False)


@pytest.fixture
async def test_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    db_path = tmp_path / "test.db"
    engine = db.create_engine(f"sqlite+aiosqlite:///{db_path}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    db.SessionMaker = async_sessionmaker(engine, expire_on_commit=False)

    async with db.SessionMaker() as session:
        repo = CharacterRepository(session)
        for character in DEFAULT_CHARACTERS:
            await repo.upsert(character)
        await repo.commit()

    yield engine

    await engine.dispose()


@pytest.fixture
def app(test_engine: AsyncEngine) -> FastAPI:
    _ = test_engine
    return create_app()


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)

    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    _ = test_engine
    async with db.SessionMaker() as session:
        yield session


@pytest.fixture
def token_signer() -> TokenSigner:
    return TokenSigner.from_settings(get_settings())
