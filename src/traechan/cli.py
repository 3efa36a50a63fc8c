from __future__ import annotations

import argparse
import asyncio

import uvicorn

import traechan.db as db
from traechan.db.models import Base
from traechan.db.repos import CharacterRepository
from traechan.domain import Character, CharacterCode
from traechan.settings import get_settings

DEFAULT_CHARACTERS: tuple[Character, ...] = (
    Character(
        character_code=CharacterCode.TRAECHAN,
        name="トレちゃん",
        description="目標達成をサポートするあなたの相棒",
    ),
    Character(
        character_code=CharacterCode.MASTER,
        name="マスター",
        description="あなたの成長を見守る師匠",
    ),
)


async def _init_db() -> None:
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _seed_characters() -> int:
    async with db.SessionMaker() as session:
        repo = CharacterRepository(session)
        for character in DEFAULT_CHARACTERS:
            await repo.upsert(character)
        await repo.commit()
    return len(DEFAULT_CHARACTERS)


def main() -> None:
    parser = argparse.ArgumentParser(prog="traechan")
    sub = parser.add_subparsers(dest="cmd", required=True)
    settings = get_settings()

    sub.add_parser("init-db")
    sub.add_parser("seed")
    serve = sub.add_parser("serve")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)

    args = parser.parse_args()

    if args.cmd == "init-db":
        asyncio.run(_init_db())
    elif args.cmd == "seed":
        count = asyncio.run(_seed_characters())
        print(f"Seeded {count} characters")
    elif args.cmd == "serve":
        uvicorn.run(
            "traechan.app:app",
            host=args.host,
            port=args.port,
            log_config=None,
            reload=settings.app_env == "dev",
        )
    else:
        raise SystemExit(2)
