from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from traechan.auth import get_google_oauth_client
from traechan.db.models import AuthAccount, User, UserCharacter
from traechan.db.repos import UserRegistrationRepository
from traechan.domain import ExternalIdentity
from traechan.errors import IdentityProviderError
from traechan.security.tokens import TokenSigner
from traechan.services import build_registration_input


@dataclass
class _FakeGoogleClient:
    identity: ExternalIdentity | None = None
    error: Exception | None = None
    codes: list[str] = field(default_factory=list)

    async def build_authorization_url(self, **_: object) -> str:
        return "https://accounts.google.com/o/oauth2/v2/auth?client_id=test"

    async def exchange_code_for_identity(self, code: str) -> ExternalIdentity:
        self.codes.append(code)
        if self.error is not None:
            raise self.error
        assert self.identity is not None
        return self.identity


def _identity(external_id: str = "g-1", email: str = "a@x.com") -> ExternalIdentity:
    return ExternalIdentity(
        provider="google",
        external_id=external_id,
        email=email,
        display_name="A",
        avatar_url="https://example.com/a.jpg",
    )


def _use_google(app: FastAPI, fake: _FakeGoogleClient) -> None:
    app.dependency_overrides[get_google_oauth_client] = lambda: fake


async def _count(session: AsyncSession, column: object) -> int:
    return (await session.execute(select(func.count(column)))).scalar_one()  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_callback_registers_new_user_and_returns_token(
    app: FastAPI,
    client: AsyncClient,
    db_session: AsyncSession,
    token_signer: TokenSigner,
) -> None:
    _use_google(app, _FakeGoogleClient(identity=_identity()))

    response = await client.get("/api/auth/google/callback", params={"code": "valid-1"})

    assert response.status_code == 200
    body = response.json()
    assert body["is_new_user"] is True
    assert body["user"]["email"] == "a@x.com"
    assert body["user"]["name"] == "A"
    assert body["user"]["avatar_url"] == "https://example.com/a.jpg"
    assert set(body["user"]) == {"id", "email", "name", "avatar_url", "created_at"}

    payload = token_signer.verify_token(body["token"])
    assert payload is not None
    assert payload.user_id == body["user"]["id"]

    assert await _count(db_session, User.id) == 1
    assert await _count(db_session, AuthAccount.id) == 1
    assert await _count(db_session, UserCharacter.id) == 1
    character = (await db_session.execute(select(UserCharacter))).scalar_one()
    assert character.is_active is True
    assert character.user_id == body["user"]["id"]


@pytest.mark.asyncio
async def test_callback_reuses_existing_account_without_refreshing_profile(
    app: FastAPI,
    client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    existing = await UserRegistrationRepository(
        db_session
    ).create_user_with_account_and_character(
        build_registration_input(_identity(external_id="g-2", email="old@example.com"))
    )
    fake = _FakeGoogleClient(identity=_identity(external_id="g-2", email="new@example.com"))
    _use_google(app, fake)

    response = await client.get("/api/auth/google/callback", params={"code": "valid-2"})

    assert response.status_code == 200
    body = response.json()
    assert body["is_new_user"] is False
    assert body["user"]["id"] == existing.id
    assert body["user"]["email"] == "old@example.com"
    assert fake.codes == ["valid-2"]
    assert await _count(db_session, User.id) == 1
    assert await _count(db_session, UserCharacter.id) == 1


@pytest.mark.asyncio
async def test_created_at_keeps_utc_offset_across_logins_and_me(
    app: FastAPI,
    client: AsyncClient,
) -> None:
    _use_google(app, _FakeGoogleClient(identity=_identity(external_id="g-tz")))

    first = await client.get("/api/auth/google/callback", params={"code": "valid-1"})
    second = await client.get("/api/auth/google/callback", params={"code": "valid-2"})
    me = await client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {second.json()['token']}"}
    )

    assert first.json()["is_new_user"] is True
    assert second.json()["is_new_user"] is False
    created_at = first.json()["user"]["created_at"]
    assert created_at.endswith("+00:00")
    assert second.json()["user"]["created_at"] == created_at
    assert me.json()["created_at"] == created_at


@pytest.mark.asyncio
async def test_callback_without_code_is_bad_request(
    app: FastAPI,
    client: AsyncClient,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger="traechan.security.audit")
    fake = _FakeGoogleClient(identity=_identity())
    _use_google(app, fake)

    missing = await client.get("/api/auth/google/callback")
    empty = await client.get("/api/auth/google/callback", params={"code": ""})

    assert missing.status_code == 400
    assert missing.json() == {"error": "Invalid request parameters", "status_code": 400}
    assert empty.status_code == 400
    assert fake.codes == []
    denied = [
        record.getMessage()
        for record in caplog.records
        if "audit_event=auth.google_callback" in record.getMessage()
    ]
    assert len(denied) == 2
    assert all("reason=invalid_request" in message for message in denied)


@pytest.mark.asyncio
async def test_callback_provider_failure_is_unauthorized(
    app: FastAPI,
    client: AsyncClient,
    db_session: AsyncSession,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger="traechan.security.audit")
    _use_google(app, _FakeGoogleClient(error=IdentityProviderError("code expired")))

    response = await client.get("/api/auth/google/callback", params={"code": "expired"})

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication failed", "status_code": 401}
    assert await _count(db_session, User.id) == 0
    assert any(
        "audit_event=auth.google_callback" in record.getMessage()
        and "outcome=denied" in record.getMessage()
        for record in caplog.records
    )


@pytest.mark.asyncio
async def test_callback_unexpected_failure_hides_details(
    app: FastAPI,
    client: AsyncClient,
) -> None:
    _use_google(app, _FakeGoogleClient(error=RuntimeError("db password is hunter2")))

    response = await client.get("/api/auth/google/callback", params={"code": "valid-3"})

    assert response.status_code == 500
    assert response.json() == {"error": "Authentication failed", "status_code": 500}
    assert "hunter2" not in response.text


@pytest.mark.asyncio
async def test_google_login_redirects_to_consent_screen(
    app: FastAPI,
    client: AsyncClient,
) -> None:
    _use_google(app, _FakeGoogleClient())

    response = await client.get("/api/auth/google", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"].startswith("https://accounts.google.com/")


@pytest.mark.asyncio
async def test_google_routes_report_unconfigured_provider(client: AsyncClient) -> None:
    response = await client.get("/api/auth/google", follow_redirects=False)

    assert response.status_code == 503
    assert response.json()["status_code"] == 503


@pytest.mark.asyncio
async def test_me_returns_current_user(
    app: FastAPI,
    client: AsyncClient,
    db_session: AsyncSession,
    token_signer: TokenSigner,
) -> None:
    user = await UserRegistrationRepository(db_session).create_user_with_account_and_character(
        build_registration_input(_identity(external_id="g-me", email="me@example.com"))
    )

    response = await client.get(
        "/api/auth/me",
        headers={"Authorization": f"Bearer {token_signer.generate_token(user.id)}"},
    )

    assert response.status_code == 200
    assert response.json()["id"] == user.id
    assert response.json()["email"] == "me@example.com"


@pytest.mark.asyncio
async def test_me_requires_bearer_token(client: AsyncClient) -> None:
    missing = await client.get("/api/auth/me")
    malformed = await client.get("/api/auth/me", headers={"Authorization": "Token abc"})

    assert missing.status_code == 401
    assert missing.json() == {"error": "No token provided", "status_code": 401}
    assert malformed.status_code == 401


@pytest.mark.asyncio
async def test_me_rejects_expired_token(client: AsyncClient, token_signer: TokenSigner) -> None:
    token = token_signer.generate_token(1, now=datetime.now(UTC) - timedelta(days=31))

    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid or expired token", "status_code": 401}


@pytest.mark.asyncio
async def test_me_for_deleted_user_is_not_found(
    client: AsyncClient, token_signer: TokenSigner
) -> None:
    response = await client.get(
        "/api/auth/me",
        headers={"Authorization": f"Bearer {token_signer.generate_token(999)}"},
    )

    assert response.status_code == 404
    assert response.json() == {"error": "User not found", "status_code": 404}
