from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from traechan.errors import ProviderNotConfiguredError
from traechan.logging_config import bind_user_id
from traechan.security.audit import audit_auth_denied
from traechan.security.audit_constants import (
    AUTH_EVENT_TOKEN,
    AUTH_REASON_INVALID_TOKEN,
    AUTH_REASON_MISSING_TOKEN,
)
from traechan.security.tokens import TokenSigner
from traechan.settings import get_settings
from traechan.sso.google import GoogleOAuthClient, get_google_config

_BEARER_PREFIX = "Bearer "


def get_token_signer() -> TokenSigner:
    return TokenSigner.from_settings(get_settings())


def get_google_oauth_client() -> GoogleOAuthClient:
    config = get_google_config()
    if config is None:
        raise ProviderNotConfiguredError("Google OAuth is not configured")
    return GoogleOAuthClient(config)


def get_bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization") or ""
    if not header.startswith(_BEARER_PREFIX):
        return None
    token = header[len(_BEARER_PREFIX) :].strip()
    return token or None


async def require_user_id(
    request: Request,
    token_signer: TokenSigner = Depends(get_token_signer),
) -> int:
    token = get_bearer_token(request)
    if token is None:
        audit_auth_denied(event=AUTH_EVENT_TOKEN, reason=AUTH_REASON_MISSING_TOKEN)
        raise HTTPException(status_code=401, detail="No token provided")

    payload = token_signer.verify_token(token)
    if payload is None:
        audit_auth_denied(event=AUTH_EVENT_TOKEN, reason=AUTH_REASON_INVALID_TOKEN)
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    bind_user_id(payload.user_id)
    return payload.user_id
