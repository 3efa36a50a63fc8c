from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from traechan.api.errors import error_response
from traechan.api.schemas import GoogleCallbackResponse, UserResponse
from traechan.auth import get_google_oauth_client, get_token_signer, require_user_id
from traechan.db import get_session
from traechan.db.repos import AuthAccountRepository, UserRegistrationRepository, UserRepository
from traechan.errors import IdentityProviderError
from traechan.logging_config import bind_user_id, log_with_fields
from traechan.security.audit import audit_auth_denied, audit_auth_success
from traechan.security.audit_constants import (
    AUTH_EVENT_GOOGLE_CALLBACK,
    AUTH_EVENT_TOKEN,
    AUTH_REASON_OAUTH_ERROR,
    AUTH_REASON_USER_NOT_FOUND,
)
from traechan.security.tokens import TokenSigner
from traechan.services import AuthRepositories, authenticate_with_external_provider, get_user_by_id
from traechan.sso.google import GoogleOAuthClient

router = APIRouter(prefix="/api/auth")
logger = logging.getLogger("traechan.api.auth")


@router.get("/google")
async def google_login(
    google_client: GoogleOAuthClient = Depends(get_google_oauth_client),
) -> RedirectResponse:
    logger.info("redirecting to google consent screen")
    url = await google_client.build_authorization_url()
    return RedirectResponse(url=url, status_code=302)


@router.get("/google/callback", response_model=GoogleCallbackResponse)
async def google_callback(
    code: str = Query(min_length=1),
    session: AsyncSession = Depends(get_session),
    google_client: GoogleOAuthClient = Depends(get_google_oauth_client),
    token_signer: TokenSigner = Depends(get_token_signer),
) -> GoogleCallbackResponse | JSONResponse:
    repositories = AuthRepositories(
        auth_accounts=AuthAccountRepository(session),
        registrations=UserRegistrationRepository(session),
    )
    try:
        result = await authenticate_with_external_provider(
            code,
            repositories,
            google_client,
            token_signer=token_signer,
            logger=logger,
        )
    except IdentityProviderError:
        audit_auth_denied(event=AUTH_EVENT_GOOGLE_CALLBACK, reason=AUTH_REASON_OAUTH_ERROR)
        raise
    except Exception:
        logger.exception("google authentication failed")
        return error_response(500, "Authentication failed")

    bind_user_id(result.user.id)
    audit_auth_success(
        event=AUTH_EVENT_GOOGLE_CALLBACK,
        actor=result.user,
        is_new_user=result.is_new_user,
    )
    return GoogleCallbackResponse(
        is_new_user=result.is_new_user,
        token=result.token,
        user=UserResponse.from_domain(result.user),
    )


@router.get("/me", response_model=UserResponse)
async def me(
    user_id: int = Depends(require_user_id),
    session: AsyncSession = Depends(get_session),
) -> UserResponse | JSONResponse:
    try:
        user = await get_user_by_id(user_id, UserRepository(session), logger=logger)
    except Exception:
        logger.exception("failed to load current user")
        return error_response(500, "Failed to get user information")

    if user is None:
        audit_auth_denied(
            event=AUTH_EVENT_TOKEN,
            reason=AUTH_REASON_USER_NOT_FOUND,
            actor_user_id=user_id,
        )
        return error_response(404, "User not found")

    log_with_fields(logger, logging.INFO, "current user loaded", user_id=user.id)
    return UserResponse.from_domain(user)
