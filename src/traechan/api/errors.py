from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from traechan.api.schemas import ErrorResponse
from traechan.errors import IdentityProviderError, ProviderNotConfiguredError
from traechan.logging_config import log_with_fields
from traechan.security.audit import audit_auth_denied
from traechan.security.audit_constants import (
    AUTH_EVENT_GOOGLE_CALLBACK,
    AUTH_REASON_INVALID_REQUEST,
)

logger = logging.getLogger("traechan.http")

# Paths whose rejected requests are also security-audit events.
_AUDITED_VALIDATION_PATHS: dict[str, str] = {
    "/api/auth/google/callback": AUTH_EVENT_GOOGLE_CALLBACK,
}


def error_response(status_code: int, message: str) -> JSONResponse:
    body = ErrorResponse(error=message, status_code=status_code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def _http_exception_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    log_with_fields(
        logger,
        logging.WARNING,
        "request validation failed",
        path=request.url.path,
        error_count=len(exc.errors()),
    )
    audit_event = _AUDITED_VALIDATION_PATHS.get(request.url.path)
    if audit_event is not None:
        audit_auth_denied(event=audit_event, reason=AUTH_REASON_INVALID_REQUEST)
    return error_response(400, "Invalid request parameters")


async def _identity_provider_handler(_: Request, exc: IdentityProviderError) -> JSONResponse:
    return error_response(401, "Authentication failed")


async def _provider_not_configured_handler(
    _: Request, exc: ProviderNotConfiguredError
) -> JSONResponse:
    return error_response(503, str(exc))


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(IdentityProviderError, _identity_provider_handler)
    app.add_exception_handler(ProviderNotConfiguredError, _provider_not_configured_handler)
