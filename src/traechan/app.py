from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import Response

from traechan import __version__
from traechan.api.errors import install_exception_handlers
from traechan.api.routes import router as api_router
from traechan.db import engine
from traechan.db.models import Base
from traechan.logging_config import (
    LogContext,
    configure_logging,
    log_with_fields,
    reset_log_context,
    set_log_context,
)
from traechan.settings import get_settings

logger = logging.getLogger("traechan.http")

LOG_EXCLUDE_PATHS = frozenset({"/health", "/api/health"})


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if settings.auto_create_db:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        yield

    app = FastAPI(title="traechan", version=__version__, lifespan=lifespan)

    @app.middleware("http")
    async def request_logging_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = (request.headers.get("x-request-id") or "").strip() or uuid4().hex
        context = LogContext(request_id=request_id)
        token = set_log_context(context)
        should_log = settings.log_http_requests and request.url.path not in LOG_EXCLUDE_PATHS
        start = perf_counter()

        try:
            if should_log:
                log_with_fields(
                    logger,
                    logging.INFO,
                    "request received",
                    method=request.method,
                    path=request.url.path,
                    client=request.client.host if request.client else None,
                    user_agent=request.headers.get("user-agent") or "unknown",
                )
            try:
                response = await call_next(request)
            except Exception:
                if should_log:
                    duration_ms = (perf_counter() - start) * 1000
                    log_with_fields(
                        logger,
                        logging.ERROR,
                        "request failed",
                        method=request.method,
                        path=request.url.path,
                        duration_ms=f"{duration_ms:.2f}",
                        exc_info=True,
                    )
                raise

            response.headers["X-Request-ID"] = request_id
            if should_log:
                duration_ms = (perf_counter() - start) * 1000
                log_with_fields(
                    logger,
                    logging.INFO,
                    "request complete",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=f"{duration_ms:.2f}",
                )
            return response
        finally:
            reset_log_context(token)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_exception_handlers(app)
    app.include_router(api_router)

    return app


app = create_app()
