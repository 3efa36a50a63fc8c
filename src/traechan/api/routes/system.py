from __future__ import annotations

from fastapi import APIRouter

from traechan import __version__
from traechan.api.schemas import HealthResponse, ServiceInfoResponse

router = APIRouter()


@router.get("/", response_model=ServiceInfoResponse)
async def root() -> ServiceInfoResponse:
    return ServiceInfoResponse(message="API Server is running", version=__version__)


@router.get("/health", response_model=HealthResponse)
@router.get("/api/health", response_model=HealthResponse, include_in_schema=False)
async def health() -> HealthResponse:
    return HealthResponse(status="ok")
