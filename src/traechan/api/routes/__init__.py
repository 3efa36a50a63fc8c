from __future__ import annotations

from fastapi import APIRouter

from traechan.api.routes.auth import router as auth_router
from traechan.api.routes.system import router as system_router

router = APIRouter()
router.include_router(system_router)
router.include_router(auth_router)
