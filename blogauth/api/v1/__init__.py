"""API v1 routes."""

from typing import Any

from fastapi import APIRouter

from blogauth.api.v1 import auth, health, users
from blogauth.schemas.auth import ErrorResponse

# Documented failure envelope for every status the exception handlers produce
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 500)
}

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"], responses=ERROR_RESPONSES)
router.include_router(users.router, prefix="/users", tags=["users"], responses=ERROR_RESPONSES)
