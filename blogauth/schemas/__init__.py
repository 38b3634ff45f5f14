"""Pydantic request/response schemas."""

from blogauth.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    RefreshRequest,
    RegisterRequest,
    UserProfile,
    UserSummary,
)
from blogauth.schemas.health import HealthResponse
from blogauth.schemas.users import UserDetail, UserDetailResponse, UserListResponse, UserUpdateRequest

__all__ = [
    "AuthResponse",
    "ChangePasswordRequest",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "RefreshRequest",
    "RegisterRequest",
    "UserDetail",
    "UserDetailResponse",
    "UserListResponse",
    "UserProfile",
    "UserSummary",
    "UserUpdateRequest",
]
