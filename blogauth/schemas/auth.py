"""Request/response schemas for auth endpoints."""

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blogauth.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
# At least one letter and one digit
PASSWORD_LETTER_RE = re.compile(r"[A-Za-z]")
PASSWORD_DIGIT_RE = re.compile(r"\d")


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_RE.match(v):
        raise ValueError("Please enter a valid email")
    return v


def _check_password_strength(v: str) -> str:
    if not (PASSWORD_LETTER_RE.search(v) and PASSWORD_DIGIT_RE.search(v)):
        raise ValueError("Password must contain at least one letter and one number")
    return v


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., min_length=1, max_length=255, description="Account email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class RegisterRequest(BaseModel):
    """New account details."""

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    first_name: str = Field(default="", max_length=50, alias="firstName")
    last_name: str = Field(default="", max_length=50, alias="lastName")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not USERNAME_RE.match(v):
            raise ValueError("Username can only contain letters, numbers, and underscores")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password_strength(v)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, alias="refreshToken")

    model_config = ConfigDict(populate_by_name=True)


class ProfileUpdateRequest(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""

    first_name: str | None = Field(default=None, max_length=50, alias="firstName")
    last_name: str | None = Field(default=None, max_length=50, alias="lastName")
    bio: str | None = Field(default=None, max_length=500)
    avatar: str | None = Field(default=None, max_length=1024)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("first_name", "last_name", "bio")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, alias="currentPassword")
    new_password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, alias="newPassword"
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return _check_password_strength(v)


class CamelModel(BaseModel):
    """Response model serialized with the camelCase keys the web client expects."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class UserSummary(CamelModel):
    """Account fields returned by login, register and refresh."""

    id: int
    username: str
    email: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    role: str
    last_login: datetime | None = Field(default=None, alias="lastLogin")
    created_at: datetime | None = Field(default=None, alias="createdAt")


class UserProfile(UserSummary):
    """Full profile for GET /auth/me and profile updates."""

    full_name: str = Field(alias="fullName")
    avatar: str
    bio: str
    email_verified: bool = Field(alias="emailVerified")


class AuthPayload(CamelModel):
    user: UserSummary
    token: str
    refresh_token: str = Field(alias="refreshToken")


class AuthResponse(CamelModel):
    """Envelope for successful login/register/refresh."""

    success: bool = True
    message: str
    data: AuthPayload


class ProfilePayload(CamelModel):
    user: UserProfile


class ProfileResponse(CamelModel):
    success: bool = True
    message: str | None = None
    data: ProfilePayload


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Failure envelope produced by the exception handlers."""

    success: bool = False
    error: str
    details: list[dict[str, Any]] | None = None
