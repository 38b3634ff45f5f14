"""Request/response schemas for the user administration endpoints."""

from typing import Literal

from pydantic import ConfigDict, Field

from blogauth.schemas.auth import CamelModel, ProfileUpdateRequest, UserProfile


class UserUpdateRequest(ProfileUpdateRequest):
    """Profile fields plus the admin-only role and active flag."""

    role: Literal["user", "moderator", "admin"] | None = None
    is_active: bool | None = Field(default=None, alias="isActive")

    model_config = ConfigDict(populate_by_name=True)


class UserDetail(UserProfile):
    is_active: bool = Field(alias="isActive")


class UserDetailPayload(CamelModel):
    user: UserDetail


class UserDetailResponse(CamelModel):
    success: bool = True
    message: str | None = None
    data: UserDetailPayload


class UserListPayload(CamelModel):
    users: list[UserDetail]


class UserListResponse(CamelModel):
    success: bool = True
    data: UserListPayload
