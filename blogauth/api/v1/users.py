"""User administration endpoints: list, view, update and delete accounts by id."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from blogauth.api.v1.auth import CurrentUser, profile_fields, require_roles
from blogauth.core.config import Settings, get_settings
from blogauth.core.database import get_db
from blogauth.models import User
from blogauth.schemas.auth import MessageResponse
from blogauth.schemas.users import (
    UserDetail,
    UserDetailPayload,
    UserDetailResponse,
    UserListPayload,
    UserListResponse,
    UserUpdateRequest,
)
from blogauth.services.account_store import SqlAccountStore
from blogauth.services.users import UserService

router = APIRouter()

AdminUser = Annotated[User, Depends(require_roles("admin"))]


def get_user_service(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserService:
    return UserService(SqlAccountStore(db), settings)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]


def _detail(user: User) -> UserDetail:
    return UserDetail(**profile_fields(user), is_active=user.is_active)


@router.get("/", response_model=UserListResponse)
def list_users(_admin: AdminUser, service: UserServiceDep) -> UserListResponse:
    """List all accounts (admin only)."""
    users = service.list_users()
    return UserListResponse(data=UserListPayload(users=[_detail(u) for u in users]))


@router.get("/{user_id}", response_model=UserDetailResponse)
def get_user(user_id: int, current_user: CurrentUser, service: UserServiceDep) -> UserDetailResponse:
    """Own account, or any account for admins."""
    user = service.get_user(current_user, user_id)
    return UserDetailResponse(data=UserDetailPayload(user=_detail(user)))


@router.put("/{user_id}", response_model=UserDetailResponse)
def update_user(
    user_id: int,
    body: UserUpdateRequest,
    current_user: CurrentUser,
    service: UserServiceDep,
) -> UserDetailResponse:
    """Update profile fields; role and isActive are admin-only."""
    user = service.update_user(current_user, user_id, body.model_dump(exclude_unset=True))
    return UserDetailResponse(
        message="User updated successfully",
        data=UserDetailPayload(user=_detail(user)),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, admin: AdminUser, service: UserServiceDep) -> MessageResponse:
    service.delete_user(admin, user_id)
    return MessageResponse(message="User deleted successfully")
