"""Account endpoints and auth dependencies (get_current_user, require_roles)."""

import logging
from collections.abc import Callable
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from blogauth.core.config import Settings, get_settings
from blogauth.core.database import get_db
from blogauth.core.errors import Forbidden, InvalidToken
from blogauth.models import User
from blogauth.schemas.auth import (
    AuthPayload,
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    ProfilePayload,
    ProfileResponse,
    ProfileUpdateRequest,
    RefreshRequest,
    RegisterRequest,
    UserProfile,
    UserSummary,
)
from blogauth.services.account_store import SqlAccountStore
from blogauth.services.auth import AuthResult, AuthService, RegistrationInput

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthService:
    """Dependency: AuthService bound to the request's DB session."""
    return AuthService(SqlAccountStore(db), settings)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    service: AuthServiceDep,
) -> User:
    """Dependency: require a valid Bearer JWT and return its account. 401 if missing or invalid."""
    if credentials is None:
        raise InvalidToken("No token, authorization denied")
    return service.verify_session_token(credentials.credentials)


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_roles(*roles: str) -> Callable[[User], User]:
    """Dependency factory: allow only accounts whose role is in ``roles`` (403 otherwise)."""

    def _check(current_user: CurrentUser) -> User:
        if current_user.role not in roles:
            raise Forbidden()
        return current_user

    return _check


def _summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        last_login=user.last_login_at,
        created_at=user.created_at,
    )


def profile_fields(user: User) -> dict[str, Any]:
    """Keyword arguments for UserProfile and its subclasses."""
    return {
        **_summary(user).model_dump(),
        "full_name": user.full_name,
        "avatar": user.avatar,
        "bio": user.bio,
        "email_verified": user.email_verified,
    }


def _profile(user: User) -> UserProfile:
    return UserProfile(**profile_fields(user))


def _auth_response(result: AuthResult, message: str) -> AuthResponse:
    return AuthResponse(
        message=message,
        data=AuthPayload(
            user=_summary(result.account),
            token=result.token,
            refresh_token=result.refresh_token,
        ),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, service: AuthServiceDep) -> AuthResponse:
    """Create an account and return it with a session and refresh token."""
    result = service.register(
        RegistrationInput(
            username=body.username,
            email=body.email,
            password=body.password,
            first_name=body.first_name,
            last_name=body.last_name,
        )
    )
    return _auth_response(result, "User registered successfully")


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, service: AuthServiceDep) -> AuthResponse:
    """
    Authenticate with email and password; returns the account and a token pair.
    Include the token in the Authorization header as: Bearer <token>
    """
    result = service.authenticate(body.email, body.password)
    return _auth_response(result, "Login successful")


@router.post("/refresh", response_model=AuthResponse)
def refresh(body: RefreshRequest, service: AuthServiceDep) -> AuthResponse:
    result = service.refresh(body.refresh_token)
    return _auth_response(result, "Token refreshed")


@router.get("/me", response_model=ProfileResponse)
def me(current_user: CurrentUser) -> ProfileResponse:
    return ProfileResponse(data=ProfilePayload(user=_profile(current_user)))


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    body: ProfileUpdateRequest,
    current_user: CurrentUser,
    service: AuthServiceDep,
) -> ProfileResponse:
    user = service.update_profile(current_user, body.model_dump(exclude_unset=True))
    return ProfileResponse(
        message="Profile updated successfully",
        data=ProfilePayload(user=_profile(user)),
    )


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    current_user: CurrentUser,
    service: AuthServiceDep,
) -> MessageResponse:
    service.change_password(current_user, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/logout", response_model=MessageResponse)
def logout(current_user: CurrentUser) -> MessageResponse:
    """Tokens are stateless; the client discards them. Logged for auditing."""
    logger.info("User logged out: id=%s", current_user.id)
    return MessageResponse(message="Logout successful")
