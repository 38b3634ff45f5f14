"""Credential verification, lockout enforcement and token issuance.

AuthService is the only writer of an account's lockout fields. Every attempt
that changes state is persisted through a versioned save; when a concurrent
attempt on the same account wins the race, the attempt is re-evaluated
against the fresh row so the failure threshold cannot be skipped by parallel
requests.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from blogauth.core.config import Settings
from blogauth.core.errors import (
    AccountAlreadyExists,
    AccountInactive,
    AccountLocked,
    AccountNotFound,
    IncorrectPassword,
    InvalidCredentials,
    InvalidToken,
    LockoutBookkeepingError,
    StorageFailure,
    UserNotFound,
)
from blogauth.core.security import TokenCodec, TokenType, hash_password, verify_password
from blogauth.models import User
from blogauth.services.account_store import AccountStore, PersistConflict, PersistError
from blogauth.services.lockout import LockoutPolicy, lock_remaining, record_failure, record_success

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


def normalize_email(email: str) -> str:
    return email.strip().lower()


PROFILE_FIELDS = ("first_name", "last_name", "bio", "avatar")


def apply_profile_changes(account: User, changes: dict[str, Any]) -> None:
    """Copy the profile fields present (and not None) in ``changes`` onto ``account``."""
    for field in PROFILE_FIELDS:
        if changes.get(field) is not None:
            setattr(account, field, changes[field])


def persist_change(
    store: AccountStore,
    account_id: int,
    mutate: Callable[[User], None],
    attempts: int,
    failure_message: str,
) -> User:
    """
    Re-read the account, apply ``mutate`` and save it, retrying on version conflicts.

    Raises UserNotFound if the account disappeared, and StorageFailure carrying
    ``failure_message`` once retries run out or the store fails outright.
    """
    for _ in range(attempts):
        account = store.get_by_id(account_id)
        if account is None:
            raise UserNotFound()
        mutate(account)
        try:
            store.save(account)
        except PersistConflict:
            logger.warning("Retrying write to account id=%s after concurrent update", account_id)
            continue
        except PersistError as exc:
            logger.exception("Could not save account id=%s", account_id)
            raise StorageFailure(failure_message) from exc
        return account
    logger.error("Gave up writing account id=%s after repeated conflicts", account_id)
    raise StorageFailure(failure_message)


@dataclass
class AuthResult:
    """Authenticated account plus the token pair issued for it."""

    account: User
    token: str
    refresh_token: str


@dataclass
class RegistrationInput:
    username: str
    email: str
    password: str
    first_name: str = ""
    last_name: str = ""


class AuthService:
    def __init__(
        self,
        store: AccountStore,
        settings: Settings,
        codec: TokenCodec | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._settings = settings
        self._codec = codec or TokenCodec(settings)
        self._policy = LockoutPolicy.from_settings(settings)
        self._clock = clock

    def authenticate(self, email: str, password: str) -> AuthResult:
        """
        Verify (email, password) and return the account with a fresh token pair.

        Raises InvalidCredentials for an unknown email or a wrong password (same
        message for both), AccountInactive for disabled accounts, AccountLocked
        while the lockout window is open (the password is not checked then), and
        LockoutBookkeepingError when the attempt cannot be recorded.
        """
        identifier = normalize_email(email or "")
        if not identifier or not password:
            raise InvalidCredentials()

        # bcrypt is the expensive step; reuse the verdict across retries while the hash is unchanged
        verdicts: dict[str, bool] = {}
        for _ in range(self._settings.PERSIST_RETRY_LIMIT):
            account = self._store.get_by_email(identifier)
            if account is None:
                logger.info("Login failed: unknown account")
                raise InvalidCredentials()
            if not account.is_active:
                logger.info("Login refused for disabled account id=%s", account.id)
                raise AccountInactive()

            now = self._clock()
            remaining = lock_remaining(account, now)
            if remaining is not None:
                logger.info(
                    "Login refused for locked account id=%s (remaining=%ss)",
                    account.id,
                    int(remaining.total_seconds()),
                )
                raise AccountLocked(remaining)

            stored_hash = account.password_hash
            if stored_hash not in verdicts:
                verdicts[stored_hash] = verify_password(password, stored_hash)
            matched = verdicts[stored_hash]

            account_id = account.id
            if matched:
                record_success(account, now)
                engaged = False
            else:
                engaged = record_failure(account, now, self._policy)
                attempts = account.failed_login_attempts

            try:
                self._store.save(account)
            except PersistConflict:
                logger.warning("Retrying login for account id=%s after concurrent update", account_id)
                continue
            except PersistError as exc:
                logger.exception("Could not record login attempt for account id=%s", account_id)
                raise LockoutBookkeepingError(str(exc)) from exc

            if not matched:
                if engaged:
                    logger.warning(
                        "Account id=%s locked for %s after %s failed attempts",
                        account_id,
                        self._policy.duration,
                        attempts,
                    )
                else:
                    logger.info("Login failed for account id=%s (attempts=%s)", account_id, attempts)
                raise InvalidCredentials()

            logger.info("User logged in: id=%s", account_id)
            return self._issue_pair(account)

        logger.error("Gave up recording login attempt for %s after repeated conflicts", identifier)
        raise LockoutBookkeepingError("login attempt could not be recorded")

    def issue_session_token(self, account: User) -> str:
        claims: dict[str, Any] = {
            "sub": str(account.id),
            "id": account.id,
            "email": account.email,
            "username": account.username,
        }
        return self._codec.sign(claims, "access", now=self._clock())

    def issue_refresh_token(self, account: User) -> str:
        claims: dict[str, Any] = {"sub": str(account.id), "id": account.id}
        return self._codec.sign(claims, "refresh", now=self._clock())

    def verify_session_token(self, token: str) -> User:
        """Return the account a valid session token names."""
        return self._account_for_token(token, "access")

    def refresh(self, refresh_token: str) -> AuthResult:
        """Exchange a valid refresh token for a new token pair."""
        account = self._account_for_token(refresh_token, "refresh")
        logger.info("Refreshed tokens for account id=%s", account.id)
        return self._issue_pair(account)

    def register(self, payload: RegistrationInput) -> AuthResult:
        email = normalize_email(payload.email)
        username = payload.username.strip()
        if self._store.get_by_email(email) is not None:
            raise AccountAlreadyExists("email")
        if self._store.get_by_username(username) is not None:
            raise AccountAlreadyExists("username")

        account = User(
            username=username,
            email=email,
            password_hash=hash_password(payload.password, self._settings.BCRYPT_ROUNDS),
            first_name=payload.first_name,
            last_name=payload.last_name,
            bio="",
            avatar="",
            role="user",
            is_active=True,
            email_verified=False,
            failed_login_attempts=0,
        )
        try:
            account = self._store.add(account)
        except PersistConflict as exc:
            # Lost a race with another registration for the same email or username
            field = "email" if self._store.get_by_email(email) is not None else "username"
            raise AccountAlreadyExists(field) from exc
        except PersistError as exc:
            logger.exception("Could not create account for %s", email)
            raise StorageFailure("Server error during registration") from exc
        logger.info("New user registered: id=%s", account.id)
        return self._issue_pair(account)

    def update_profile(self, account: User, changes: dict[str, Any]) -> User:
        """Apply a partial profile update (first_name, last_name, bio, avatar)."""
        updated = persist_change(
            self._store,
            account.id,
            lambda fresh: apply_profile_changes(fresh, changes),
            attempts=self._settings.PERSIST_RETRY_LIMIT,
            failure_message="Server error updating profile",
        )
        logger.info("User profile updated: id=%s", updated.id)
        return updated

    def change_password(self, account: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, account.password_hash):
            raise IncorrectPassword()
        new_hash = hash_password(new_password, self._settings.BCRYPT_ROUNDS)

        def _set_hash(fresh: User) -> None:
            fresh.password_hash = new_hash

        persist_change(
            self._store,
            account.id,
            _set_hash,
            attempts=self._settings.PERSIST_RETRY_LIMIT,
            failure_message="Server error changing password",
        )
        logger.info("Password changed for user: id=%s", account.id)

    def _account_for_token(self, token: str, token_type: TokenType) -> User:
        claims = self._codec.verify(token, token_type)
        try:
            account_id = int(claims["sub"])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidToken() from exc
        account = self._store.get_by_id(account_id)
        if account is None:
            raise AccountNotFound()
        if not account.is_active:
            raise AccountInactive()
        return account

    def _issue_pair(self, account: User) -> AuthResult:
        return AuthResult(
            account=account,
            token=self.issue_session_token(account),
            refresh_token=self.issue_refresh_token(account),
        )
