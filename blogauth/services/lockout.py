"""Failed-attempt lockout policy: pure state transitions on an account's lockout fields.

Nothing here touches the database or the clock; callers pass ``now`` and
persist the mutated account themselves.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from blogauth.core.config import Settings

DEFAULT_LOCKOUT_THRESHOLD = 5
DEFAULT_LOCKOUT_DURATION = timedelta(hours=1)


class LockoutState(Protocol):
    """Fields the policy reads and writes (satisfied by models.User)."""

    failed_login_attempts: int | None
    locked_until: datetime | None
    last_login_at: datetime | None


@dataclass(frozen=True)
class LockoutPolicy:
    threshold: int = DEFAULT_LOCKOUT_THRESHOLD
    duration: timedelta = DEFAULT_LOCKOUT_DURATION

    @classmethod
    def from_settings(cls, settings: "Settings") -> "LockoutPolicy":
        return cls(
            threshold=settings.LOCKOUT_THRESHOLD,
            duration=timedelta(minutes=settings.LOCKOUT_DURATION_MINUTES),
        )


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite drops tzinfo) as UTC."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def lock_remaining(account: LockoutState, now: datetime) -> timedelta | None:
    """Time left on the lock, or None when the account is not locked at ``now``."""
    if account.locked_until is None:
        return None
    remaining = as_utc(account.locked_until) - as_utc(now)
    if remaining <= timedelta(0):
        return None
    return remaining


def is_locked(account: LockoutState, now: datetime) -> bool:
    """True while ``now`` is before ``locked_until``. Expiry needs no write."""
    return lock_remaining(account, now) is not None


def record_failure(account: LockoutState, now: datetime, policy: LockoutPolicy) -> bool:
    """
    Count one failed attempt; engage the lock when the count reaches the threshold.

    A lock that has already expired starts a fresh count, so an account that
    served its lockout gets the full number of attempts again.
    Returns True when this failure engaged the lock.
    """
    if account.locked_until is not None and not is_locked(account, now):
        account.failed_login_attempts = 1
        account.locked_until = None
    else:
        account.failed_login_attempts = (account.failed_login_attempts or 0) + 1

    if account.failed_login_attempts >= policy.threshold and account.locked_until is None:
        account.locked_until = as_utc(now) + policy.duration
        return True
    return False


def record_success(account: LockoutState, now: datetime) -> None:
    account.failed_login_attempts = 0
    account.locked_until = None
    account.last_login_at = as_utc(now)
