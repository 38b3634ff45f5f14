"""In-memory collaborators shared by the service tests."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from blogauth.core.config import Settings
from blogauth.core.security import hash_password
from blogauth.models import User
from blogauth.services.account_store import PersistConflict

ROW_FIELDS = (
    "id",
    "username",
    "email",
    "password_hash",
    "first_name",
    "last_name",
    "bio",
    "avatar",
    "role",
    "is_active",
    "email_verified",
    "failed_login_attempts",
    "locked_until",
    "last_login_at",
    "created_at",
    "version",
)

# bcrypt's minimum cost keeps the suite fast
TEST_ROUNDS = 4


def make_settings(**overrides: Any) -> Settings:
    """Settings for tests: no .env file, cheap bcrypt, test secrets."""
    values: dict[str, Any] = {
        "APP_ENV": "test",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": "test-session-secret",
        "JWT_REFRESH_SECRET": "test-refresh-secret",
        "BCRYPT_ROUNDS": TEST_ROUNDS,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime.now(UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class InMemoryAccountStore:
    """
    AccountStore keeping rows as plain dicts.

    Reads hand out fresh User objects and saves check the row version, so two
    readers of the same row behave like two DB sessions.
    """

    def __init__(self) -> None:
        self.rows: dict[int, dict[str, Any]] = {}
        self.saves = 0
        self.fail_with: Exception | None = None
        self.always_conflict = False
        # Runs once just before the next save; used to simulate a concurrent writer
        self.before_save: Callable[[], None] | None = None
        self._next_id = 1

    def put(self, password: str = "password123", **fields: Any) -> int:
        row: dict[str, Any] = {
            "username": f"user{self._next_id}",
            "email": f"user{self._next_id}@example.com",
            "password_hash": hash_password(password, TEST_ROUNDS),
            "first_name": "",
            "last_name": "",
            "bio": "",
            "avatar": "",
            "role": "user",
            "is_active": True,
            "email_verified": False,
            "failed_login_attempts": 0,
            "locked_until": None,
            "last_login_at": None,
            "created_at": datetime.now(UTC),
            "version": 1,
        }
        row.update(fields)
        row["id"] = self._next_id
        self.rows[self._next_id] = row
        self._next_id += 1
        return row["id"]

    def _load(self, row: dict[str, Any] | None) -> User | None:
        return User(**row) if row is not None else None

    def get_by_id(self, account_id: int) -> User | None:
        return self._load(self.rows.get(account_id))

    def get_by_email(self, email: str) -> User | None:
        for row in self.rows.values():
            if row["email"].lower() == email.lower():
                return self._load(row)
        return None

    def get_by_username(self, username: str) -> User | None:
        for row in self.rows.values():
            if row["username"] == username:
                return self._load(row)
        return None

    def add(self, account: User) -> User:
        if self.get_by_email(account.email) or self.get_by_username(account.username):
            raise PersistConflict("duplicate")
        fields = {f: getattr(account, f) for f in ROW_FIELDS if f not in ("id", "version", "created_at")}
        account_id = self.put(**fields)
        return self.get_by_id(account_id)

    def save(self, account: User) -> None:
        if self.before_save is not None:
            hook, self.before_save = self.before_save, None
            hook()
        if self.fail_with is not None:
            raise self.fail_with
        row = self.rows[account.id]
        if self.always_conflict or row["version"] != account.version:
            raise PersistConflict(f"account {account.id} was modified concurrently")
        updated = {f: getattr(account, f) for f in ROW_FIELDS}
        updated["version"] = row["version"] + 1
        self.rows[account.id] = updated
        account.version = updated["version"]
        self.saves += 1

    def delete(self, account: User) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        row = self.rows.get(account.id)
        if row is None or row["version"] != account.version:
            raise PersistConflict(f"account {account.id} was modified concurrently")
        del self.rows[account.id]

    def list_accounts(self) -> list[User]:
        return [self._load(self.rows[account_id]) for account_id in sorted(self.rows)]
