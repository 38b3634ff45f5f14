"""Account record store: lookup by identifier and versioned persistence."""

import logging
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from blogauth.models import User

logger = logging.getLogger(__name__)


class PersistConflict(Exception):
    """The row changed underneath us (version mismatch) or a unique key collided."""


class PersistError(Exception):
    """The store failed for a reason other than a conflict."""


class AccountStore(Protocol):
    """Persistence operations the auth service depends on."""

    def get_by_id(self, account_id: int) -> User | None:
        ...

    def get_by_email(self, email: str) -> User | None:
        ...

    def get_by_username(self, username: str) -> User | None:
        ...

    def add(self, account: User) -> User:
        ...

    def save(self, account: User) -> None:
        ...

    def delete(self, account: User) -> None:
        ...

    def list_accounts(self) -> list[User]:
        ...


class SqlAccountStore:
    """AccountStore backed by a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, account_id: int) -> User | None:
        return self._session.get(User, account_id, populate_existing=True)

    def get_by_email(self, email: str) -> User | None:
        stmt = (
            select(User)
            .where(func.lower(User.email) == email.lower())
            .execution_options(populate_existing=True)
        )
        return self._session.scalars(stmt).first()

    def get_by_username(self, username: str) -> User | None:
        stmt = select(User).where(User.username == username)
        return self._session.scalars(stmt).first()

    def list_accounts(self) -> list[User]:
        return list(self._session.scalars(select(User).order_by(User.id)))

    def add(self, account: User) -> User:
        self._session.add(account)
        try:
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            raise PersistConflict(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise PersistError(str(exc)) from exc
        self._session.refresh(account)
        return account

    def save(self, account: User) -> None:
        """
        Commit pending changes to ``account``. Only dirty columns are written and
        the UPDATE is conditioned on the row version read earlier.
        """
        account_id = account.id
        try:
            self._session.commit()
        except StaleDataError as exc:
            self._session.rollback()
            logger.warning("Concurrent update on account id=%s", account_id)
            raise PersistConflict(f"account {account_id} was modified concurrently") from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise PersistError(str(exc)) from exc

    def delete(self, account: User) -> None:
        """Remove the row; the DELETE is conditioned on the row version like ``save``."""
        account_id = account.id
        self._session.delete(account)
        try:
            self._session.commit()
        except StaleDataError as exc:
            self._session.rollback()
            logger.warning("Concurrent update on account id=%s during delete", account_id)
            raise PersistConflict(f"account {account_id} was modified concurrently") from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise PersistError(str(exc)) from exc
