"""Account administration: view, update and delete accounts by id.

Owners may read and edit their own profile fields. Changing ``role`` or
``is_active``, reading other accounts and deleting accounts are admin-only.
"""

import logging
from typing import Any

from blogauth.core.config import Settings
from blogauth.core.errors import CannotDeleteSelf, Forbidden, StorageFailure, UserNotFound
from blogauth.models import User
from blogauth.services.account_store import AccountStore, PersistConflict, PersistError
from blogauth.services.auth import apply_profile_changes, persist_change

logger = logging.getLogger(__name__)

ADMIN_FIELDS = ("role", "is_active")


def is_admin(account: User) -> bool:
    return account.role == "admin"


class UserService:
    def __init__(self, store: AccountStore, settings: Settings) -> None:
        self._store = store
        self._settings = settings

    def list_users(self) -> list[User]:
        return self._store.list_accounts()

    def get_user(self, actor: User, account_id: int) -> User:
        """Own account or, for admins, any account."""
        if actor.id != account_id and not is_admin(actor):
            raise Forbidden("Access denied")
        account = self._store.get_by_id(account_id)
        if account is None:
            raise UserNotFound()
        return account

    def update_user(self, actor: User, account_id: int, changes: dict[str, Any]) -> User:
        """
        Apply profile fields, plus ``role`` / ``is_active`` when ``actor`` is an admin.

        Raises UserNotFound, Forbidden("Access denied") when a non-admin targets
        someone else, and Forbidden when a non-admin sends an admin-only field.
        """
        if self._store.get_by_id(account_id) is None:
            raise UserNotFound()
        admin = is_admin(actor)
        if actor.id != account_id and not admin:
            raise Forbidden("Access denied")
        admin_changes = {f: changes[f] for f in ADMIN_FIELDS if changes.get(f) is not None}
        if admin_changes and not admin:
            raise Forbidden("Insufficient permissions to modify role or active status")

        def _apply(account: User) -> None:
            apply_profile_changes(account, changes)
            for field, value in admin_changes.items():
                setattr(account, field, value)

        updated = persist_change(
            self._store,
            account_id,
            _apply,
            attempts=self._settings.PERSIST_RETRY_LIMIT,
            failure_message="Server error updating user",
        )
        if admin_changes:
            logger.info(
                "Admin id=%s changed %s on account id=%s",
                actor.id,
                ", ".join(sorted(admin_changes)),
                account_id,
            )
        else:
            logger.info("User updated: id=%s", account_id)
        return updated

    def delete_user(self, actor: User, account_id: int) -> None:
        """Admin-only removal; the caller's own account cannot be deleted."""
        if not is_admin(actor):
            raise Forbidden()
        if actor.id == account_id:
            raise CannotDeleteSelf()
        for _ in range(self._settings.PERSIST_RETRY_LIMIT):
            account = self._store.get_by_id(account_id)
            if account is None:
                raise UserNotFound()
            try:
                self._store.delete(account)
            except PersistConflict:
                logger.warning("Retrying delete of account id=%s after concurrent update", account_id)
                continue
            except PersistError as exc:
                logger.exception("Could not delete account id=%s", account_id)
                raise StorageFailure("Server error deleting user") from exc
            logger.info("Admin id=%s deleted account id=%s", actor.id, account_id)
            return
        raise StorageFailure("Server error deleting user")
