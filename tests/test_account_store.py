"""SqlAccountStore against a file-backed SQLite database shared by two sessions."""

import os
import tempfile
import unittest
from datetime import UTC, datetime
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from blogauth.core.errors import AccountLocked, InvalidCredentials
from blogauth.core.security import hash_password, verify_password
from blogauth.models import Base, User
from blogauth.services.account_store import PersistConflict, SqlAccountStore
from blogauth.services.auth import AuthService
from tests.fakes import TEST_ROUNDS, FrozenClock, make_settings

PASSWORD = "password123"


class SqlStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        fd, self.db_path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        self.engine = create_engine(f"sqlite:///{self.db_path}")
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, autoflush=False)
        with self.Session() as db:
            account = User(
                username="writer",
                email="writer@example.com",
                password_hash=hash_password(PASSWORD, TEST_ROUNDS),
            )
            SqlAccountStore(db).add(account)
            self.account_id = account.id

    def tearDown(self) -> None:
        self.engine.dispose()
        os.remove(self.db_path)

    def row(self) -> User:
        with self.Session() as db:
            return db.get(User, self.account_id)


class TestVersionedSave(SqlStoreTestCase):
    def test_new_row_defaults(self) -> None:
        row = self.row()
        self.assertEqual(row.version, 1)
        self.assertEqual(row.failed_login_attempts, 0)
        self.assertTrue(row.is_active)
        self.assertIsNotNone(row.created_at)

    def test_stale_save_conflicts(self) -> None:
        first, second = self.Session(), self.Session()
        try:
            mine = SqlAccountStore(first).get_by_id(self.account_id)
            theirs = SqlAccountStore(second).get_by_id(self.account_id)

            theirs.failed_login_attempts = 3
            SqlAccountStore(second).save(theirs)

            mine.bio = "stale write"
            with self.assertRaises(PersistConflict):
                SqlAccountStore(first).save(mine)
        finally:
            first.close()
            second.close()
        row = self.row()
        self.assertEqual(row.failed_login_attempts, 3)
        self.assertEqual(row.bio, "")
        self.assertEqual(row.version, 2)

    def test_lookup_by_email_ignores_case(self) -> None:
        with self.Session() as db:
            self.assertEqual(SqlAccountStore(db).get_by_email("WRITER@example.com").id, self.account_id)

    def test_delete_removes_row(self) -> None:
        with self.Session() as db:
            store = SqlAccountStore(db)
            store.delete(store.get_by_id(self.account_id))
            self.assertIsNone(store.get_by_id(self.account_id))
            self.assertEqual(store.list_accounts(), [])


class TestAuthenticateWithConcurrentWriter(SqlStoreTestCase):
    def test_failure_recorded_after_lost_race(self) -> None:
        with self.Session() as db:
            db.get(User, self.account_id).failed_login_attempts = 3
            db.commit()

        def concurrent_failure() -> None:
            # Another request records its own failed attempt between our read and our save
            with self.Session() as other:
                other.get(User, self.account_id).failed_login_attempts = 4
                other.commit()

        calls = []

        def verify_with_writer(plain: str, hashed: str) -> bool:
            if not calls:
                concurrent_failure()
            calls.append(plain)
            return verify_password(plain, hashed)

        clock = FrozenClock(datetime.now(UTC))
        session = self.Session()
        try:
            service = AuthService(SqlAccountStore(session), make_settings(), clock=clock)
            with patch("blogauth.services.auth.verify_password", side_effect=verify_with_writer):
                with self.assertRaises(InvalidCredentials):
                    service.authenticate("writer@example.com", "wrongpass1")
            # Verdict reused for the retry since the stored hash did not change
            self.assertEqual(len(calls), 1)

            row = self.row()
            self.assertEqual(row.failed_login_attempts, 5)
            self.assertIsNotNone(row.locked_until)
            self.assertEqual(row.version, 4)

            with self.assertRaises(AccountLocked):
                service.authenticate("writer@example.com", PASSWORD)
        finally:
            session.close()
