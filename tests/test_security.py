"""Unit tests for blogauth.core.security: bcrypt helpers and the JWT codec."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from blogauth.core.errors import InvalidToken, TokenExpired, format_retry_after
from blogauth.core.security import TokenCodec, hash_password, verify_password
from tests.fakes import TEST_ROUNDS, make_settings


class TestPasswordHashing(unittest.TestCase):
    def test_hash_is_salted_and_verifies(self) -> None:
        first = hash_password("password123", TEST_ROUNDS)
        second = hash_password("password123", TEST_ROUNDS)
        self.assertNotEqual(first, second)
        self.assertNotIn("password123", first)
        self.assertTrue(verify_password("password123", first))
        self.assertFalse(verify_password("password124", first))

    def test_garbage_hash_does_not_verify(self) -> None:
        self.assertFalse(verify_password("password123", "not-a-bcrypt-hash"))


class TestTokenCodec(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()
        self.codec = TokenCodec(self.settings)

    def test_round_trip(self) -> None:
        token = self.codec.sign({"sub": "7", "id": 7, "email": "a@b.com"})
        claims = self.codec.verify(token)
        self.assertEqual(claims["sub"], "7")
        self.assertEqual(claims["email"], "a@b.com")
        self.assertEqual(claims["type"], "access")

    def test_session_ttl_from_settings(self) -> None:
        now = datetime.now(UTC)
        claims = self.codec.verify(self.codec.sign({"sub": "1"}, now=now))
        self.assertEqual(claims["exp"] - claims["iat"], int(timedelta(hours=24).total_seconds()))

    def test_refresh_ttl_from_settings(self) -> None:
        now = datetime.now(UTC)
        claims = self.codec.verify(self.codec.sign({"sub": "1"}, "refresh", now=now), "refresh")
        self.assertEqual(claims["exp"] - claims["iat"], int(timedelta(days=7).total_seconds()))

    def test_expired(self) -> None:
        token = self.codec.sign({"sub": "1"}, ttl=timedelta(seconds=-1))
        with self.assertRaises(TokenExpired):
            self.codec.verify(token)

    def test_wrong_secret(self) -> None:
        other = TokenCodec(make_settings(JWT_SECRET="another-secret"))
        with self.assertRaises(InvalidToken):
            self.codec.verify(other.sign({"sub": "1"}))

    def test_malformed(self) -> None:
        with self.assertRaises(InvalidToken):
            self.codec.verify("not.a.token")

    def test_missing_subject(self) -> None:
        now = datetime.now(UTC)
        token = jwt.encode(
            {"type": "access", "iat": now, "exp": now + timedelta(minutes=5)},
            "test-session-secret",
            algorithm="HS256",
        )
        with self.assertRaises(InvalidToken):
            self.codec.verify(token)

    def test_refresh_secret_is_separate(self) -> None:
        refresh = self.codec.sign({"sub": "1"}, "refresh")
        with self.assertRaises(InvalidToken):
            self.codec.verify(refresh, "access")


class TestFormatRetryAfter(unittest.TestCase):
    def test_minutes_round_up(self) -> None:
        self.assertEqual(format_retry_after(timedelta(minutes=29, seconds=1)), "30 minutes")
        self.assertEqual(format_retry_after(timedelta(seconds=61)), "2 minutes")
        self.assertEqual(format_retry_after(timedelta(seconds=60)), "1 minute")

    def test_seconds(self) -> None:
        self.assertEqual(format_retry_after(timedelta(seconds=45)), "45 seconds")
        self.assertEqual(format_retry_after(timedelta(milliseconds=10)), "1 second")
