"""Password hashing and JWT creation/verification for authentication."""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import bcrypt
import jwt

from blogauth.core.config import Settings
from blogauth.core.errors import InvalidToken, TokenExpired

# Default bcrypt cost when a caller does not pass settings.BCRYPT_ROUNDS.
BCRYPT_ROUNDS = 12

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 30
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

TokenType = Literal["access", "refresh"]


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


class TokenCodec:
    """
    Signs and verifies session and refresh JWTs.

    Keys and lifetimes come from the Settings instance passed in; nothing is
    read from module state. Each token carries a random ``jti`` so two tokens
    issued in the same second for the same account are still distinct.
    """

    def __init__(self, settings: Settings) -> None:
        self._algorithm = settings.JWT_ALGORITHM
        self._secrets: dict[TokenType, str] = {
            "access": settings.JWT_SECRET.get_secret_value(),
            "refresh": settings.JWT_REFRESH_SECRET.get_secret_value(),
        }
        self._ttls: dict[TokenType, timedelta] = {
            "access": timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
            "refresh": timedelta(minutes=settings.JWT_REFRESH_EXPIRE_MINUTES),
        }

    def sign(
        self,
        claims: dict[str, Any],
        token_type: TokenType = "access",
        ttl: timedelta | None = None,
        now: datetime | None = None,
    ) -> str:
        issued_at = now or datetime.now(UTC)
        payload: dict[str, Any] = {
            **claims,
            "type": token_type,
            "jti": uuid.uuid4().hex,
            "iat": issued_at,
            "exp": issued_at + (ttl if ttl is not None else self._ttls[token_type]),
        }
        return jwt.encode(payload, self._secrets[token_type], algorithm=self._algorithm)

    def verify(self, token: str, token_type: TokenType = "access") -> dict[str, Any]:
        """
        Decode and validate a token; return its claims.
        Raises TokenExpired past ``exp`` and InvalidToken for anything else wrong.
        """
        try:
            payload = jwt.decode(
                token,
                self._secrets[token_type],
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except jwt.PyJWTError as exc:
            raise InvalidToken() from exc
        if payload.get("type") != token_type:
            raise InvalidToken()
        return payload
