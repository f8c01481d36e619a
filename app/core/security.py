"""Password hashing, reset-token helpers, and JWT creation/verification."""

import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import settings
from app.core.exceptions import InvalidInputError

# Min/max lengths for input validation.
NAME_MAX_LEN = 255
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

# 32 random bytes = 256 bits of entropy per reset token.
RESET_TOKEN_BYTES = 32

# bcrypt only looks at the first 72 bytes of input.
_BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """bcrypt hash/verify with a fresh salt per hash."""

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Raises InvalidInputError when empty."""
        if not plain_password:
            raise InvalidInputError()
        pw_bytes = plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain_password: str, hashed: str) -> bool:
        """Verify a plain password against a stored hash."""
        if not plain_password or not hashed:
            return False
        pw_bytes = plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def dummy_verify(self, plain_password: str) -> bool:
        """
        Run a verify against a throwaway hash and return False.

        Used when no account matches so that the unknown-account branch costs
        the same as a wrong password.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(secrets.token_hex(16))
        self.verify(plain_password or "x", self._dummy_hash)
        return False


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address before lookup or storage."""
    return (email or "").strip().lower()


def generate_reset_token() -> str:
    """Return a new URL-safe random reset token."""
    return secrets.token_urlsafe(RESET_TOKEN_BYTES)


def hash_reset_token(raw_token: str) -> str:
    """SHA-256 hex digest of a raw reset token; only this value is stored."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def create_access_token(sub: str | int, role: str) -> str:
    """Create a JWT access token with sub (user id), role, and exp."""
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(sub),
        "role": role,
        "exp": expire,
        "iat": now,
    }
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, role, exp, iat).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
    )
