"""Unit tests for app.core.security: bcrypt hasher, reset-token helpers, JWT."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import jwt

from app.core.config import settings
from app.core.exceptions import InvalidInputError
from app.core.security import (
    PasswordHasher,
    create_access_token,
    decode_access_token,
    generate_reset_token,
    hash_reset_token,
    normalize_email,
)

from tests.fakes import fast_hasher


class TestPasswordHasher(unittest.TestCase):
    """hash() salts every call; verify() is the only way to compare."""

    def setUp(self) -> None:
        self.hasher = fast_hasher()

    def test_hash_is_not_plaintext_and_verifies(self) -> None:
        hashed = self.hasher.hash("secret1")
        self.assertNotEqual(hashed, "secret1")
        self.assertTrue(self.hasher.verify("secret1", hashed))

    def test_same_plaintext_gives_different_hashes(self) -> None:
        first = self.hasher.hash("secret1")
        second = self.hasher.hash("secret1")
        self.assertNotEqual(first, second)
        self.assertTrue(self.hasher.verify("secret1", first))
        self.assertTrue(self.hasher.verify("secret1", second))

    def test_wrong_password_does_not_verify(self) -> None:
        hashed = self.hasher.hash("secret1")
        self.assertFalse(self.hasher.verify("wrong", hashed))

    def test_empty_plaintext_raises(self) -> None:
        with self.assertRaises(InvalidInputError):
            self.hasher.hash("")

    def test_malformed_hash_returns_false(self) -> None:
        self.assertFalse(self.hasher.verify("secret1", "not-a-bcrypt-hash"))
        self.assertFalse(self.hasher.verify("secret1", ""))

    def test_rounds_are_used(self) -> None:
        hashed = PasswordHasher(rounds=5).hash("secret1")
        self.assertTrue(hashed.startswith("$2b$05$"))

    def test_dummy_verify_always_false_and_runs_bcrypt(self) -> None:
        with patch("app.core.security.bcrypt.checkpw", return_value=True) as checkpw:
            self.assertFalse(self.hasher.dummy_verify("anything"))
        checkpw.assert_called_once()


class TestResetTokenHelpers(unittest.TestCase):
    def test_tokens_are_unique_and_long(self) -> None:
        tokens = {generate_reset_token() for _ in range(50)}
        self.assertEqual(len(tokens), 50)
        # 32 bytes base64url-encoded without padding is 43 characters.
        self.assertTrue(all(len(t) >= 43 for t in tokens))

    def test_hash_is_deterministic_sha256_hex(self) -> None:
        self.assertEqual(hash_reset_token("abc"), hash_reset_token("abc"))
        self.assertEqual(
            hash_reset_token("abc"),
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad",
        )
        self.assertNotEqual(hash_reset_token("abc"), hash_reset_token("abd"))

    def test_normalize_email(self) -> None:
        self.assertEqual(normalize_email("  Ann@X.Com "), "ann@x.com")
        self.assertEqual(normalize_email(""), "")


class TestAccessToken(unittest.TestCase):
    def test_round_trip_carries_sub_and_role(self) -> None:
        token = create_access_token(sub=7, role="admin")
        payload = decode_access_token(token)
        self.assertEqual(payload["sub"], "7")
        self.assertEqual(payload["role"], "admin")

    def test_expired_token_rejected(self) -> None:
        past = datetime.now(UTC) - timedelta(minutes=5)
        token = jwt.encode(
            {"sub": "1", "role": "user", "exp": past, "iat": past - timedelta(minutes=1)},
            settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
        with self.assertRaises(jwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_wrong_signature_rejected(self) -> None:
        token = jwt.encode({"sub": "1"}, "another-secret-that-is-long-enough-for-hs256", algorithm="HS256")
        with self.assertRaises(jwt.InvalidSignatureError):
            decode_access_token(token)


if __name__ == "__main__":
    unittest.main()
