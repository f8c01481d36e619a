"""Unit tests for app.services.accounts: register and authenticate."""

import unittest
from unittest.mock import patch

from app.core.exceptions import AuthenticationError, DuplicateEmailError, ValidationError
from app.schemas.auth import IdentityAssertion
from app.services.accounts import AccountService

from tests.fakes import InMemoryCredentialStore, fast_hasher


class AccountTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.hasher = fast_hasher()
        self.store = InMemoryCredentialStore(self.hasher)
        self.accounts = AccountService(self.store, self.hasher)


class TestRegister(AccountTestCase):
    def test_register_returns_identity_without_credentials(self) -> None:
        identity = self.accounts.register("Ann", "ann@x.com", "secret1")
        self.assertIsInstance(identity, IdentityAssertion)
        self.assertEqual(
            identity.model_dump(exclude={"id"}),
            {"name": "Ann", "email": "ann@x.com", "role": "user"},
        )
        self.assertNotIn("password_hash", identity.model_dump())

    def test_register_never_creates_admin(self) -> None:
        identity = self.accounts.register("Admin", "admin@adikart.com", "secret1")
        self.assertEqual(identity.role, "user")

    def test_duplicate_email_rejected(self) -> None:
        self.accounts.register("Ann", "ann@x.com", "secret1")
        with self.assertRaises(DuplicateEmailError):
            self.accounts.register("Ann", " ANN@X.COM", "secret2")

    def test_short_password_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.accounts.register("Ann", "ann@x.com", "12345")

    def test_missing_field_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.accounts.register("", "ann@x.com", "secret1")


class TestAuthenticate(AccountTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.registered = self.accounts.register("Ann", "ann@x.com", "secret1")

    def test_register_then_login_matches(self) -> None:
        identity = self.accounts.authenticate("ann@x.com", "secret1")
        self.assertEqual(identity, self.registered)
        self.assertEqual(identity.role, "user")

    def test_login_normalizes_email(self) -> None:
        identity = self.accounts.authenticate("  Ann@X.com", "secret1")
        self.assertEqual(identity.email, "ann@x.com")

    def test_wrong_password_and_unknown_email_fail_identically(self) -> None:
        with self.assertRaises(AuthenticationError) as wrong_password:
            self.accounts.authenticate("ann@x.com", "wrong")
        with self.assertRaises(AuthenticationError) as unknown_email:
            self.accounts.authenticate("nobody@x.com", "secret1")
        self.assertIs(type(wrong_password.exception), type(unknown_email.exception))
        self.assertEqual(wrong_password.exception.message, unknown_email.exception.message)
        self.assertEqual(wrong_password.exception.message, "Invalid email or password.")

    def test_unknown_email_still_runs_a_hash_check(self) -> None:
        with patch.object(self.hasher, "dummy_verify", wraps=self.hasher.dummy_verify) as dummy:
            with self.assertRaises(AuthenticationError):
                self.accounts.authenticate("nobody@x.com", "secret1")
        dummy.assert_called_once_with("secret1")

    def test_login_after_password_update(self) -> None:
        self.store.update_password(self.registered.id, "newsecret")
        with self.assertRaises(AuthenticationError):
            self.accounts.authenticate("ann@x.com", "secret1")
        self.assertEqual(self.accounts.authenticate("ann@x.com", "newsecret").id, self.registered.id)


if __name__ == "__main__":
    unittest.main()
