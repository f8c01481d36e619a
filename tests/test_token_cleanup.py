"""Unit tests for the expired reset-token sweep."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from app.core.security import hash_reset_token
from app.services.token_cleanup import run_token_cleanup

from tests.fakes import InMemoryCredentialStore, fast_hasher

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class TestTokenCleanupNothingExpired(unittest.TestCase):
    """When no token has expired, run_token_cleanup returns 0."""

    def test_returns_zero(self) -> None:
        store = MagicMock()
        store.clear_expired_reset_tokens.return_value = 0
        self.assertEqual(run_token_cleanup(store, NOW), 0)
        store.clear_expired_reset_tokens.assert_called_once_with(NOW)


class TestTokenCleanupClearsExpired(unittest.TestCase):
    """Expired pairs are cleared together; live ones are left alone."""

    def test_clears_only_expired(self) -> None:
        store = InMemoryCredentialStore(fast_hasher())
        ann = store.create("Ann", "ann@x.com", "secret1")
        bob = store.create("Bob", "bob@x.com", "secret1")
        store.set_reset_token(ann.id, hash_reset_token("a"), NOW - timedelta(seconds=1))
        store.set_reset_token(bob.id, hash_reset_token("b"), NOW + timedelta(minutes=10))

        self.assertEqual(run_token_cleanup(store, NOW), 1)
        self.assertIsNone(ann.reset_token_hash)
        self.assertIsNone(ann.reset_token_expires_at)
        self.assertIsNotNone(bob.reset_token_hash)
        self.assertEqual(run_token_cleanup(store, NOW), 0)

    def test_defaults_to_current_time(self) -> None:
        store = MagicMock()
        store.clear_expired_reset_tokens.return_value = 0
        run_token_cleanup(store)
        (cutoff,), _ = store.clear_expired_reset_tokens.call_args
        self.assertIsNotNone(cutoff.tzinfo)


if __name__ == "__main__":
    unittest.main()
