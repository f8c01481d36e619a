"""Clear reset-token pairs whose expiry has passed."""

import logging
from datetime import UTC, datetime

from app.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


def run_token_cleanup(store: CredentialStore, now: datetime | None = None) -> int:
    """
    Clear both reset fields on every user whose token expired at or before now.

    Expired tokens are already rejected at redeem time; this only tidies the
    rows. Idempotent: safe to run repeatedly. Returns the number of rows cleared.
    """
    cutoff = now or datetime.now(UTC)
    cleared = store.clear_expired_reset_tokens(cutoff)
    if cleared > 0:
        logger.info(
            "Token cleanup run: cutoff=%s, tokens_cleared=%s",
            cutoff.isoformat(),
            cleared,
        )
    return cleared
