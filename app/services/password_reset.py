"""Password reset: issue single-use emailed tokens and redeem them for a new password."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from app.core.exceptions import (
    DispatchError,
    InvalidOrExpiredTokenError,
    StorageError,
    WeakPasswordError,
)
from app.core.security import (
    PASSWORD_MIN_LEN,
    generate_reset_token,
    hash_reset_token,
    normalize_email,
)
from app.schemas.auth import MessageResponse
from app.services.credential_store import CredentialStore
from app.services.notifications import ResetLinkNotifier

logger = logging.getLogger(__name__)

# Same acknowledgment whether or not the address has an account.
RESET_REQUESTED_MESSAGE = (
    "If an account exists for this email, a password reset link has been sent."
)
RESET_COMPLETED_MESSAGE = "Password successfully reset. You can now log in."

DEFAULT_EXPIRE_MINUTES = 15


def _utcnow() -> datetime:
    return datetime.now(UTC)


def build_reset_link(base_url: str, raw_token: str) -> str:
    """Append the raw token as the `token` query parameter, keeping existing params."""
    parts = urlsplit(base_url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "token"]
    query.append(("token", raw_token))
    return urlunsplit(parts._replace(query=urlencode(query)))


class ResetTokenIssuer:
    """
    Mints a reset token for an email address and hands the link to the notifier.

    Only the SHA-256 of the token is stored; the raw token exists only in the
    link sent to the user. Issuing again replaces any pending token.
    """

    def __init__(
        self,
        store: CredentialStore,
        notifier: ResetLinkNotifier,
        reset_url: str,
        expire_minutes: int = DEFAULT_EXPIRE_MINUTES,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.reset_url = reset_url
        self.expire_minutes = expire_minutes
        self.clock = clock

    def issue(self, email: str) -> MessageResponse:
        """
        Start a reset for email. Returns the generic acknowledgment for known and
        unknown addresses alike. Raises DispatchError (after clearing the new
        token) when the notifier reports failure.
        """
        raw_token = generate_reset_token()
        token_hash = hash_reset_token(raw_token)
        user = self.store.find_by_email(normalize_email(email))
        if user is None:
            return MessageResponse(message=RESET_REQUESTED_MESSAGE)

        expires_at = self.clock() + timedelta(minutes=self.expire_minutes)
        self.store.set_reset_token(user.id, token_hash, expires_at)

        link = build_reset_link(self.reset_url, raw_token)
        if not self.notifier.send_reset_link(user.email, link):
            # A token issued by a concurrent request since then is left in place.
            cleared = self.store.clear_reset_token(user.id, token_hash)
            logger.warning(
                "Reset link dispatch failed",
                extra={"user_id": user.id, "token_cleared": cleared},
            )
            raise DispatchError()

        logger.info("Reset token issued", extra={"user_id": user.id})
        return MessageResponse(message=RESET_REQUESTED_MESSAGE)


class PasswordResetter:
    """Redeems a raw reset token for a new password, at most once."""

    def __init__(
        self,
        store: CredentialStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.clock = clock

    def reset(self, raw_token: str, new_password: str) -> MessageResponse:
        """
        Replace the password of the user holding raw_token.

        Raises InvalidOrExpiredTokenError when no live token matches (including
        when a concurrent reset already used it) and WeakPasswordError when the
        new password is too short. Failures leave the pending token untouched.
        """
        if not raw_token:
            raise InvalidOrExpiredTokenError()
        token_hash = hash_reset_token(raw_token)
        now = self.clock()
        user = self.store.find_by_reset_token_hash(token_hash, now)
        if user is None:
            raise InvalidOrExpiredTokenError()
        if len(new_password or "") < PASSWORD_MIN_LEN:
            raise WeakPasswordError()

        if not self.store.complete_reset(user.id, token_hash, new_password, now):
            raise InvalidOrExpiredTokenError()

        logger.info("Password reset completed", extra={"user_id": user.id})
        return MessageResponse(message=RESET_COMPLETED_MESSAGE)


def issue_in_background(issuer: ResetTokenIssuer, email: str) -> None:
    """
    Run issuer.issue after the response has gone out.

    The caller already answered with the generic acknowledgment, so failures
    are only logged.
    """
    try:
        issuer.issue(email)
    except DispatchError:
        logger.error("Reset link dispatch failed after acknowledgment")
    except StorageError:
        logger.error("Reset token issue failed after acknowledgment")
