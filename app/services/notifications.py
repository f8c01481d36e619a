"""Reset-link delivery: HTTP email API notifier and a logging fallback."""

from __future__ import annotations

import html
import logging
from typing import TYPE_CHECKING, Protocol

import httpx

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


class ResetLinkNotifier(Protocol):
    """Delivers a reset link to an address. Returns False when delivery failed."""

    def send_reset_link(self, to_address: str, link: str) -> bool: ...


def render_reset_email(store_name: str, link: str, expire_minutes: int) -> tuple[str, str]:
    """Return (subject, html body) for the reset email."""
    safe_link = html.escape(link, quote=True)
    subject = f"{store_name} Password Reset Request"
    body = (
        '<div style="font-family: Arial, sans-serif; padding: 20px; border: 1px solid #ddd; border-radius: 8px;">'
        '<h2 style="color: #4F46E5;">Password Reset Request</h2>'
        f"<p>We received a request to reset your password for your {html.escape(store_name)} account. "
        "Click the button below to set a new password:</p>"
        f'<a href="{safe_link}" style="display: inline-block; padding: 10px 20px; margin: 15px 0; '
        'background-color: #10B981; color: white; text-decoration: none; border-radius: 5px; font-weight: bold;">'
        "Reset My Password</a>"
        f"<p>This link will expire in {expire_minutes} minutes.</p>"
        "<p>If you did not request a password reset, please ignore this email.</p>"
        "</div>"
    )
    return subject, body


def _redact_link(link: str) -> str:
    base, sep, token = link.partition("token=")
    if not sep:
        return link
    preview = f"{token[:6]}...{token[-4:]}" if len(token) > 12 else "redacted"
    return f"{base}{sep}{preview}"


class EmailResetLinkNotifier:
    """Sends the reset email through an HTTP email API (POST {base}/emails)."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        sender: str,
        store_name: str,
        expire_minutes: int,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.sender = sender
        self.store_name = store_name
        self.expire_minutes = expire_minutes
        self.timeout = timeout
        self._transport = transport

    def send_reset_link(self, to_address: str, link: str) -> bool:
        subject, body = render_reset_email(self.store_name, link, self.expire_minutes)
        payload = {
            "from": self.sender,
            "to": [to_address],
            "subject": subject,
            "html": body,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            with httpx.Client(transport=self._transport, timeout=self.timeout) as client:
                resp = client.post(f"{self.base_url}/emails", json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(
                "Reset email dispatch failed",
                extra={"to_address": to_address, "reason": str(e)[:200]},
            )
            return False
        if resp.status_code >= 400:
            logger.error(
                "Reset email dispatch rejected",
                extra={
                    "to_address": to_address,
                    "status_code": resp.status_code,
                    "reason": (resp.text or "")[:200],
                },
            )
            return False
        logger.info("Reset email sent", extra={"to_address": to_address})
        return True


class LoggingResetLinkNotifier:
    """No-op delivery used until an email API key is configured."""

    def __init__(self, show_link: bool = False) -> None:
        self.show_link = show_link

    def send_reset_link(self, to_address: str, link: str) -> bool:
        logger.info(
            "Reset link not emailed (no email API configured): %s",
            link if self.show_link else _redact_link(link),
            extra={"to_address": to_address},
        )
        return True


def build_reset_notifier(settings: Settings) -> ResetLinkNotifier:
    """Pick the HTTP email notifier when an API key is set, else the logging one."""
    api_key = settings.EMAIL_API_KEY.get_secret_value() if settings.EMAIL_API_KEY else ""
    if api_key.strip():
        return EmailResetLinkNotifier(
            base_url=settings.EMAIL_API_BASE_URL,
            api_key=api_key.strip(),
            sender=settings.EMAIL_FROM,
            store_name=settings.STORE_NAME,
            expire_minutes=settings.RESET_TOKEN_EXPIRE_MINUTES,
            timeout=settings.EMAIL_REQUEST_TIMEOUT_SEC,
        )
    return LoggingResetLinkNotifier(show_link=settings.APP_ENV == "dev")
