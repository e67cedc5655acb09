"""
Notification Dispatch

Invitation emails go out through Brevo's transactional email API using a
stored template. Delivery is a convenience: the invitation row is the
source of truth, and a failed send is logged and reported as False, never
raised. The inviter can always resend.
"""
from functools import lru_cache
from typing import Any, Dict
import logging

import requests

from travelflow.config import get_settings

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Sends templated emails via the Brevo HTTP API."""

    def __init__(
        self,
        api_key: str,
        api_url: str,
        sender_email: str,
        sender_name: str,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.timeout = timeout
        self.session = requests.Session()

        if not self.api_key:
            logger.warning("BREVO_API_KEY not configured; email sending is disabled")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def send(self, template_id: int, recipient: str, params: Dict[str, Any]) -> bool:
        """Send one templated email. True on acceptance, False otherwise."""
        if not self.enabled:
            logger.info(f"Skipping email to {recipient} (Brevo not configured)")
            return False

        payload = {
            "templateId": template_id,
            "to": [{"email": recipient}],
            "sender": {"name": self.sender_name, "email": self.sender_email},
            "params": params,
        }

        try:
            response = self.session.post(
                self.api_url,
                json=payload,
                headers={"api-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Email dispatch to {recipient} failed: {e}")
            return False

        if not response.ok:
            logger.error(
                f"Email provider rejected message to {recipient}: "
                f"{response.status_code} {response.text}"
            )
            return False

        return True


def invite_link(token: str) -> str:
    settings = get_settings()
    return f"{settings.APP_BASE_URL.rstrip('/')}/auth/accept-invite?token={token}"


def send_invitation_email(notifier, email: str, token: str) -> bool:
    """
    Deliver an invite link. Swallows every error from the dispatcher.
    """
    settings = get_settings()
    try:
        return notifier.send(
            settings.BREVO_TEMPLATE_ID,
            email,
            {"INVITE_LINK": invite_link(token)},
        )
    except Exception:
        logger.exception(f"Invitation email to {email} failed")
        return False


@lru_cache()
def get_notifier() -> NotificationDispatcher:
    """Process-wide dispatcher built from settings."""
    settings = get_settings()
    return NotificationDispatcher(
        api_key=settings.BREVO_API_KEY,
        api_url=settings.BREVO_API_URL,
        sender_email=settings.BREVO_SENDER_EMAIL,
        sender_name=settings.BREVO_SENDER_NAME,
    )
