"""
Policy confirmation email service.

Renders the "policy is active" email and sends it through Resend.

Public API:
  render_policy_email(notification: NotificationRequest) -> str
  PolicyMailer.send(notification: NotificationRequest) -> Optional[str]
  get_policy_mailer() -> PolicyMailer   (FastAPI dependency)

A checkout that collected no customer email still gets its policy row, but
no send is attempted: PolicyMailer.send raises NotificationError before
calling Resend, and the webhook logs it like any other send failure.

Environment variables
---------------------
RESEND_API_KEY      Resend API key.
POLICY_EMAIL_FROM   Sender address (default: "LegalFooter <onboarding@resend.dev>").
"""

import html
import logging
import os
from typing import Optional

import resend

from app.models.policy import NotificationRequest

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "LegalFooter <onboarding@resend.dev>"
SUBJECT = "Your LegalFooter Policy is Active"
POLICY_NUMBER_PREFIX = "LFP-"


class NotificationError(Exception):
    """The confirmation email could not be sent."""


def policy_number(record_id) -> str:
    return f"{POLICY_NUMBER_PREFIX}{record_id}"


def render_policy_email(notification: NotificationRequest) -> str:
    """
    Build the HTML body of the confirmation email.

    The domain comes from a checkout custom field typed by the customer, so
    it is escaped. A missing domain renders as an empty value.
    """
    domain = html.escape(notification.domain or "")
    number = html.escape(policy_number(notification.record_id))
    return (
        "<h2>Welcome to LegalFooter</h2>\n"
        "<p>Thank you for protecting your website.</p>\n"
        "<ul>\n"
        f"  <li><strong>Domain:</strong> {domain}</li>\n"
        f"  <li><strong>Policy Number:</strong> {number}</li>\n"
        "</ul>\n"
        "<p>If you have any questions, just reply to this email.</p>\n"
    )


class PolicyMailer:
    """Sends policy confirmation emails via the Resend API."""

    def __init__(self, api_key: Optional[str], sender: str = DEFAULT_SENDER):
        self.api_key = api_key
        self.sender = sender
        if api_key:
            resend.api_key = api_key

    def send(self, notification: NotificationRequest) -> Optional[str]:
        """
        Send one confirmation email.

        Returns:
            The Resend email id, when the API returns one.

        Raises:
            NotificationError: no recipient, no API key, or the send failed.
        """
        if not notification.email:
            raise NotificationError("Checkout session has no customer email")
        if not self.api_key:
            raise NotificationError("RESEND_API_KEY is not configured")

        params = {
            "from": self.sender,
            "to": [notification.email],
            "subject": SUBJECT,
            "html": render_policy_email(notification),
        }
        try:
            response = resend.Emails.send(params)
        except Exception as e:
            raise NotificationError(f"Resend send failed: {e}") from e

        if isinstance(response, dict):
            return response.get("id")
        return None


_policy_mailer = PolicyMailer(
    api_key=os.getenv("RESEND_API_KEY"),
    sender=os.getenv("POLICY_EMAIL_FROM", DEFAULT_SENDER),
)


def get_policy_mailer() -> PolicyMailer:
    """FastAPI dependency returning the process-wide PolicyMailer."""
    return _policy_mailer
