"""
Stripe webhook verification service.

Verifies the Stripe-Signature header against the raw request body and parses
the verified body into a StripeEvent. Parsing happens only after the
signature check: the signature covers the exact bytes Stripe sent, so the
body must never be re-serialized before verification.

Environment variables
---------------------
STRIPE_SECRET_KEY       Stripe API key, applied to the stripe module on import.
STRIPE_WEBHOOK_SECRET   Endpoint signing secret (whsec_...) used to verify events.
"""

import logging
import os
from typing import Optional

import stripe
from pydantic import ValidationError

from app.models.policy import StripeEvent

logger = logging.getLogger(__name__)

stripe.api_key = os.getenv("STRIPE_SECRET_KEY")


class VerificationError(Exception):
    """The payload could not be authenticated as coming from Stripe."""


def get_webhook_secret() -> str:
    """Return the configured endpoint signing secret ("" when unset)."""
    return os.getenv("STRIPE_WEBHOOK_SECRET") or ""


def verify_event(
    payload: bytes,
    signature_header: Optional[str],
    secret: str,
    tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE,
) -> StripeEvent:
    """
    Verify a Stripe webhook payload and return the parsed event.

    Args:
        payload: Raw request body, exactly as received.
        signature_header: Value of the Stripe-Signature header (may be None).
        secret: Endpoint signing secret.
        tolerance: Maximum age of the signed timestamp, in seconds.

    Returns:
        The verified StripeEvent.

    Raises:
        VerificationError: signature missing, malformed, stale or not matching,
            or the signed body is not a JSON event object.
    """
    if not secret:
        logger.warning(
            "STRIPE_WEBHOOK_SECRET is not configured — all webhook requests will be rejected"
        )
        raise VerificationError("Webhook signing secret not configured")

    if not signature_header:
        raise VerificationError("No stripe-signature header value was provided.")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError:
        raise VerificationError("Invalid payload")

    try:
        stripe.WebhookSignature.verify_header(body, signature_header, secret, tolerance)
    except stripe.SignatureVerificationError as exc:
        raise VerificationError(str(exc)) from exc

    try:
        return StripeEvent.model_validate_json(body)
    except ValidationError as exc:
        raise VerificationError("Invalid payload") from exc
