"""
Stripe webhook router.

Receives Stripe events, and for checkout.session.completed creates a
LegalFooter policy row and emails the purchaser a confirmation.

Endpoints:
  POST /webhook   — Stripe webhook (auth: Stripe-Signature)

Response policy:
  400  signature verification failed (nothing else happens)
  200  any verified event, even when the insert or the email failed, so
       Stripe does not retry or alert on our internal failures.

Stripe delivers at least once and nothing here deduplicates on event or
session id: a redelivered completion event creates a second policy row and
sends a second email.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from app.models.policy import (
    CHECKOUT_COMPLETED,
    PROTECTED_DOMAIN_FIELD,
    NotificationRequest,
    PolicyCreate,
    StripeEvent,
    WebhookOutcome,
)
from app.services.policy_email import NotificationError, PolicyMailer, get_policy_mailer
from app.services.policy_store import PersistenceError, PolicyStore, get_policy_store
from app.services.stripe_events import VerificationError, get_webhook_secret, verify_event

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _extract_policy(event: StripeEvent) -> PolicyCreate:
    """
    Build the policy insert payload from a completion event.

    Missing email / domain / customer are carried through as None; an event
    with incomplete business data is still recorded. A session whose fields
    have unexpected types is recorded with only its id.
    """
    try:
        session = event.checkout_session()
    except ValidationError as e:
        raw = event.data.object if event.data and event.data.object else {}
        session_id = raw.get("id") if isinstance(raw.get("id"), str) else None
        logger.warning(
            f"Unreadable checkout session {session_id!r} in event {event.id!r}: "
            f"{e.error_count()} field error(s); recording with empty fields"
        )
        return PolicyCreate(policy_id=session_id)

    return PolicyCreate(
        email=session.customer_email(),
        domain=session.custom_field_value(PROTECTED_DOMAIN_FIELD),
        stripe_customer_id=session.customer_id(),
        policy_id=session.id,
    )


def _process_event(
    event: StripeEvent,
    store: PolicyStore,
    mailer: PolicyMailer,
) -> WebhookOutcome:
    """
    Run the post-verification pipeline for one event.

    Steps:
    1. Ignore anything other than checkout.session.completed.
    2. Extract email, protected domain, customer and session ids.
    3. Insert the policy row. On failure, stop here.
    4. Send the confirmation email. Failure is logged only.

    Never raises for downstream failures; the returned outcome names the
    terminal state.
    """
    if event.type != CHECKOUT_COMPLETED:
        logger.info(f"Ignoring Stripe event {event.id!r} of type {event.type!r}")
        return WebhookOutcome.IGNORED

    policy = _extract_policy(event)

    try:
        record = store.insert_policy(policy)
    except PersistenceError as e:
        logger.error(
            f"Supabase insert error for checkout session {policy.policy_id!r}: {e}"
        )
        return WebhookOutcome.PERSIST_FAILED

    try:
        mailer.send(NotificationRequest.from_record(record))
    except NotificationError as e:
        logger.error(f"Confirmation email failed for policy {record.id!r}: {e}")
        return WebhookOutcome.NOTIFY_FAILED

    return WebhookOutcome.NOTIFIED


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    store: PolicyStore = Depends(get_policy_store),
    mailer: PolicyMailer = Depends(get_policy_mailer),
) -> dict:
    """
    Stripe webhook receiver.

    The body is read raw: the signature is computed over the exact bytes, so
    FastAPI must not parse it into a model first.
    """
    payload = await request.body()

    try:
        event = verify_event(payload, stripe_signature, get_webhook_secret())
    except VerificationError as exc:
        logger.warning(f"Webhook error: {exc}")
        raise HTTPException(status_code=400, detail=f"Webhook Error: {exc}")

    # Supabase and Resend clients are blocking; keep them off the event loop
    outcome = await run_in_threadpool(_process_event, event, store, mailer)
    logger.info(f"Stripe event {event.id!r} ({event.type}) handled: {outcome.value}")

    return {"received": True}
