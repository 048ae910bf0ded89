#!/usr/bin/env python3
"""
Dev helper: send a signed checkout.session.completed webhook to the local
LegalFooter backend.

Builds a minimal Stripe event, signs it with the webhook secret in Stripe's
``t=<timestamp>,v1=<hmac-sha256>`` format and POST-s it to
/api/stripe/webhook. Useful when ``stripe listen`` is not available.

Usage
-----
# Basic — a@b.com protecting example.com, targeting localhost:8000
python scripts/send_test_webhook.py

# Custom purchaser and domain
python scripts/send_test_webhook.py --email owner@site.test --domain site.test

# Omit the protecteddomain custom field
python scripts/send_test_webhook.py --no-domain

# Send a different event type (acknowledged and ignored by the backend)
python scripts/send_test_webhook.py --type payment_intent.succeeded

# Print the payload and signature without sending
python scripts/send_test_webhook.py --dry-run

Environment / .env
------------------
STRIPE_WEBHOOK_SECRET   Endpoint signing secret (required unless --secret).
"""

import argparse
import hashlib
import hmac
import json
import os
import sys
import textwrap
import time
import uuid
from pathlib import Path

import httpx
from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Payload builder
# ---------------------------------------------------------------------------

def _build_event(event_type: str, email: str, domain: str | None) -> dict:
    """
    Build a Stripe event envelope around a Checkout Session.

    Only the fields the backend reads are realistic; the rest is filler.
    """
    session_id = f"cs_test_{uuid.uuid4().hex[:24]}"
    custom_fields = []
    if domain is not None:
        custom_fields.append(
            {
                "key": "protecteddomain",
                "label": {"custom": "Protected domain", "type": "custom"},
                "optional": False,
                "text": {"value": domain},
                "type": "text",
            }
        )
    return {
        "id": f"evt_test_{uuid.uuid4().hex[:24]}",
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "livemode": False,
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "customer": f"cus_test_{uuid.uuid4().hex[:14]}",
                "customer_details": {"email": email},
                "custom_fields": custom_fields,
                "payment_status": "paid",
            }
        },
    }


def _sign(payload: bytes, secret: str) -> str:
    """Return a Stripe-Signature header value for payload."""
    timestamp = int(time.time())
    signed_payload = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode(), signed_payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    # Locate project root (scripts/ lives one level below the root)
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    load_dotenv(project_root / "backend" / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_webhook.py",
        description=textwrap.dedent("""\
            Send a signed Stripe webhook to the LegalFooter backend.

            Reads STRIPE_WEBHOOK_SECRET from the environment or a .env file
            in the project root.
        """),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Backend base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--type",
        dest="event_type",
        default="checkout.session.completed",
        help="Stripe event type (default: checkout.session.completed)",
    )
    parser.add_argument(
        "--email",
        default="a@b.com",
        help="Purchaser email (default: a@b.com)",
    )
    parser.add_argument(
        "--domain",
        default="example.com",
        help="Protected domain custom field value (default: example.com)",
    )
    parser.add_argument(
        "--no-domain",
        action="store_true",
        help="Leave out the protecteddomain custom field.",
    )
    parser.add_argument(
        "--secret",
        default=None,
        metavar="SECRET",
        help="Override the webhook secret. Defaults to STRIPE_WEBHOOK_SECRET.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payload and signature without sending it.",
    )

    args = parser.parse_args()

    secret = args.secret or os.getenv("STRIPE_WEBHOOK_SECRET", "")
    if not secret:
        print(
            "ERROR: No webhook secret found.\n"
            "Set STRIPE_WEBHOOK_SECRET in your environment or .env file, "
            "or pass --secret.",
            file=sys.stderr,
        )
        return 1

    event = _build_event(
        event_type=args.event_type,
        email=args.email,
        domain=None if args.no_domain else args.domain,
    )
    payload = json.dumps(event).encode()
    signature = _sign(payload, secret)
    endpoint = f"{args.url.rstrip('/')}/api/stripe/webhook"

    print(f"Endpoint : {endpoint}")
    print(f"Event    : {event['type']} ({event['id']})")
    print(f"Email    : {args.email}")
    print(f"Domain   : {None if args.no_domain else args.domain}")

    if args.dry_run:
        print("\n[DRY RUN] Stripe-Signature:")
        print(signature)
        print("\n[DRY RUN] Payload:")
        print(json.dumps(event, indent=2))
        return 0

    try:
        response = httpx.post(
            endpoint,
            content=payload,
            headers={"Content-Type": "application/json", "Stripe-Signature": signature},
            timeout=30,
        )
    except httpx.HTTPError as e:
        print(f"\nERROR: Request failed: {e}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
