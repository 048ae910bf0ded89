"""
Pydantic models for the Stripe checkout webhook and LegalFooter policies.

Models:
  StripeEvent          — verified Stripe event envelope (only what we read)
  CheckoutSession      — data.object of a checkout.session.completed event
  PolicyCreate         — row inserted into legalfooter_policies
  PolicyRecord         — row read back from legalfooter_policies
  NotificationRequest  — values rendered into the confirmation email
  WebhookOutcome       — terminal processing state of one webhook request

Every field on the inbound side is optional: Stripe omits customer_details
when it did not collect an email, and custom_fields is only present when the
checkout was configured with them. Unknown fields are ignored.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel


CHECKOUT_COMPLETED = "checkout.session.completed"

# Custom field key configured on the Stripe checkout for the protected domain
PROTECTED_DOMAIN_FIELD = "protecteddomain"


# ---------------------------------------------------------------------------
# Inbound Stripe event
# ---------------------------------------------------------------------------

class CustomFieldText(BaseModel):
    model_config = {"extra": "ignore"}

    value: Optional[str] = None


class CustomField(BaseModel):
    """A single checkout custom field, e.g. {"key": "protecteddomain", "text": {"value": ...}}."""
    model_config = {"extra": "ignore"}

    key: Optional[str] = None
    text: Optional[CustomFieldText] = None


class CustomerDetails(BaseModel):
    model_config = {"extra": "ignore"}

    email: Optional[str] = None


class CheckoutSession(BaseModel):
    """Subset of a Stripe Checkout Session that the webhook reads."""
    model_config = {"extra": "ignore"}

    id: Optional[str] = None
    # A customer id, or the full customer object when the event was expanded
    customer: Optional[Union[str, dict[str, Any]]] = None
    customer_details: Optional[CustomerDetails] = None
    custom_fields: Optional[list[CustomField]] = None

    def customer_id(self) -> Optional[str]:
        if isinstance(self.customer, dict):
            customer_id = self.customer.get("id")
            return customer_id if isinstance(customer_id, str) else None
        return self.customer

    def customer_email(self) -> Optional[str]:
        if self.customer_details is None:
            return None
        return self.customer_details.email

    def custom_field_value(self, key: str) -> Optional[str]:
        """Return the text value of the first custom field named key, or None."""
        for field in self.custom_fields or []:
            if field.key == key:
                return field.text.value if field.text else None
        return None


class EventData(BaseModel):
    model_config = {"extra": "ignore"}

    object: Optional[dict[str, Any]] = None


class StripeEvent(BaseModel):
    """
    Stripe event envelope.

    data.object is kept as a raw dict because its shape depends on the event
    type; it is only parsed into a CheckoutSession for completion events.
    """
    model_config = {"extra": "ignore"}

    id: Optional[str] = None
    type: Optional[str] = None
    data: Optional[EventData] = None

    def checkout_session(self) -> CheckoutSession:
        obj = self.data.object if self.data and self.data.object else {}
        return CheckoutSession.model_validate(obj)


# ---------------------------------------------------------------------------
# Policy records
# ---------------------------------------------------------------------------

class PolicyCreate(BaseModel):
    """Insert payload for legalfooter_policies."""
    email: Optional[str] = None
    domain: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    policy_id: Optional[str] = None  # Stripe checkout session id


class PolicyRecord(PolicyCreate):
    """Full legalfooter_policies row, including the generated id."""
    model_config = {"from_attributes": True, "extra": "ignore"}

    id: Union[int, str]
    created_at: Optional[str] = None


class NotificationRequest(BaseModel):
    """Values for one policy confirmation email."""
    email: Optional[str] = None
    domain: Optional[str] = None
    record_id: Union[int, str]

    @classmethod
    def from_record(cls, record: PolicyRecord) -> "NotificationRequest":
        return cls(email=record.email, domain=record.domain, record_id=record.id)


class WebhookOutcome(str, Enum):
    IGNORED = "ignored"
    PERSIST_FAILED = "persist_failed"
    NOTIFIED = "notified"
    NOTIFY_FAILED = "notify_failed"
