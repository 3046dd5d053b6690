"""Stripe webhook signature verification and event parsing."""

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_CREATED = "customer.subscription.created"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"
PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
PAYMENT_FAILED = "invoice.payment_failed"

HANDLED_EVENTS = frozenset({
    CHECKOUT_COMPLETED,
    SUBSCRIPTION_CREATED,
    SUBSCRIPTION_UPDATED,
    SUBSCRIPTION_DELETED,
    PAYMENT_SUCCEEDED,
    PAYMENT_FAILED,
})


@dataclass
class BillingEvent:
    """The subset of a Stripe event that touches an account."""
    type: str
    object_id: str = ""
    customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    status: Optional[str] = None
    email: Optional[str] = None
    plan_id: Optional[str] = None
    plan_title: Optional[str] = None


def verify_stripe_signature(
    payload: bytes,
    signature_header: str,
    webhook_secret: str,
    tolerance: int = 300,
    now: float | None = None,
) -> bool:
    """Verify Stripe webhook signature (v1 scheme).

    Stripe sends: t=<timestamp>,v1=<signature>[,v1=<signature>...]
    A tolerance of 0 disables the timestamp age check.
    """
    if not signature_header or not webhook_secret:
        return False

    timestamp = ""
    candidates = []
    for item in signature_header.split(","):
        key, _, value = item.partition("=")
        key, value = key.strip(), value.strip()
        if key == "t":
            timestamp = value
        elif key == "v1" and value:
            candidates.append(value)
    if not timestamp or not candidates:
        return False

    if tolerance:
        try:
            age = (now if now is not None else time.time()) - int(timestamp)
        except ValueError:
            return False
        if abs(age) > tolerance:
            logger.warning("Stripe signature timestamp outside tolerance (%ss)", int(age))
            return False

    signed_payload = f"{timestamp}.".encode() + payload
    computed = hmac.new(
        webhook_secret.encode(),
        signed_payload,
        hashlib.sha256,
    ).hexdigest()

    return any(hmac.compare_digest(computed, sig) for sig in candidates)


def parse_stripe_event(event_data: dict[str, Any]) -> Optional[BillingEvent]:
    """Extract the account-relevant fields from a Stripe event payload.

    Returns None for event types that do not affect accounts.
    """
    event_type = event_data.get("type", "")
    if event_type not in HANDLED_EVENTS:
        logger.debug("Ignoring Stripe event type: %s", event_type)
        return None

    obj = event_data.get("data", {}).get("object", {}) or {}

    if event_type == CHECKOUT_COMPLETED:
        customer_details = obj.get("customer_details") or {}
        metadata = obj.get("metadata") or {}
        subscription = obj.get("subscription")
        return BillingEvent(
            type=event_type,
            object_id=obj.get("id", ""),
            customer_id=obj.get("customer"),
            subscription_id=subscription if isinstance(subscription, str) else None,
            status="active",
            email=customer_details.get("email") or obj.get("customer_email"),
            plan_id=metadata.get("plan_id"),
            plan_title=metadata.get("plan_title"),
        )

    if event_type in (SUBSCRIPTION_CREATED, SUBSCRIPTION_UPDATED, SUBSCRIPTION_DELETED):
        return BillingEvent(
            type=event_type,
            object_id=obj.get("id", ""),
            customer_id=obj.get("customer"),
            subscription_id=obj.get("id"),
            status="canceled" if event_type == SUBSCRIPTION_DELETED else obj.get("status"),
        )

    # Invoice events
    subscription = obj.get("subscription")
    return BillingEvent(
        type=event_type,
        object_id=obj.get("id", ""),
        customer_id=obj.get("customer"),
        subscription_id=subscription if isinstance(subscription, str) else None,
        status="active" if event_type == PAYMENT_SUCCEEDED else "past_due",
        email=obj.get("customer_email"),
    )
