"""Stripe webhook endpoint."""

import json
import logging

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import BaseModel

from healthconsultant.billing.stripe_webhook import parse_stripe_event, verify_stripe_signature
from healthconsultant.common.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


class WebhookAck(BaseModel):
    received: bool = True
    handled: bool = False


def _get_service():
    from healthconsultant.deps import get_billing_service
    return get_billing_service()


def _get_db():
    from healthconsultant.deps import get_db
    return get_db()


@router.post("/webhooks/stripe", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header("", alias="Stripe-Signature"),
):
    """Apply Stripe subscription lifecycle events to the matching account."""
    body = await request.body()
    settings = get_settings()

    if settings.stripe_webhook_secret:
        if not stripe_signature:
            raise HTTPException(status_code=400, detail="No signature provided")
        if not verify_stripe_signature(
            body, stripe_signature, settings.stripe_webhook_secret,
            tolerance=settings.stripe_signature_tolerance,
        ):
            logger.warning("Invalid Stripe webhook signature")
            raise HTTPException(status_code=400, detail="Invalid signature")
    else:
        logger.warning("HC_STRIPE_WEBHOOK_SECRET not configured, skipping signature verification")

    try:
        event_data = json.loads(body)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON")

    event = parse_stripe_event(event_data)
    if event is None:
        return WebhookAck(handled=False)

    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        result = await svc.apply(session, event)
    return WebhookAck(handled=result["handled"])
