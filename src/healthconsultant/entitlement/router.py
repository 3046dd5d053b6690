"""Interaction-limit API router."""

from fastapi import APIRouter, Depends

from healthconsultant.common.config import get_settings
from healthconsultant.common.exceptions import QuotaExceededError
from healthconsultant.common.security import Identity, require_identity
from healthconsultant.entitlement.schemas import (
    InteractionDenied,
    InteractionGranted,
    InteractionLimitResponse,
    InteractionRequest,
)

router = APIRouter()


def _get_service():
    from healthconsultant.deps import get_entitlement_service
    return get_entitlement_service()


def _get_db():
    from healthconsultant.deps import get_db
    return get_db()


@router.get("/usage/interaction-limit", response_model=InteractionLimitResponse)
async def get_interaction_limit(identity: Identity = Depends(require_identity)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        stats = await svc.interaction_stats(session, identity.email)
        return InteractionLimitResponse(**stats)


@router.post(
    "/usage/interaction-limit",
    response_model=InteractionGranted,
    responses={429: {"model": InteractionDenied}},
)
async def request_interaction(
    body: InteractionRequest,
    identity: Identity = Depends(require_identity),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        decision = await svc.record_if_allowed(
            session, identity.email, interaction_type=body.interaction_type,
        )
    if not decision.allowed:
        raise QuotaExceededError(
            get_settings().quota_exceeded_message,
            limit=decision.limit,
            remaining=decision.remaining,
        )
    return InteractionGranted(
        remaining_interactions=decision.remaining,
        limit=decision.limit,
        current_month=decision.used,
        has_unlimited=decision.has_unlimited,
    )
