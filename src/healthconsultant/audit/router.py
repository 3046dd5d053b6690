"""Audit log API router (admin only)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from healthconsultant.audit.schemas import AuditEventResponse, InteractionBreakdown
from healthconsultant.common.security import Identity, require_admin
from healthconsultant.usage.periods import current_year_month

router = APIRouter()


def _get_service():
    from healthconsultant.deps import get_audit_service
    return get_audit_service()


def _get_db():
    from healthconsultant.deps import get_db
    return get_db()


@router.get("/admin/audit", response_model=list[AuditEventResponse])
async def get_audit_events(
    user_email: Optional[str] = Query(None, alias="userEmail"),
    event_type: Optional[str] = Query(None, alias="eventType"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    _: Identity = Depends(require_admin),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        events = await svc.get_events(
            session, user_email=user_email, event_type=event_type,
            limit=limit, offset=offset,
        )
        return [AuditEventResponse.model_validate(e) for e in events]


@router.get("/admin/audit/interactions", response_model=InteractionBreakdown)
async def get_interaction_breakdown(
    user_email: str = Query(..., alias="userEmail"),
    month: Optional[str] = Query(None),
    _: Identity = Depends(require_admin),
):
    month = month or current_year_month()
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        by_type = await svc.count_by_type(session, user_email, month)
        return InteractionBreakdown(user_email=user_email, month=month, by_type=by_type)
