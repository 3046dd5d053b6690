"""Usage API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from healthconsultant.common.schemas import MessageResponse
from healthconsultant.common.security import Identity, require_admin, require_identity
from healthconsultant.usage.periods import parse_day
from healthconsultant.usage.schemas import (
    AdminUsageResponse,
    UsageRecordRequest,
    UsageRecordResponse,
    UsageStats,
)

router = APIRouter()


def _get_ledger():
    from healthconsultant.deps import get_usage_ledger
    return get_usage_ledger()


def _get_db():
    from healthconsultant.deps import get_db
    return get_db()


@router.post("/usage/record", response_model=MessageResponse)
async def record_usage(
    body: UsageRecordRequest,
    identity: Identity = Depends(require_identity),
):
    """Record one interaction without the entitlement gate.

    Recording is the whole point of this call, so store failures surface
    as 500 instead of being swallowed.
    """
    ledger = _get_ledger()
    db = _get_db()
    async with db.get_session() as session:
        await ledger.record(
            session, identity.email, body.prompts, user_id=identity.user_id,
        )
    return MessageResponse(message="Usage recorded successfully")


@router.get("/usage/me", response_model=list[UsageRecordResponse])
async def my_usage(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    identity: Identity = Depends(require_identity),
):
    ledger = _get_ledger()
    db = _get_db()
    async with db.get_session() as session:
        records = await ledger.user_usage(
            session, identity.email, parse_day(start_date), parse_day(end_date),
        )
        return [UsageRecordResponse.model_validate(r) for r in records]


@router.get("/admin/usage", response_model=AdminUsageResponse)
async def admin_usage(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    _: Identity = Depends(require_admin),
):
    start, end = parse_day(start_date), parse_day(end_date)
    ledger = _get_ledger()
    db = _get_db()
    async with db.get_session() as session:
        stats = await ledger.global_stats(session, start, end)
        records = await ledger.list_records(session, start, end)
        return AdminUsageResponse(
            stats=UsageStats.model_validate(stats),
            records=[UsageRecordResponse.model_validate(r) for r in records],
        )
