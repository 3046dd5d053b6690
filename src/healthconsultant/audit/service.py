"""Audit service — append-only log of metered interactions and plan changes."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from healthconsultant.audit.models import AuditEventModel
from healthconsultant.usage.periods import month_bounds_utc

INTERACTION_RECORDED = "interaction.recorded"
INTERACTION_DENIED = "interaction.denied"
PLAN_CHANGED = "plan.changed"


class AuditService:
    """Append-only event log keyed by user email."""

    # ── Write ──

    async def record_event(
        self,
        session: AsyncSession,
        user_email: str,
        event_type: str,
        actor: str = "system",
        detail: dict[str, Any] | None = None,
    ) -> AuditEventModel:
        event = AuditEventModel(
            user_email=user_email,
            event_type=event_type,
            actor=actor,
            detail=detail or {},
        )
        session.add(event)
        await session.flush()
        return event

    # ── Read ──

    async def get_events(
        self,
        session: AsyncSession,
        user_email: str | None = None,
        event_type: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditEventModel]:
        """Paginated event list, newest first."""
        query = select(AuditEventModel)
        if user_email:
            query = query.where(AuditEventModel.user_email == user_email)
        if event_type:
            query = query.where(AuditEventModel.event_type == event_type)
        query = (
            query.order_by(AuditEventModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(query)
        return list(result.scalars().all())

    async def count_by_type(
        self, session: AsyncSession, user_email: str, year_month: str,
    ) -> dict[str, int]:
        """Recorded interactions for ``year_month`` grouped by interaction type."""
        start, end = month_bounds_utc(year_month)
        result = await session.execute(
            select(AuditEventModel.detail).where(
                AuditEventModel.user_email == user_email,
                AuditEventModel.event_type == INTERACTION_RECORDED,
                AuditEventModel.created_at >= start,
                AuditEventModel.created_at < end,
            )
        )
        counts: dict[str, int] = {}
        for detail in result.scalars():
            kind = (detail or {}).get("interaction_type", "chat")
            counts[kind] = counts.get(kind, 0) + 1
        return counts
