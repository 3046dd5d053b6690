"""Pydantic schemas for audit API responses."""

from datetime import datetime
from typing import Any

from healthconsultant.common.schemas import CamelModel


class AuditEventResponse(CamelModel):
    id: str
    user_email: str
    event_type: str
    actor: str
    detail: dict[str, Any] = {}
    created_at: datetime


class InteractionBreakdown(CamelModel):
    user_email: str
    month: str
    by_type: dict[str, int]
