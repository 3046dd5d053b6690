"""Pydantic schemas for usage endpoints."""

import datetime as dt

from pydantic import Field

from healthconsultant.common.schemas import CamelModel


class UsageRecordRequest(CamelModel):
    prompts: int = Field(default=1, ge=1)


class UsageRecordResponse(CamelModel):
    id: str
    user_id: str | None = None
    user_email: str
    date: dt.date
    interactions: int
    prompts: int


class ChartPoint(CamelModel):
    date: dt.date
    interactions: int
    prompts: int
    unique_users: int


class UsageStats(CamelModel):
    total_interactions: int = 0
    total_prompts: int = 0
    unique_users: int = 0
    chart_data: list[ChartPoint] = []


class AdminUsageResponse(CamelModel):
    stats: UsageStats
    records: list[UsageRecordResponse]
