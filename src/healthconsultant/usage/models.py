"""SQLAlchemy model for daily usage counters."""

import datetime as dt

from sqlalchemy import Date, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from healthconsultant.common.models import Base, TimestampMixin, generate_uuid


class UsageRecordModel(Base, TimestampMixin):
    """One row per user per UTC day. Counters only ever grow."""

    __tablename__ = "usage_records"
    __table_args__ = (
        UniqueConstraint("user_email", "date", name="uq_usage_records_user_email_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    interactions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    prompts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
