"""SQLAlchemy model for the interaction and plan-change event log."""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from healthconsultant.common.models import Base, TimestampMixin, generate_uuid


class AuditEventModel(Base, TimestampMixin):
    __tablename__ = "audit_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    actor: Mapped[str] = mapped_column(String(255), nullable=False, default="system")
    detail: Mapped[dict] = mapped_column(JSON, default=dict)
