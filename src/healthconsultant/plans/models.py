"""SQLAlchemy model for subscription plans."""

from sqlalchemy import JSON, Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from healthconsultant.common.models import Base, TimestampMixin, generate_uuid


class PlanModel(Base, TimestampMixin):
    __tablename__ = "plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    features: Mapped[list] = mapped_column(JSON, default=list)
    monthly_price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    yearly_price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_popular: Mapped[bool] = mapped_column(Boolean, default=False)
    # NULL means unlimited.
    interactions_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    stripe_product_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stripe_price_ids: Mapped[dict] = mapped_column(JSON, default=dict)

    @property
    def is_unlimited(self) -> bool:
        return self.interactions_limit is None
