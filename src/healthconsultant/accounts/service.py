"""User account service."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from healthconsultant.accounts.models import UserModel
from healthconsultant.audit.service import PLAN_CHANGED
from healthconsultant.common.config import HealthConsultantSettings
from healthconsultant.plans.models import PlanModel
from healthconsultant.plans.service import PlanCatalog

logger = logging.getLogger(__name__)

_UPDATABLE = (
    "first_name", "is_active", "is_admin",
    "stripe_customer_id", "subscription_id", "subscription_status",
)


class AccountService:
    """Account lookups and the plan/subscription fields billing mutates."""

    def __init__(
        self,
        settings: HealthConsultantSettings,
        plan_catalog: PlanCatalog,
        audit_service=None,
    ):
        self.settings = settings
        self.plans = plan_catalog
        self.audit_service = audit_service

    # ── Read ──

    async def get_by_id(self, session: AsyncSession, user_id: str) -> UserModel | None:
        return await session.get(UserModel, user_id)

    async def get_by_email(self, session: AsyncSession, email: str) -> UserModel | None:
        result = await session.execute(
            select(UserModel).where(UserModel.email == email)
        )
        return result.scalar_one_or_none()

    async def get_by_stripe_customer(
        self, session: AsyncSession, customer_id: str
    ) -> UserModel | None:
        result = await session.execute(
            select(UserModel).where(UserModel.stripe_customer_id == customer_id)
        )
        return result.scalars().first()

    async def get_by_subscription(
        self, session: AsyncSession, subscription_id: str
    ) -> UserModel | None:
        result = await session.execute(
            select(UserModel).where(UserModel.subscription_id == subscription_id)
        )
        return result.scalars().first()

    async def list_users(
        self, session: AsyncSession, limit: int = 50, offset: int = 0,
    ) -> list[UserModel]:
        result = await session.execute(
            select(UserModel)
            .order_by(UserModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    # ── Write ──

    async def create_user(
        self,
        session: AsyncSession,
        email: str,
        first_name: str | None = None,
        plan: str | None = None,
        is_admin: bool = False,
    ) -> UserModel:
        """Create an account. New accounts start on ``plan`` or the fallback plan."""
        title = plan or self.settings.fallback_plan_title
        plan_obj = await self.plans.get_by_title(session, title)
        user = UserModel(
            email=email,
            first_name=first_name,
            plan=plan_obj.title if plan_obj else title,
            plan_id=plan_obj.id if plan_obj else None,
            is_admin=is_admin,
        )
        session.add(user)
        await session.flush()
        return user

    async def update_user(
        self, session: AsyncSession, user_id: str, **updates: Any
    ) -> UserModel | None:
        user = await self.get_by_id(session, user_id)
        if user is None:
            return None
        for field in _UPDATABLE:
            if field in updates and updates[field] is not None:
                setattr(user, field, updates[field])
        await session.flush()
        return user

    async def change_plan(
        self,
        session: AsyncSession,
        user: UserModel,
        plan: PlanModel,
        actor: str = "user",
    ) -> UserModel:
        """Move ``user`` onto ``plan``.

        Dropping to the fallback plan clears the subscription.
        """
        previous = user.plan
        user.plan = plan.title
        user.plan_id = plan.id
        if plan.title == self.settings.fallback_plan_title:
            user.subscription_id = None
            user.subscription_status = "canceled"
        await session.flush()

        logger.info(
            "Plan changed",
            extra={"user_email": user.email, "from_plan": previous, "to_plan": plan.title},
        )
        if self.audit_service:
            await self.audit_service.record_event(
                session, user.email, PLAN_CHANGED, actor,
                {"from": previous, "to": plan.title, "plan_id": plan.id},
            )
        return user

    async def delete_user(self, session: AsyncSession, user_id: str) -> bool:
        user = await self.get_by_id(session, user_id)
        if user is None:
            return False
        await session.delete(user)
        await session.flush()
        return True
