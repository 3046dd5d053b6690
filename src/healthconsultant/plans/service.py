"""Plan catalogue CRUD service."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from healthconsultant.plans.defaults import DEFAULT_PLANS
from healthconsultant.plans.models import PlanModel

logger = logging.getLogger(__name__)

_UPDATABLE = (
    "title", "description", "features", "monthly_price", "yearly_price",
    "is_active", "is_popular", "interactions_limit",
    "stripe_product_id", "stripe_price_ids",
)


class PlanCatalog:
    """Plan records and the interaction ceilings they carry."""

    async def list_plans(self, session: AsyncSession) -> list[PlanModel]:
        result = await session.execute(
            select(PlanModel).order_by(PlanModel.monthly_price, PlanModel.title)
        )
        return list(result.scalars().all())

    async def list_active_plans(self, session: AsyncSession) -> list[PlanModel]:
        result = await session.execute(
            select(PlanModel)
            .where(PlanModel.is_active.is_(True))
            .order_by(PlanModel.monthly_price, PlanModel.title)
        )
        return list(result.scalars().all())

    async def get_plan(self, session: AsyncSession, plan_id: str) -> PlanModel | None:
        return await session.get(PlanModel, plan_id)

    async def get_by_title(self, session: AsyncSession, title: str) -> PlanModel | None:
        result = await session.execute(
            select(PlanModel).where(PlanModel.title == title)
        )
        return result.scalar_one_or_none()

    async def create_plan(
        self,
        session: AsyncSession,
        title: str,
        description: str = "",
        features: list[str] | None = None,
        monthly_price: float = 0,
        yearly_price: float = 0,
        is_active: bool = True,
        is_popular: bool = False,
        interactions_limit: int | None = None,
    ) -> PlanModel:
        plan = PlanModel(
            title=title,
            description=description,
            features=features or [],
            monthly_price=monthly_price,
            yearly_price=yearly_price,
            is_active=is_active,
            is_popular=is_popular,
            interactions_limit=interactions_limit,
            stripe_price_ids={},
        )
        session.add(plan)
        await session.flush()
        logger.info("Plan created", extra={"plan_id": plan.id, "title": title})
        return plan

    async def update_plan(
        self, session: AsyncSession, plan_id: str, **updates: Any
    ) -> PlanModel | None:
        """Apply non-None updates. ``interactions_limit`` may be set to None
        explicitly with ``unlimited=True``."""
        plan = await self.get_plan(session, plan_id)
        if plan is None:
            return None
        for field in _UPDATABLE:
            if field in updates and updates[field] is not None:
                setattr(plan, field, updates[field])
        if updates.get("unlimited"):
            plan.interactions_limit = None
        await session.flush()
        return plan

    async def delete_plan(self, session: AsyncSession, plan_id: str) -> bool:
        plan = await self.get_plan(session, plan_id)
        if plan is None:
            return False
        await session.delete(plan)
        await session.flush()
        return True

    async def seed_defaults(self, session: AsyncSession) -> list[PlanModel]:
        """Create any default plan whose title is missing. Returns the created plans."""
        created = []
        for seed in DEFAULT_PLANS:
            if await self.get_by_title(session, seed["title"]) is not None:
                continue
            created.append(await self.create_plan(session, **seed))
        return created
