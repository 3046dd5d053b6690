"""Billing service — apply Stripe subscription lifecycle events to accounts."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from healthconsultant.accounts.models import UserModel
from healthconsultant.accounts.service import AccountService
from healthconsultant.billing.stripe_webhook import (
    CHECKOUT_COMPLETED,
    SUBSCRIPTION_CREATED,
    SUBSCRIPTION_DELETED,
    BillingEvent,
)
from healthconsultant.common.config import HealthConsultantSettings
from healthconsultant.plans.models import PlanModel
from healthconsultant.plans.service import PlanCatalog

logger = logging.getLogger(__name__)

ACTOR = "stripe"


class BillingService:
    """Maps billing events onto the user's plan and subscription fields."""

    def __init__(
        self,
        settings: HealthConsultantSettings,
        account_service: AccountService,
        plan_catalog: PlanCatalog,
    ):
        self.settings = settings
        self.accounts = account_service
        self.plans = plan_catalog

    async def apply(self, session: AsyncSession, event: BillingEvent) -> dict[str, Any]:
        user = await self._find_user(session, event)
        if user is None:
            logger.info(
                "No user matched Stripe event",
                extra={"event_type": event.type, "stripe_object": event.object_id},
            )
            return {"handled": False, "event_type": event.type, "user_email": None}

        if event.type == CHECKOUT_COMPLETED:
            await self._checkout_completed(session, user, event)
        elif event.type == SUBSCRIPTION_DELETED:
            await self._subscription_deleted(session, user)
        else:
            if event.type == SUBSCRIPTION_CREATED and event.subscription_id:
                user.subscription_id = event.subscription_id
            if event.status:
                user.subscription_status = event.status
            await session.flush()

        logger.info(
            "Applied Stripe event",
            extra={"event_type": event.type, "user_email": user.email,
                   "subscription_status": user.subscription_status, "plan": user.plan},
        )
        return {"handled": True, "event_type": event.type, "user_email": user.email}

    # ── Handlers ──

    async def _checkout_completed(
        self, session: AsyncSession, user: UserModel, event: BillingEvent,
    ) -> None:
        plan = await self._plan_for_event(session, event)
        if plan is not None:
            await self.accounts.change_plan(session, user, plan, actor=ACTOR)
        elif event.plan_title or event.plan_id:
            logger.warning(
                "Checkout references an unknown plan; keeping current plan",
                extra={"user_email": user.email, "plan_title": event.plan_title,
                       "plan_id": event.plan_id},
            )
        if event.subscription_id:
            user.subscription_id = event.subscription_id
        if event.customer_id:
            user.stripe_customer_id = event.customer_id
        user.subscription_status = "active"
        await session.flush()

    async def _subscription_deleted(self, session: AsyncSession, user: UserModel) -> None:
        fallback = await self.plans.get_by_title(session, self.settings.fallback_plan_title)
        if fallback is not None:
            await self.accounts.change_plan(session, user, fallback, actor=ACTOR)
        else:
            logger.error(
                "Fallback plan missing; subscription canceled without downgrade",
                extra={"user_email": user.email},
            )
        user.subscription_id = None
        user.subscription_status = "canceled"
        await session.flush()

    # ── Lookups ──

    async def _find_user(self, session: AsyncSession, event: BillingEvent) -> UserModel | None:
        """Stripe customer id, then subscription id, then email."""
        if event.customer_id:
            user = await self.accounts.get_by_stripe_customer(session, event.customer_id)
            if user is not None:
                return user
        if event.subscription_id:
            user = await self.accounts.get_by_subscription(session, event.subscription_id)
            if user is not None:
                return user
        if event.email:
            return await self.accounts.get_by_email(session, event.email)
        return None

    async def _plan_for_event(
        self, session: AsyncSession, event: BillingEvent,
    ) -> PlanModel | None:
        if event.plan_id:
            plan = await self.plans.get_plan(session, event.plan_id)
            if plan is not None:
                return plan
        if event.plan_title:
            return await self.plans.get_by_title(session, event.plan_title)
        return None
