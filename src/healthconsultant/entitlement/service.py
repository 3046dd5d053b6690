"""Plan entitlement — resolve a user's plan and admit or deny metered interactions."""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from healthconsultant.accounts.models import UserModel
from healthconsultant.accounts.service import AccountService
from healthconsultant.audit.service import INTERACTION_DENIED, INTERACTION_RECORDED
from healthconsultant.common.config import HealthConsultantSettings
from healthconsultant.common.exceptions import PlanNotFoundError, UserNotFoundError
from healthconsultant.plans.models import PlanModel
from healthconsultant.plans.service import PlanCatalog
from healthconsultant.usage.periods import current_year_month
from healthconsultant.usage.service import UsageLedger

logger = logging.getLogger(__name__)


@dataclass
class EntitlementDecision:
    """Admit/deny outcome. ``limit`` and ``remaining`` are None on unlimited plans."""
    allowed: bool
    used: int
    limit: Optional[int] = None
    remaining: Optional[int] = None
    plan_title: str = ""

    @property
    def has_unlimited(self) -> bool:
        return self.limit is None


class PlanEntitlement:
    """Compares monthly ledger totals against the resolved plan ceiling."""

    def __init__(
        self,
        settings: HealthConsultantSettings,
        ledger: UsageLedger,
        plan_catalog: PlanCatalog,
        account_service: AccountService,
        audit_service=None,
    ):
        self.settings = settings
        self.ledger = ledger
        self.plans = plan_catalog
        self.accounts = account_service
        self.audit_service = audit_service

    async def resolve_plan(self, session: AsyncSession, user_email: str) -> PlanModel:
        user = await self._get_user(session, user_email)
        return await self._plan_for(session, user)

    async def can_interact(
        self, session: AsyncSession, user_email: str, year_month: str | None = None,
    ) -> EntitlementDecision:
        plan = await self.resolve_plan(session, user_email)
        return await self._decide(session, user_email, plan, year_month or current_year_month())

    async def interaction_stats(self, session: AsyncSession, user_email: str) -> dict:
        decision = await self.can_interact(session, user_email)
        return {
            "current_month": decision.used,
            "limit": decision.limit,
            "remaining": decision.remaining,
            "has_unlimited": decision.has_unlimited,
        }

    async def record_if_allowed(
        self,
        session: AsyncSession,
        user_email: str,
        interaction_type: str = "chat",
        prompts: int = 1,
    ) -> EntitlementDecision:
        """Meter one interaction if the plan still has room this month.

        A denial writes nothing to the ledger. The returned decision
        reflects usage after the write.
        """
        user = await self._get_user(session, user_email)
        plan = await self._plan_for(session, user)
        year_month = current_year_month()
        decision = await self._decide(session, user_email, plan, year_month)

        if decision.allowed:
            if plan.interactions_limit is None:
                row = await self.ledger.record(session, user_email, prompts, user_id=user.id)
            else:
                row = await self.ledger.record_within_limit(
                    session, user_email, plan.interactions_limit, prompts, user_id=user.id,
                )
            if row is not None:
                # Counts now include this interaction, which may have taken the last slot.
                decision = await self._decide(session, user_email, plan, year_month)
                decision.allowed = True
                await self._audit(session, user_email, INTERACTION_RECORDED, interaction_type, plan, decision)
                return decision
            # Lost the race for the last slot to a concurrent request.
            decision = await self._decide(session, user_email, plan, year_month)
            decision.allowed = False

        logger.warning(
            "Interaction denied, monthly limit reached",
            extra={"user_email": user_email, "plan": plan.title,
                   "limit": decision.limit, "used": decision.used},
        )
        await self._audit(session, user_email, INTERACTION_DENIED, interaction_type, plan, decision)
        return decision

    # ── Internal helpers ──

    async def _get_user(self, session: AsyncSession, user_email: str) -> UserModel:
        user = await self.accounts.get_by_email(session, user_email)
        if user is None:
            raise UserNotFoundError()
        return user

    async def _plan_for(self, session: AsyncSession, user: UserModel) -> PlanModel:
        """Stable plan id first, then the stored title, then the fallback plan."""
        if user.plan_id:
            plan = await self.plans.get_plan(session, user.plan_id)
            if plan is not None:
                return plan
        if user.plan:
            plan = await self.plans.get_by_title(session, user.plan)
            if plan is not None:
                return plan
        fallback = self.settings.fallback_plan_title
        plan = await self.plans.get_by_title(session, fallback)
        if plan is None:
            logger.error(
                "No plan resolvable for user and fallback plan is missing",
                extra={"user_email": user.email, "plan": user.plan, "fallback": fallback},
            )
            raise PlanNotFoundError()
        return plan

    async def _decide(
        self, session: AsyncSession, user_email: str, plan: PlanModel, year_month: str,
    ) -> EntitlementDecision:
        totals = await self.ledger.monthly_aggregate(session, user_email, year_month)
        used = totals["total_interactions"]
        limit = plan.interactions_limit
        if limit is None:
            return EntitlementDecision(allowed=True, used=used, plan_title=plan.title)
        return EntitlementDecision(
            allowed=used < limit,
            used=used,
            limit=limit,
            remaining=max(limit - used, 0),
            plan_title=plan.title,
        )

    async def _audit(
        self,
        session: AsyncSession,
        user_email: str,
        event_type: str,
        interaction_type: str,
        plan: PlanModel,
        decision: EntitlementDecision,
    ) -> None:
        if not self.audit_service:
            return
        await self.audit_service.record_event(
            session, user_email, event_type, user_email,
            {
                "interaction_type": interaction_type,
                "plan": plan.title,
                "plan_id": plan.id,
                "used": decision.used,
                "limit": decision.limit,
            },
        )
