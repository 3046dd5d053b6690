"""Usage ledger — per-user daily interaction/prompt counters and aggregates."""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Any, Iterator

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from healthconsultant.common.exceptions import PersistenceError, ValidationError
from healthconsultant.common.models import generate_uuid, utcnow
from healthconsultant.usage.models import UsageRecordModel
from healthconsultant.usage.periods import month_days, today_utc, year_month_of

logger = logging.getLogger(__name__)

_rows = UsageRecordModel.__table__

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@contextmanager
def _store_errors(action: str, user_email: str | None = None) -> Iterator[None]:
    """Translate driver/ORM failures into PersistenceError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(
            "Usage store failure during %s", action,
            extra={"user_email": user_email}, exc_info=True,
        )
        raise PersistenceError() from exc


def _check_input(user_email: str, prompts: int) -> None:
    if not user_email:
        raise ValidationError("Identity is required to record usage")
    if isinstance(prompts, bool) or not isinstance(prompts, int) or prompts < 1:
        raise ValidationError("Prompt units must be a positive integer")


class UsageLedger:
    """Accumulates daily counters per identity.

    Every increment is a single atomic statement at the storage layer, so
    concurrent requests for the same identity and day never lose updates.
    """

    # ── Write ──

    async def record(
        self,
        session: AsyncSession,
        user_email: str,
        prompts: int = 1,
        user_id: str | None = None,
        day: date | None = None,
    ) -> UsageRecordModel:
        """Add one interaction and ``prompts`` prompt units to the day's row."""
        _check_input(user_email, prompts)
        day = day or today_utc()
        now = utcnow()

        with _store_errors("record", user_email):
            insert = self._insert_for(session)
            stmt = insert(_rows).values(
                id=generate_uuid(),
                user_id=user_id,
                user_email=user_email,
                date=day,
                interactions=1,
                prompts=prompts,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[_rows.c.user_email, _rows.c.date],
                set_={
                    "interactions": _rows.c.interactions + 1,
                    "prompts": _rows.c.prompts + stmt.excluded.prompts,
                    "user_id": func.coalesce(_rows.c.user_id, stmt.excluded.user_id),
                    "updated_at": now,
                },
            )
            await session.execute(stmt)
            row = await self._day_row(session, user_email, day)

        logger.debug(
            "Usage recorded",
            extra={"user_email": user_email, "date": day.isoformat(),
                   "interactions": row.interactions, "prompts": row.prompts},
        )
        return row

    async def record_within_limit(
        self,
        session: AsyncSession,
        user_email: str,
        limit: int,
        prompts: int = 1,
        user_id: str | None = None,
        day: date | None = None,
    ) -> UsageRecordModel | None:
        """Increment only while the month's interactions are below ``limit``.

        The ceiling check and the increment run as one conditional UPDATE.
        Returns the updated row, or None (and writes nothing) at the ceiling.
        """
        _check_input(user_email, prompts)
        day = day or today_utc()
        if limit <= 0:
            return None
        now = utcnow()
        first, last = month_days(year_month_of(day))

        # Aliased so the subquery is not correlated to the row being updated.
        month_rows = _rows.alias("month_rows")
        used_this_month = (
            select(func.coalesce(func.sum(month_rows.c.interactions), 0))
            .where(
                month_rows.c.user_email == user_email,
                month_rows.c.date >= first,
                month_rows.c.date <= last,
            )
            .scalar_subquery()
        )
        conditional_increment = (
            update(_rows)
            .where(
                _rows.c.user_email == user_email,
                _rows.c.date == day,
                used_this_month < limit,
            )
            .values(
                interactions=_rows.c.interactions + 1,
                prompts=_rows.c.prompts + prompts,
                updated_at=now,
            )
        )

        with _store_errors("record_within_limit", user_email):
            result = await session.execute(conditional_increment)
            if result.rowcount == 1:
                return await self._day_row(session, user_email, day)

            # Nothing updated: either no row yet today, or the ceiling is reached.
            totals = await self.monthly_aggregate(session, user_email, year_month_of(day))
            if totals["total_interactions"] >= limit:
                return None

            insert = self._insert_for(session)
            first_of_day = insert(_rows).values(
                id=generate_uuid(),
                user_id=user_id,
                user_email=user_email,
                date=day,
                interactions=1,
                prompts=prompts,
                created_at=now,
                updated_at=now,
            ).on_conflict_do_nothing(index_elements=[_rows.c.user_email, _rows.c.date])
            result = await session.execute(first_of_day)
            if result.rowcount == 1:
                return await self._day_row(session, user_email, day)

            # A concurrent request created today's row first.
            result = await session.execute(conditional_increment)
            if result.rowcount == 1:
                return await self._day_row(session, user_email, day)
        return None

    async def record_best_effort(
        self,
        db,
        user_email: str,
        prompts: int = 1,
        user_id: str | None = None,
    ) -> UsageRecordModel | None:
        """Record in a session of its own; failures are logged, never raised.

        For metering attached to an action that has already completed: a
        ledger outage must not fail or roll back that action.
        """
        try:
            async with db.get_session() as session:
                return await self.record(session, user_email, prompts, user_id=user_id)
        except (PersistenceError, SQLAlchemyError):
            logger.error(
                "Dropped usage record after store failure",
                extra={"user_email": user_email, "prompts": prompts},
                exc_info=True,
            )
            return None

    # ── Read ──

    async def monthly_aggregate(
        self, session: AsyncSession, user_email: str, year_month: str,
    ) -> dict[str, int]:
        """Sum of the identity's daily rows within ``year_month`` (``YYYY-MM``)."""
        first, last = month_days(year_month)
        with _store_errors("monthly_aggregate", user_email):
            result = await session.execute(
                select(
                    func.coalesce(func.sum(UsageRecordModel.interactions), 0),
                    func.coalesce(func.sum(UsageRecordModel.prompts), 0),
                ).where(
                    UsageRecordModel.user_email == user_email,
                    UsageRecordModel.date >= first,
                    UsageRecordModel.date <= last,
                )
            )
            interactions, prompts = result.one()
        return {
            "total_interactions": int(interactions),
            "total_prompts": int(prompts),
        }

    async def user_usage(
        self,
        session: AsyncSession,
        user_email: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[UsageRecordModel]:
        """The identity's daily rows in an inclusive date range, oldest first."""
        query = select(UsageRecordModel).where(UsageRecordModel.user_email == user_email)
        query = self._in_range(query, start_date, end_date)
        with _store_errors("user_usage", user_email):
            result = await session.execute(query.order_by(UsageRecordModel.date))
            return list(result.scalars().all())

    async def list_records(
        self,
        session: AsyncSession,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[UsageRecordModel]:
        query = self._in_range(select(UsageRecordModel), start_date, end_date)
        with _store_errors("list_records"):
            result = await session.execute(
                query.order_by(UsageRecordModel.date, UsageRecordModel.user_email)
            )
            return list(result.scalars().all())

    async def global_stats(
        self,
        session: AsyncSession,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict[str, Any]:
        """Totals, distinct identities and a per-day series for the admin dashboard."""
        totals_query = self._in_range(
            select(
                func.coalesce(func.sum(UsageRecordModel.interactions), 0),
                func.coalesce(func.sum(UsageRecordModel.prompts), 0),
                func.count(func.distinct(UsageRecordModel.user_email)),
            ),
            start_date, end_date,
        )
        daily_query = self._in_range(
            select(
                UsageRecordModel.date,
                func.sum(UsageRecordModel.interactions).label("interactions"),
                func.sum(UsageRecordModel.prompts).label("prompts"),
                func.count(func.distinct(UsageRecordModel.user_email)).label("unique_users"),
            ),
            start_date, end_date,
        ).group_by(UsageRecordModel.date).order_by(UsageRecordModel.date)

        with _store_errors("global_stats"):
            interactions, prompts, unique_users = (await session.execute(totals_query)).one()
            daily = (await session.execute(daily_query)).all()

        return {
            "total_interactions": int(interactions),
            "total_prompts": int(prompts),
            "unique_users": int(unique_users),
            "chart_data": [
                {
                    "date": row.date,
                    "interactions": int(row.interactions or 0),
                    "prompts": int(row.prompts or 0),
                    "unique_users": int(row.unique_users or 0),
                }
                for row in daily
            ],
        }

    # ── Internal helpers ──

    @staticmethod
    def _insert_for(session: AsyncSession):
        dialect = session.bind.dialect.name
        try:
            return _INSERTS[dialect]
        except KeyError:
            raise PersistenceError(f"Unsupported database dialect for usage upserts: {dialect}")

    @staticmethod
    def _in_range(query, start_date: date | None, end_date: date | None):
        if start_date:
            query = query.where(UsageRecordModel.date >= start_date)
        if end_date:
            query = query.where(UsageRecordModel.date <= end_date)
        return query

    @staticmethod
    async def _day_row(
        session: AsyncSession, user_email: str, day: date,
    ) -> UsageRecordModel:
        result = await session.execute(
            select(UsageRecordModel)
            .where(UsageRecordModel.user_email == user_email, UsageRecordModel.date == day)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
