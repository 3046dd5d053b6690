"""Tests for the audit event log."""

from datetime import datetime, timezone

import pytest

from healthconsultant.audit.service import (
    AuditService,
    INTERACTION_DENIED,
    INTERACTION_RECORDED,
)
from healthconsultant.common.config import HealthConsultantSettings
from healthconsultant.common.database import DatabaseManager
from healthconsultant.usage.periods import current_year_month


@pytest.fixture
async def db():
    manager = DatabaseManager(
        HealthConsultantSettings(secret_key="test-secret", db_url="sqlite+aiosqlite://")
    )
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def svc():
    return AuditService()


class TestRecordEvent:
    async def test_record_and_read_back(self, db, svc):
        async with db.get_session() as session:
            event = await svc.record_event(
                session, "u1@example.com", INTERACTION_RECORDED, "u1@example.com",
                {"interaction_type": "chat"},
            )
            assert event.id
            assert event.detail == {"interaction_type": "chat"}

    async def test_default_actor_and_detail(self, db, svc):
        async with db.get_session() as session:
            event = await svc.record_event(session, "u1@example.com", "custom.event")
            assert event.actor == "system"
            assert event.detail == {}


class TestGetEvents:
    async def test_filters(self, db, svc):
        async with db.get_session() as session:
            await svc.record_event(session, "u1@example.com", INTERACTION_RECORDED)
            await svc.record_event(session, "u1@example.com", INTERACTION_DENIED)
            await svc.record_event(session, "u2@example.com", INTERACTION_RECORDED)

            assert len(await svc.get_events(session)) == 3
            assert len(await svc.get_events(session, user_email="u1@example.com")) == 2
            denied = await svc.get_events(session, event_type=INTERACTION_DENIED)
            assert [e.user_email for e in denied] == ["u1@example.com"]

    async def test_pagination(self, db, svc):
        async with db.get_session() as session:
            for _ in range(5):
                await svc.record_event(session, "u1@example.com", INTERACTION_RECORDED)
            assert len(await svc.get_events(session, limit=2)) == 2
            assert len(await svc.get_events(session, limit=10, offset=4)) == 1


class TestCountByType:
    async def test_groups_recorded_interactions(self, db, svc):
        async with db.get_session() as session:
            for kind in ("chat", "chat", "image_analysis"):
                await svc.record_event(
                    session, "u1@example.com", INTERACTION_RECORDED,
                    detail={"interaction_type": kind},
                )
            # Denials are not usage.
            await svc.record_event(
                session, "u1@example.com", INTERACTION_DENIED,
                detail={"interaction_type": "health_report"},
            )
            counts = await svc.count_by_type(session, "u1@example.com", current_year_month())
            assert counts == {"chat": 2, "image_analysis": 1}

    async def test_other_month_is_empty(self, db, svc):
        async with db.get_session() as session:
            event = await svc.record_event(
                session, "u1@example.com", INTERACTION_RECORDED,
                detail={"interaction_type": "chat"},
            )
            event.created_at = datetime(2020, 1, 10, tzinfo=timezone.utc)
            await session.flush()
            assert await svc.count_by_type(session, "u1@example.com", "2020-01") == {"chat": 1}
            assert await svc.count_by_type(session, "u1@example.com", "2020-02") == {}
