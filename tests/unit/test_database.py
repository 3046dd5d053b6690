"""Tests for the database manager and its engine options."""

import pytest
from sqlalchemy.pool import StaticPool

from healthconsultant.common.config import HealthConsultantSettings
from healthconsultant.common.database import DatabaseManager, engine_options


def make_settings(**overrides) -> HealthConsultantSettings:
    defaults = {"secret_key": "test-secret", "db_url": "sqlite+aiosqlite://"}
    defaults.update(overrides)
    return HealthConsultantSettings(**defaults)


class TestEngineOptions:
    def test_memory_sqlite_shares_one_connection(self):
        options = engine_options(make_settings())
        assert options["poolclass"] is StaticPool
        assert options["connect_args"] == {"timeout": 15.0}

    def test_file_sqlite_waits_for_lock(self, tmp_path):
        db_file = tmp_path / "nested" / "hc.db"
        options = engine_options(make_settings(
            db_url=f"sqlite+aiosqlite:///{db_file}", db_busy_timeout=2.5,
        ))
        assert options == {"connect_args": {"timeout": 2.5}}
        assert db_file.parent.is_dir()

    def test_postgres_pings_pooled_connections(self):
        options = engine_options(make_settings(
            db_url="postgresql+asyncpg://hc:hc@localhost/hc",
        ))
        assert options == {"pool_pre_ping": True}


class TestDatabaseManager:
    async def test_session_before_init_raises(self):
        manager = DatabaseManager(make_settings())
        with pytest.raises(RuntimeError, match="init"):
            async with manager.get_session():
                pass

    async def test_memory_tables_visible_across_sessions(self):
        from healthconsultant.plans.service import PlanCatalog

        manager = DatabaseManager(make_settings())
        await manager.init()
        await manager.create_all()
        try:
            async with manager.get_session() as session:
                await PlanCatalog().seed_defaults(session)
            async with manager.get_session() as session:
                plans = await PlanCatalog().list_plans(session)
                assert {p.title for p in plans} >= {"Free", "Basic", "Premium"}
        finally:
            await manager.close()
