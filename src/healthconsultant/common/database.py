"""Async database manager for HealthConsultant (single-DB)."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from healthconsultant.common.config import HealthConsultantSettings, get_settings
from healthconsultant.common.models import Base

# Import all model modules so Base.metadata is complete for create_all().
import healthconsultant.plans.models  # noqa: F401
import healthconsultant.accounts.models  # noqa: F401
import healthconsultant.usage.models  # noqa: F401
import healthconsultant.audit.models  # noqa: F401


def engine_options(settings: HealthConsultantSettings) -> dict[str, Any]:
    """Engine keyword arguments for the configured backend.

    SQLite gets a busy timeout so concurrent ledger upserts wait for the
    write lock instead of failing with "database is locked". An in-memory
    SQLite database lives on one shared connection.
    """
    url = make_url(settings.db_url)
    if url.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True}

    options: dict[str, Any] = {"connect_args": {"timeout": settings.db_busy_timeout}}
    if not url.database or url.database == ":memory:":
        options["poolclass"] = StaticPool
    else:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return options


class DatabaseManager:
    """Manages a single async database engine."""

    def __init__(self, settings: HealthConsultantSettings | None = None):
        self._settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        self.engine = create_async_engine(
            self._settings.db_url, echo=False, **engine_options(self._settings)
        )
        self._session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager not initialized; call init() first")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized; call init() first")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self._session_factory = None
