"""Shared test fixtures for HealthConsultant."""

import os
import pytest
from httpx import ASGITransport, AsyncClient


SECRET_KEY = "test-secret-key-for-unit-tests"
PATIENT_EMAIL = "patient@example.com"
ADMIN_EMAIL = "admin@example.com"


@pytest.fixture
def secret_key():
    return SECRET_KEY


@pytest.fixture
def app():
    """Create a test app with in-memory DB."""
    os.environ["HC_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["HC_SECRET_KEY"] = SECRET_KEY
    os.environ.pop("HC_STRIPE_WEBHOOK_SECRET", None)

    # Clear caches and singletons so new env vars take effect
    from healthconsultant.common.config import get_settings
    get_settings.cache_clear()

    from healthconsultant.deps import reset_singletons
    reset_singletons()

    from healthconsultant.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB and seed plans since ASGITransport doesn't run lifespan
    from healthconsultant.deps import get_db, get_plan_catalog
    db = get_db()
    await db.init()
    await db.create_all()
    async with db.get_session() as session:
        await get_plan_catalog().seed_defaults(session)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


@pytest.fixture
async def patient(client):
    """A Free-plan account for PATIENT_EMAIL."""
    from healthconsultant.deps import get_account_service, get_db
    async with get_db().get_session() as session:
        return await get_account_service().create_user(
            session, PATIENT_EMAIL, first_name="Pat",
        )


@pytest.fixture
async def admin_user(client):
    from healthconsultant.deps import get_account_service, get_db
    async with get_db().get_session() as session:
        return await get_account_service().create_user(
            session, ADMIN_EMAIL, first_name="Ada", plan="Premium", is_admin=True,
        )


@pytest.fixture
def user_headers(app):
    from healthconsultant.common.security import issue_session_token
    return {"Authorization": f"Bearer {issue_session_token(PATIENT_EMAIL)}"}


@pytest.fixture
def admin_headers(app):
    from healthconsultant.common.security import issue_session_token
    token = issue_session_token(ADMIN_EMAIL, is_admin=True)
    return {"Authorization": f"Bearer {token}"}
