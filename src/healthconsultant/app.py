"""FastAPI application factory for HealthConsultant."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from healthconsultant.common.config import get_settings
from healthconsultant.common.exceptions import (
    HealthConsultantError,
    PersistenceError,
    QuotaExceededError,
)
from healthconsultant.common.logging import setup_logging
from healthconsultant.common.schemas import ErrorResponse, HealthResponse
from healthconsultant.entitlement.schemas import InteractionDenied

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from healthconsultant.deps import get_db, get_plan_catalog
        db = get_db()
        await db.init()
        await db.create_all()
        async with db.get_session() as session:
            await get_plan_catalog().seed_defaults(session)
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HealthConsultantError)
    async def handle_domain_error(request: Request, exc: HealthConsultantError):
        body = ErrorResponse(message=exc.message, code=exc.code)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @app.exception_handler(QuotaExceededError)
    async def handle_quota_exceeded(request: Request, exc: QuotaExceededError):
        body = InteractionDenied(
            remaining_interactions=exc.remaining,
            limit=exc.limit,
            message=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(by_alias=True))

    @app.exception_handler(SQLAlchemyError)
    async def handle_store_error(request: Request, exc: SQLAlchemyError):
        logger.error(
            "Unhandled database error",
            extra={"path": request.url.path},
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        err = PersistenceError()
        body = ErrorResponse(message=err.message, code=err.code)
        return JSONResponse(status_code=err.status_code, content=body.model_dump())

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from healthconsultant.entitlement.router import router as entitlement_router
    from healthconsultant.usage.router import router as usage_router
    from healthconsultant.plans.router import router as plans_router
    from healthconsultant.accounts.router import router as accounts_router
    from healthconsultant.audit.router import router as audit_router
    from healthconsultant.billing.router import router as billing_router

    prefix = settings.api_prefix
    app.include_router(entitlement_router, prefix=prefix, tags=["entitlement"])
    app.include_router(usage_router, prefix=prefix, tags=["usage"])
    app.include_router(plans_router, prefix=prefix, tags=["plans"])
    app.include_router(accounts_router, prefix=prefix, tags=["accounts"])
    app.include_router(audit_router, prefix=prefix, tags=["audit"])
    app.include_router(billing_router, prefix=prefix, tags=["billing"])

    return app
