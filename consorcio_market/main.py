"""FastAPI application entry point — wires everything together.

Usage:
    python -m consorcio_market.main

The lifespan builds the Database handle and the services once and stores
them on ``app.state``; tests pass their own Database to ``create_app``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from consorcio_market.api import admin, cotas, documents, profiles, proposals
from consorcio_market.config import Settings, settings
from consorcio_market.db.engine import Database
from consorcio_market.documents.review import DocumentReviewService
from consorcio_market.errors import MarketError, PersistenceError
from consorcio_market.logging_config import configure_logging
from consorcio_market.profiles.service import ProfileService
from consorcio_market.quotas.editing import CotaEditor
from consorcio_market.rates.recalculation import RateRecalculator
from consorcio_market.security.authorization import Authorizer
from consorcio_market.workflow.engine import ProposalWorkflow

logger = logging.getLogger(__name__)


def _install_services(app: FastAPI, database: Database, app_settings: Settings) -> None:
    authorizer = Authorizer()
    workflow = ProposalWorkflow(authorizer)
    app.state.settings = app_settings
    app.state.database = database
    app.state.authorizer = authorizer
    app.state.workflow = workflow
    app.state.documents = DocumentReviewService(authorizer, workflow)
    app.state.profiles = ProfileService(authorizer)
    app.state.cota_editor = CotaEditor(
        authorizer,
        default_administrator=app_settings.marketplace.default_administrator,
        initial_guess=app_settings.rates.initial_guess,
    )
    app.state.recalculator = RateRecalculator(database, app_settings.rates)


# ── Error rendering ──────────────────────────────────────────────────


async def market_error_handler(request: Request, exc: MarketError) -> JSONResponse:
    """Render domain errors as {"error": code, "detail": message, **context}."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Store failures that escaped a service (e.g. during autoflush)."""
    logger.exception("Store error on %s %s", request.method, request.url.path)
    error = PersistenceError("Erro ao gravar no banco de dados")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# ── App factory ──────────────────────────────────────────────────────


def create_app(database: Database | None = None, app_settings: Settings | None = None) -> FastAPI:
    """Build the API.

    Args:
        database: Pre-built handle (tests). When omitted the lifespan builds
            one from settings and disposes it on shutdown.
        app_settings: Settings override, defaults to the module settings.
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application startup and shutdown lifecycle."""
        owned = database is None
        if owned:
            configure_logging(app_settings.log_level)
        logger.info("Starting Consórcio Market API (env=%s)", app_settings.environment)

        db_handle = database or Database.from_settings(app_settings.db)
        if owned and app_settings.db.create_tables and not app_settings.is_production:
            await db_handle.create_all()
        _install_services(app, db_handle, app_settings)
        logger.info("Services initialized")

        try:
            yield
        finally:
            if owned:
                await db_handle.dispose()
                logger.info("Database connections closed")
            logger.info("Consórcio Market API shutdown complete")

    app = FastAPI(
        title="Consórcio Market API",
        description="Marketplace for contemplated consortium quotas",
        version="0.1.0",
        lifespan=lifespan,
    )
    # Available before startup too, so ASGI test transports work without lifespan events
    if database is not None:
        _install_services(app, database, app_settings)

    app.add_exception_handler(MarketError, market_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, store_error_handler)  # type: ignore[arg-type]

    app.include_router(cotas.router)
    app.include_router(proposals.router)
    app.include_router(documents.router)
    app.include_router(profiles.router)
    app.include_router(admin.router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "environment": app_settings.environment}

    return app


app = create_app()


# ── Entry point ──────────────────────────────────────────────────────

if __name__ == "__main__":
    uvicorn.run(
        "consorcio_market.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
