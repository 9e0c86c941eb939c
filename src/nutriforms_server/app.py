"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads the template policy and builds the workflows once
  - CORS middleware
  - Global exception handlers (FormsError → 4xx/503, storage → 503)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``nutriforms-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from nutriforms.authoring import TemplateAuthoring
from nutriforms.controller import FormController
from nutriforms.errors import FormsError
from nutriforms.policy import load_form_policy
from nutriforms_db.engine import dispose_engine, get_engine

from nutriforms_server.config import ServerSettings, load_settings
from nutriforms_server.errors import (
    forms_error_handler,
    generic_error_handler,
    storage_error_handler,
)
from nutriforms_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan — runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Load the ``FormPolicy`` (locked slugs)
      2. Build ``FormController`` and ``TemplateAuthoring``
      3. Stash them on ``app.state`` for dependency injection

    Shutdown:
      1. Dispose the database engine's connection pool
    """
    settings: ServerSettings = app.state.settings

    policy = load_form_policy(settings.policy_file)
    logger.info("Locked templates: %s", ", ".join(sorted(policy.locked_slugs)) or "none")

    app.state.policy = policy
    app.state.controller = FormController(policy)
    app.state.authoring = TemplateAuthoring()

    yield

    await dispose_engine()
    logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Nutriforms API Server",
        description="REST API for nutrition program forms and scored tests",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler can read them
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(FormsError, forms_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — verifies DB connectivity."""
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok"}
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": "database unreachable"}

    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn nutriforms_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``nutriforms-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "nutriforms_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
