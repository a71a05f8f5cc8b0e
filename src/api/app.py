# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the Registrar API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import RequestContextMiddleware
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.config import get_settings
from src.infrastructure.background import start_scheduler, stop_scheduler
from src.infrastructure.database.connection import (
    close_database,
    create_schema,
    init_database,
)
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.
    Initializes and cleans up:
    - Logging
    - Database connections
    - APScheduler for periodic jobs

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting Registrar API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    await init_database(settings)
    logger.info("Database connection initialized")

    # SQLite is for local runs only; deployments apply migrations
    if settings.db.is_sqlite:
        await create_schema()
        logger.info("SQLite schema created")

    try:
        await start_scheduler(settings)
        logger.info("Scheduler started")
    except Exception as e:
        logger.warning("Failed to start scheduler: %s", str(e))

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    # Stop scheduler first so no job holds a session
    try:
        await stop_scheduler()
        logger.info("Scheduler stopped")
    except Exception as e:
        logger.warning("Error stopping scheduler: %s", str(e))

    await close_database()
    logger.info("Shutting down Registrar API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Registrar API",
        description="Course scheduling and enrollment engine",
        version="1.0.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    app.add_middleware(RequestContextMiddleware)

    # CORS middleware (should be last to execute first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
