# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application factory for the student portal API.

Run with:
    uvicorn student_portal.api.app:create_app --factory
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from student_portal import __version__
from student_portal.api.dependencies import close_services, init_services
from student_portal.api.middleware.portal_session import PortalSessionMiddleware
from student_portal.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from student_portal.api.routes import health
from student_portal.api.v1 import router as v1_router
from student_portal.core.config import get_settings
from student_portal.infrastructure.database import DatabaseError
from student_portal.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the service graph on startup and release it on shutdown.

    A database failure at startup is logged and the API keeps serving;
    admission is refused until the counter store becomes reachable.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Portal starting (environment=%s, registration limit=%d)",
        settings.environment,
        settings.registration.limit,
    )

    try:
        await init_services(settings)
    except DatabaseError as e:
        logger.warning("Portal started without its counter store: %s", str(e))
    else:
        logger.info("Portal services ready")

    try:
        yield
    finally:
        await close_services()
        logger.info("Portal stopped")


def create_app() -> FastAPI:
    """Assemble the FastAPI application.

    API docs are only served when debug is on.
    """
    settings = get_settings()
    docs_enabled = settings.debug

    app = FastAPI(
        title="Student Portal API",
        description="Admission-gated account provisioning for the student portal",
        version=__version__,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Last added runs first: CORS wraps the session middleware.
    app.add_middleware(PortalSessionMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
