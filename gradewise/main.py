"""
FastAPI application entrypoint for the GradeWise authentication service.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from gradewise.api.routes import (
    live_login_router,
    local_login_router,
    offline_login_router,
    router as api_router,
    schoology_auth_error_handler,
)
from gradewise.core.config import AppSettings, get_settings
from gradewise.core.errors import SchoologyAuthError
from gradewise.core.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Factory for the FastAPI application.

    Offline mode is fixed here, once per process: the login route either
    starts the Schoology flow or always hands out the demo session. The
    admin-signed mock login exists only in offline or local deployments.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="GradeWise",
        version="0.1.0",
        description="Schoology OAuth 1.0a sign-in and signed API access for the GradeWise dashboard.",
    )
    if settings.offline_mode:
        logger.info("Offline mode enabled; Schoology login is replaced by the demo session.")
        app.include_router(offline_login_router, prefix="/api")
    else:
        app.include_router(live_login_router, prefix="/api")
    if settings.offline_mode or settings.is_local_development:
        app.include_router(local_login_router, prefix="/api")
    app.include_router(api_router, prefix="/api")
    app.add_exception_handler(SchoologyAuthError, schoology_auth_error_handler)
    return app


app = create_app()

__all__ = ["app", "create_app"]
