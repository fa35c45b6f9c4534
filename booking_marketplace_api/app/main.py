"""
Main entrypoint for the Booking Marketplace API.

This module assembles the FastAPI application: logging, exception
handlers and the versioned routers.  The ``create_app`` function
builds and configures the app, which is instantiated at import time
as ``app`` so it can be served directly::

    uvicorn booking_marketplace_api.app.main:app --reload
"""

import logging

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.errors import setup_exception_handlers
from .core.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Logging first, so that anything below can log.  DEBUG=true forces debug output.
    setup_logging("DEBUG" if settings.debug else settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version)
    setup_exception_handlers(app)
    app.include_router(v1_router, prefix="/api/v1")

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file if needed and applies pending migrations.
        init_db()
        logger.info("%s %s started", settings.project_name, settings.api_version)

    return app


app = create_app()
