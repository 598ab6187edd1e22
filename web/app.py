"""FastAPI application factory and main app.

This module creates the FastAPI application with all routers and
dependency injection configured.

Web routes are thin proxies to core APIs.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from gobinaries import __version__
from gobinaries.builds.environment import BuildEnvironment
from gobinaries.builds.service import create_binary_service
from gobinaries.config import get_settings
from web.routers import binaries, cache, config, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager.

    Snapshots the toolchain environment and creates the shared service on
    startup; releases its HTTP client on shutdown.
    """
    settings = get_settings()
    service = create_binary_service(settings, BuildEnvironment.from_environ())
    app.state.binary_service = service
    logger.info(
        "Serving binaries from %s (prefix=%r)",
        settings.storage_dir,
        settings.storage_prefix,
    )
    try:
        yield
    finally:
        service.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application.
    """
    application = FastAPI(
        title="gobinaries API",
        description="HTTP API that resolves, builds and serves Go binaries",
        version=__version__,
        lifespan=lifespan,
    )

    # Include routers
    application.include_router(health.router, tags=["health"])
    application.include_router(config.router, prefix="/config", tags=["config"])
    application.include_router(binaries.router, tags=["binaries"])
    application.include_router(cache.router, prefix="/cache", tags=["cache"])

    return application


# Create the default application instance
app = create_app()
