# SPDX-License-Identifier: MIT
"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import APIConfig

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    config: APIConfig = app.state.config

    from .db import init_db

    await init_db(config.database)
    logger.info(
        "repub %s ready (storage=%s, base_url=%s)",
        config.version,
        config.storage.backend,
        config.base_url or "<from request>",
    )

    yield

    from .db import close_db

    await close_db()


def create_app(config: APIConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: API configuration. If None, loads from environment.

    Returns:
        Configured FastAPI application instance.

    Raises:
        ConfigError: If the configuration is incomplete
    """
    if config is None:
        config = APIConfig.from_env()
    config.validate()

    from .middleware.errors import PubJSONResponse, add_error_handlers

    app = FastAPI(
        title=config.title,
        description=config.description,
        version=config.version,
        debug=config.debug,
        docs_url=config.docs_url,
        openapi_url=config.openapi_url,
        default_response_class=PubJSONResponse,
        lifespan=lifespan,
    )

    from .services.pending import PendingUploadStore
    from .storage import create_storage

    app.state.config = config
    app.state.storage = create_storage(config.storage)
    app.state.pending_uploads = PendingUploadStore()

    add_error_handlers(app)

    from .routes import download, packages, publish

    app.include_router(publish.router, tags=["publish"])
    app.include_router(packages.router, tags=["packages"])
    app.include_router(download.router, tags=["download"])

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy", "version": config.version}

    return app
