from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response, status

from lettercast import __version__
from lettercast.api.errors import register_exception_handlers
from lettercast.api.routes import newsletters, subscriptions
from lettercast.app_shell.context import ServiceContext
from lettercast.settings import Settings, load_settings, resolve_config_path

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    context: ServiceContext | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    With no arguments the settings are loaded from the configured YAML file
    and a ServiceContext (pool, store, email sender) is built from them. Tests
    pass a ready-made context instead.
    """
    if context is None:
        if settings is None:
            settings = load_settings(resolve_config_path())
        context = ServiceContext.create(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        logger.info("Serving with database %s", context.settings.database.path)
        yield
        context.close()

    app = FastAPI(
        title="Lettercast API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = context

    register_exception_handlers(app)

    app.include_router(subscriptions.router, prefix="/subscriptions", tags=["Subscriptions"])
    app.include_router(newsletters.router, prefix="/newsletters", tags=["Newsletters"])

    @app.get("/health_check")
    def health_check() -> Response:
        """Liveness check. Does not touch the database."""
        return Response(status_code=status.HTTP_200_OK)

    return app
