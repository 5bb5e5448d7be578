"""Application factory for creating FastAPI instances.

This module provides the create_app factory function that:
- Configures the FastAPI application from settings
- Sets up the middleware stack in the correct order
- Registers exception handlers
- Mounts the RPC, auth and health routes
"""

from __future__ import annotations

from fastapi import FastAPI

from transmission_proxy.api.router import build_router
from transmission_proxy.core.config import Settings, get_settings
from transmission_proxy.core.events import lifespan
from transmission_proxy.core.exceptions import setup_exception_handlers
from transmission_proxy.core.middleware import LoggingMiddleware, RequestIDMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Args:
        settings: Optional settings override. If not provided, uses get_settings().

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Authenticating, authorizing proxy for the Transmission RPC API",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.is_development else None,
        debug=settings.app.debug,
    )

    # Store settings in app state for access in routes and the lifespan
    app.state.settings = settings

    setup_exception_handlers(app)
    _setup_middleware(app)
    app.include_router(build_router(settings.server.mount_path))

    return app


def _setup_middleware(app: FastAPI) -> None:
    """Configure middleware stack.

    Middleware is executed in reverse order of addition, so the request ID
    is bound before the logging middleware logs anything.
    """
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
