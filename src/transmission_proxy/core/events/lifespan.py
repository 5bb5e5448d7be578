"""Application lifespan event handlers.

This module defines the lifespan context manager that handles:
- Application startup: build the RPC client, providers, resolver, ACL
  engine and mediator and attach them to app.state
- Application shutdown: close outbound HTTP clients
"""

from __future__ import annotations

import secrets
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from transmission_proxy.acl.engine import AclEngine
from transmission_proxy.auth.providers import PendingLoginStore, create_auth_providers
from transmission_proxy.auth.resolver import IdentityResolver
from transmission_proxy.auth.session import IdentityCookieCodec
from transmission_proxy.core.config import Settings, get_settings
from transmission_proxy.observability.logging import get_logger, setup_logging
from transmission_proxy.proxy.directories import DownloadDirectories
from transmission_proxy.proxy.mediator import ProxyMediator
from transmission_proxy.rpc.client import TransmissionClient
from transmission_proxy.rpc.session import SessionTokenStore


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    import httpx
    from fastapi import FastAPI

logger = get_logger(__name__)


def _secret_key(settings: Settings) -> str:
    if settings.SECRET_KEY:
        return settings.SECRET_KEY

    logger.warning(
        "SECRET_KEY is not set; using a random key, sessions will not survive a restart"
    )
    return secrets.token_urlsafe(32)


async def init_services(
    app: FastAPI,
    settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> None:
    """Build every request-time collaborator and attach it to app.state.

    Args:
        app: The FastAPI application instance.
        settings: Application settings.
        http_client: Optional HTTP client for the daemon and OAuth2 issuers.
    """
    client = TransmissionClient(
        settings.upstream.url,
        session=SessionTokenStore(),
        timeout=settings.upstream.timeout,
        http_client=http_client,
    )
    await client.initialize()

    providers = create_auth_providers(
        settings.providers,
        PendingLoginStore(settings.session.pending_login_ttl_seconds),
        timeout=settings.upstream.timeout,
        http_client=http_client,
    )
    resolver = IdentityResolver(
        providers,
        IdentityCookieCodec(_secret_key(settings), ttl=settings.session.cookie_ttl),
    )
    await resolver.initialize()

    directories = DownloadDirectories(
        settings.upstream.download_root,
        create=settings.upstream.create_directories,
    )

    app.state.rpc_client = client
    app.state.resolver = resolver
    app.state.mediator = ProxyMediator(AclEngine(settings.acl), client, directories)

    logger.info(
        "Proxy ready",
        upstream=settings.upstream.url,
        rules=len(settings.acl.rules),
        providers=[provider.provider_name for provider in providers],
    )


async def shutdown_services(app: FastAPI) -> None:
    """Release resources created by init_services."""
    resolver = getattr(app.state, "resolver", None)
    if resolver is not None:
        await resolver.shutdown()

    client = getattr(app.state, "rpc_client", None)
    if client is not None:
        await client.shutdown()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None - control returns to the application to handle requests.
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()

    setup_logging(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        is_development=settings.is_development,
    )
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.APP_ENV,
    )

    await init_services(app, settings)
    yield

    logger.info("Shutting down application")
    await shutdown_services(app)
    logger.info("Application shutdown complete")
