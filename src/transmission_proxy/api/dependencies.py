"""FastAPI dependencies for service access.

Services are built during application startup and stored in app.state.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from transmission_proxy.auth.identity import Identity
from transmission_proxy.auth.resolver import IdentityResolver
from transmission_proxy.core.config import Settings, get_settings
from transmission_proxy.proxy.mediator import ProxyMediator


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    settings: Settings | None = getattr(request.app.state, "settings", None)
    return settings or get_settings()


def _require(request: Request, name: str) -> object:
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="service not available",
        )
    return service


async def get_resolver(request: Request) -> IdentityResolver:
    """Get the identity resolver from app state.

    Raises:
        HTTPException: 503 if the application has not started.
    """
    return _require(request, "resolver")  # type: ignore[return-value]


async def get_mediator(request: Request) -> ProxyMediator:
    """Get the proxy mediator from app state.

    Raises:
        HTTPException: 503 if the application has not started.
    """
    return _require(request, "mediator")  # type: ignore[return-value]


async def get_identity(
    request: Request,
    resolver: Annotated[IdentityResolver, Depends(get_resolver)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> Identity:
    """Resolve the caller's identity (Anonymous when no credentials are sent).

    Raises:
        AuthenticationError: If presented credentials are rejected.
    """
    return await resolver.resolve(
        authorization=request.headers.get("authorization"),
        cookie=request.cookies.get(settings.session.cookie_name),
    )
