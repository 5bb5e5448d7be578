"""Login, logout and provider callback endpoints.

Routes (under the mount path):
- GET /login: list the visible providers, or bounce an authenticated caller
- GET /logout: drop the identity cookie
- GET /auth/basic: exchange a Basic header for an identity cookie
- GET /auth/{provider}/login: start an OAuth2 login
- GET /auth/{provider}/callback: finish an OAuth2 login
"""

from __future__ import annotations

from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse, Response
from pydantic import BaseModel

from transmission_proxy.api.dependencies import get_app_settings, get_identity, get_resolver
from transmission_proxy.auth.identity import Identity, ProviderType
from transmission_proxy.auth.providers.models import OAuth2Callback
from transmission_proxy.auth.resolver import IdentityResolver, parse_basic_authorization
from transmission_proxy.core.config import Settings
from transmission_proxy.core.exceptions import unauthorized_response
from transmission_proxy.observability.logging import get_logger


router = APIRouter(tags=["auth"])

logger = get_logger(__name__)


class ProviderLink(BaseModel):
    """A login option advertised to browsers."""

    name: str
    type: ProviderType
    login_url: str


class LoginResponse(BaseModel):
    """Login options for an anonymous caller."""

    redirect_to: str
    providers: list[ProviderLink]


def safe_redirect(target: str | None, default: str) -> str:
    """Only allow local absolute paths as post-login destinations."""
    if not target or not target.startswith("/") or target.startswith("//") or "\\" in target:
        return default
    return target


def _cookie_path(settings: Settings) -> str:
    return settings.server.mount_path or "/"


def _base_url(request: Request, settings: Settings) -> str:
    if settings.server.public_url:
        return settings.server.public_url.rstrip("/")
    return str(request.base_url).rstrip("/")


def _set_identity_cookie(
    response: Response,
    resolver: IdentityResolver,
    identity: Identity,
    settings: Settings,
) -> None:
    response.set_cookie(
        settings.session.cookie_name,
        resolver.cookies.encode(identity),
        max_age=int(resolver.cookies.ttl.total_seconds()),
        path=_cookie_path(settings),
        httponly=True,
        secure=settings.session.cookie_secure,
        samesite="strict",
    )


@router.get("/login", response_model=LoginResponse)
async def login(
    settings: Annotated[Settings, Depends(get_app_settings)],
    resolver: Annotated[IdentityResolver, Depends(get_resolver)],
    identity: Annotated[Identity, Depends(get_identity)],
    redirect_to: Annotated[str | None, Query()] = None,
) -> Response | LoginResponse:
    """Show login options, or redirect callers that are already logged in."""
    target = safe_redirect(redirect_to, settings.web_path)
    if not identity.is_anonymous:
        return RedirectResponse(target, status_code=302)

    mount = settings.server.mount_path
    query = urlencode({"redirect_to": target})
    links = []
    for provider in resolver.visible_providers():
        if provider.kind.type is ProviderType.OAUTH2:
            name = provider.kind.label or ""
            url = f"{mount}/auth/{name}/login?{query}"
        else:
            name = provider.provider_name
            url = f"{mount}/auth/basic?{query}"
        links.append(ProviderLink(name=name, type=provider.kind.type, login_url=url))

    return LoginResponse(redirect_to=target, providers=links)


@router.get("/logout")
async def logout(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> Response:
    """Expire the identity cookie and return to the login route."""
    response = RedirectResponse(settings.login_path, status_code=302)
    response.delete_cookie(settings.session.cookie_name, path=_cookie_path(settings))
    return response


@router.get("/auth/basic")
async def basic_login(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    resolver: Annotated[IdentityResolver, Depends(get_resolver)],
    redirect_to: Annotated[str | None, Query()] = None,
) -> Response:
    """Turn Basic credentials into an identity cookie.

    Without credentials the browser is challenged, which makes it show its
    native login prompt.
    """
    credentials = parse_basic_authorization(request.headers.get("authorization"))
    if credentials is None:
        return unauthorized_response(request)

    identity = await resolver.authenticate(credentials)
    logger.info("Basic login", identity=str(identity))

    response = RedirectResponse(safe_redirect(redirect_to, settings.web_path), status_code=302)
    _set_identity_cookie(response, resolver, identity, settings)
    return response


@router.get("/auth/{provider}/login")
async def oauth2_login(
    provider: str,
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    resolver: Annotated[IdentityResolver, Depends(get_resolver)],
    redirect_to: Annotated[str | None, Query()] = None,
) -> Response:
    """Redirect the browser to the issuer's authorization page."""
    oauth2 = resolver.oauth2_provider(provider)
    callback = f"{_base_url(request, settings)}{settings.server.mount_path}/auth/{provider}/callback"
    authorization = await oauth2.authorize(
        callback,
        return_to=safe_redirect(redirect_to, settings.web_path),
    )

    response = RedirectResponse(authorization.url, status_code=302)
    # Lax: the callback is a cross-site top-level navigation from the issuer
    response.set_cookie(
        settings.session.login_cookie_name,
        authorization.state,
        max_age=settings.session.pending_login_ttl_seconds,
        path=_cookie_path(settings),
        httponly=True,
        secure=settings.session.cookie_secure,
        samesite="lax",
    )
    return response


@router.get("/auth/{provider}/callback")
async def oauth2_callback(
    provider: str,
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    resolver: Annotated[IdentityResolver, Depends(get_resolver)],
    state: Annotated[str | None, Query()] = None,
    code: Annotated[str | None, Query()] = None,
    error: Annotated[str | None, Query()] = None,
) -> Response:
    """Complete an OAuth2 login and set the identity cookie."""
    if error or not state or not code:
        logger.warning("OAuth2 callback without a code", provider=provider, error=error)
        return unauthorized_response(request)

    completed = await resolver.complete_oauth2(
        OAuth2Callback(
            provider=provider,
            state=state,
            code=code,
            browser_state=request.cookies.get(settings.session.login_cookie_name),
        )
    )

    response = RedirectResponse(
        safe_redirect(completed.return_to, settings.web_path),
        status_code=302,
    )
    _set_identity_cookie(response, resolver, completed.identity, settings)
    response.delete_cookie(settings.session.login_cookie_name, path=_cookie_path(settings))
    return response
