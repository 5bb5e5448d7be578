"""Exception handlers.

Every failure is rendered as a daemon-shaped envelope so RPC clients can
show it like any other result:

    {"result": "unauthorized", "arguments": {}, "tag": 7}

Authentication and authorization failures never say more than
"unauthorized"; the precise cause is only logged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, status
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from transmission_proxy.auth.providers.exceptions import AuthenticationError
from transmission_proxy.observability.logging import get_logger
from transmission_proxy.proxy.exceptions import AclDeniedError, ProxyError, SessionConflictError
from transmission_proxy.rpc.exceptions import RpcError, RpcTimeoutError
from transmission_proxy.rpc.models import SESSION_ID_HEADER


if TYPE_CHECKING:
    from fastapi import Request

logger = get_logger(__name__)

BASIC_CHALLENGE = 'Basic realm="Transmission", charset="UTF-8"'


class RpcErrorResponse(BaseModel):
    """Daemon-shaped error body."""

    result: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    tag: int | None = None


def _get_tag(request: Request) -> int | None:
    """RPC tag of the call being handled, once its body was parsed."""
    return getattr(request.state, "rpc_tag", None)


def _challenge_headers(request: Request) -> dict[str, str]:
    resolver = getattr(request.app.state, "resolver", None)
    if resolver is not None and resolver.basic_enabled:
        return {"WWW-Authenticate": BASIC_CHALLENGE}
    return {}


def error_response(
    status_code: int,
    result: str,
    *,
    tag: int | None = None,
    headers: dict[str, str] | None = None,
) -> ORJSONResponse:
    """Build a daemon-shaped error response."""
    return ORJSONResponse(
        status_code=status_code,
        content=RpcErrorResponse(result=result, tag=tag).model_dump(exclude_none=True),
        headers=headers,
    )


def unauthorized_response(request: Request, *, tag: int | None = None) -> ORJSONResponse:
    """401 with the Basic challenge when a Basic provider is enabled."""
    return error_response(
        status.HTTP_401_UNAUTHORIZED,
        "unauthorized",
        tag=tag,
        headers=_challenge_headers(request),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the FastAPI application."""

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request,
        exc: AuthenticationError,
    ) -> ORJSONResponse:
        """Handle rejected credentials."""
        logger.warning("Authentication failed", reason=type(exc).__name__, detail=str(exc))
        return unauthorized_response(request, tag=_get_tag(request))

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(
        request: Request,
        exc: ProxyError,
    ) -> ORJSONResponse:
        """Handle failures raised by the proxy itself."""
        if isinstance(exc, AclDeniedError):
            return unauthorized_response(request, tag=exc.tag)
        if isinstance(exc, SessionConflictError):
            return error_response(
                exc.status_code,
                exc.message,
                tag=exc.tag,
                headers={SESSION_ID_HEADER: exc.session_id},
            )
        return error_response(exc.status_code, exc.message, tag=exc.tag)

    @app.exception_handler(RpcError)
    async def rpc_error_handler(
        request: Request,
        exc: RpcError,
    ) -> ORJSONResponse:
        """Handle daemon communication failures."""
        logger.error("Upstream RPC failed", error_type=type(exc).__name__, error=str(exc))
        result = "upstream timeout" if isinstance(exc, RpcTimeoutError) else "upstream error"
        return error_response(status.HTTP_502_BAD_GATEWAY, result, tag=_get_tag(request))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> ORJSONResponse:
        """Handle Starlette HTTP exceptions."""
        return error_response(exc.status_code, str(exc.detail), tag=_get_tag(request))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> ORJSONResponse:
        """Handle anything else without leaking details."""
        logger.opt(exception=exc).error("Unhandled exception", path=request.url.path)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "internal error",
            tag=_get_tag(request),
        )
