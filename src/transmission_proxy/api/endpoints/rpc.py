"""RPC endpoint.

Accepts the daemon's JSON-RPC envelope, resolves the caller, and hands the
call to the proxy mediator. Callers go through the same session handshake
the daemon requires, against a session id issued by the proxy; the daemon's
own token is handled by the RPC client.
"""

from __future__ import annotations

from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import ORJSONResponse, RedirectResponse, Response

from transmission_proxy.api.dependencies import get_app_settings, get_identity, get_mediator
from transmission_proxy.auth.identity import Identity
from transmission_proxy.core.config import Settings
from transmission_proxy.proxy.exceptions import AclDeniedError
from transmission_proxy.proxy.mediator import ProxyMediator, parse_rpc_request
from transmission_proxy.rpc.models import SESSION_ID_HEADER


router = APIRouter(tags=["rpc"])


def prefers_html(request: Request) -> bool:
    """Whether the caller is a browser navigating rather than an RPC client."""
    accept = request.headers.get("accept", "")
    return "text/html" in accept.lower()


@router.post("/rpc")
async def rpc(
    request: Request,
    identity: Annotated[Identity, Depends(get_identity)],
    mediator: Annotated[ProxyMediator, Depends(get_mediator)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> Response:
    """Authorize and forward one RPC call."""
    mediator.session.verify(request.headers.get(SESSION_ID_HEADER))

    rpc_request = parse_rpc_request(await request.body())
    request.state.rpc_tag = rpc_request.tag

    try:
        response = await mediator.handle(identity, rpc_request)
    except AclDeniedError:
        if identity.is_anonymous and prefers_html(request):
            query = urlencode({"redirect_to": request.url.path})
            return RedirectResponse(f"{settings.login_path}?{query}", status_code=302)
        raise

    return ORJSONResponse(
        response.to_wire(),
        headers={SESSION_ID_HEADER: mediator.session.session_id},
    )
