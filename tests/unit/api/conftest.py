"""API test fixtures.

The application runs in-process over ASGITransport; the daemon and OAuth2
issuer are mocked with respx.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
import respx

from tests.conftest import SESSION_TOKEN, UPSTREAM_URL
from transmission_proxy.core.config import Settings
from transmission_proxy.core.events import init_services, shutdown_services
from transmission_proxy.factory import create_app
from transmission_proxy.rpc.models import SESSION_ID_HEADER


class FakeDaemon:
    """Answers like Transmission: 409 without the session token, else echoes.

    Attributes:
        arguments: Arguments returned for every successful call.
        requests: Bodies of the calls that carried a valid token.
    """

    def __init__(self) -> None:
        self.arguments: dict[str, Any] = {}
        self.requests: list[dict[str, Any]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.headers.get(SESSION_ID_HEADER) != SESSION_TOKEN:
            return httpx.Response(409, headers={SESSION_ID_HEADER: SESSION_TOKEN})

        body = json.loads(request.content)
        self.requests.append(body)
        payload: dict[str, Any] = {"result": "success", "arguments": self.arguments}
        if "tag" in body:
            payload["tag"] = body["tag"]
        return httpx.Response(200, json=payload)


@pytest.fixture
def daemon() -> FakeDaemon:
    return FakeDaemon()


@pytest.fixture
def mocked(daemon: FakeDaemon):
    """Route outbound HTTP to the fake daemon."""
    with respx.mock(assert_all_called=False) as router:
        router.post(UPSTREAM_URL).mock(side_effect=daemon)
        yield router


@pytest.fixture
async def app(settings: Settings, mocked: respx.MockRouter):
    """Application with services started against the mocked daemon."""
    app = create_app(settings)
    async with httpx.AsyncClient() as http_client:
        await init_services(app, settings, http_client=http_client)
        yield app
        await shutdown_services(app)


@pytest.fixture
async def client(app):
    """Client that already completed the session handshake with the proxy."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://proxy.test",
        headers={SESSION_ID_HEADER: app.state.mediator.session.session_id},
    ) as client:
        yield client
