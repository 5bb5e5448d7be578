"""Transmission RPC client exceptions.

These exceptions describe failures talking to the daemon. The proxy layer
maps them to HTTP statuses; only RpcRemoteError is relayed to the caller
as a regular daemon-shaped response.
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from transmission_proxy.rpc.models import RpcResponse


class RpcError(Exception):
    """Base exception for Transmission RPC client errors."""


class RpcTransportError(RpcError):
    """Raised when the daemon cannot be reached (connect, read, write)."""


class RpcTimeoutError(RpcTransportError):
    """Raised when a call to the daemon times out."""


class RpcHttpError(RpcError):
    """Raised when the daemon answers with an unexpected HTTP status."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(message or f"daemon returned HTTP {status_code}")


class SessionNegotiationFailedError(RpcError):
    """Raised when the daemon rejects the session token twice in a row."""


class RpcMalformedError(RpcError):
    """Raised when the daemon's response is not a valid RPC envelope."""


class RpcRemoteError(RpcError):
    """Raised when the daemon reports a failure in the ``result`` field.

    Attributes:
        response: The full response envelope, so callers can relay it.
    """

    def __init__(self, response: RpcResponse) -> None:
        self.response = response
        super().__init__(response.result)
