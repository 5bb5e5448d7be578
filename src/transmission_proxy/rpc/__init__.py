"""Transmission RPC client package.

Usage:
    from transmission_proxy.rpc import TransmissionClient, SessionTokenStore

    client = TransmissionClient(url, session=SessionTokenStore())
    stats = await client.session_stats()
"""

from transmission_proxy.rpc.client import TransmissionClient
from transmission_proxy.rpc.exceptions import (
    RpcError,
    RpcHttpError,
    RpcMalformedError,
    RpcRemoteError,
    RpcTimeoutError,
    RpcTransportError,
    SessionNegotiationFailedError,
)
from transmission_proxy.rpc.models import (
    SESSION_ID_HEADER,
    TORRENT_ID_METHODS,
    RpcMethod,
    RpcRequest,
    RpcResponse,
    SessionArguments,
    Torrent,
    TorrentGetResult,
)
from transmission_proxy.rpc.session import SessionTokenStore


__all__ = [
    "SESSION_ID_HEADER",
    "TORRENT_ID_METHODS",
    "RpcError",
    "RpcHttpError",
    "RpcMalformedError",
    "RpcMethod",
    "RpcRemoteError",
    "RpcRequest",
    "RpcResponse",
    "RpcTimeoutError",
    "RpcTransportError",
    "SessionArguments",
    "SessionNegotiationFailedError",
    "SessionTokenStore",
    "Torrent",
    "TorrentGetResult",
    "TransmissionClient",
]
