"""RPC mediation between callers and the daemon.

Usage:
    from transmission_proxy.proxy import ProxyMediator, parse_rpc_request

    response = await mediator.handle(identity, parse_rpc_request(body))
"""

from transmission_proxy.proxy.directories import DownloadDirectories, is_within
from transmission_proxy.proxy.exceptions import (
    AclDeniedError,
    DirectoryError,
    InvalidRpcRequestError,
    ProxyError,
    SessionConflictError,
    UnsupportedRpcRequestError,
)
from transmission_proxy.proxy.handshake import CallerSession
from transmission_proxy.proxy.mediator import ProxyMediator, parse_rpc_request


__all__ = [
    "AclDeniedError",
    "CallerSession",
    "DirectoryError",
    "DownloadDirectories",
    "InvalidRpcRequestError",
    "ProxyError",
    "ProxyMediator",
    "SessionConflictError",
    "UnsupportedRpcRequestError",
    "is_within",
    "parse_rpc_request",
]
