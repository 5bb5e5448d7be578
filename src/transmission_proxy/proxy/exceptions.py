"""Proxy-side exceptions.

Each carries the HTTP status it is reported with and the tag of the RPC
request it belongs to, so the error body can echo it back.
"""

from __future__ import annotations


class ProxyError(Exception):
    """Base exception for failures raised by the proxy itself."""

    status_code: int = 500

    def __init__(self, message: str, *, tag: int | None = None) -> None:
        self.message = message
        self.tag = tag
        super().__init__(message)


class AclDeniedError(ProxyError):
    """Raised when the ACL denies a call; never says why."""

    status_code = 401

    def __init__(self, message: str = "unauthorized", *, tag: int | None = None) -> None:
        super().__init__(message, tag=tag)


class InvalidRpcRequestError(ProxyError):
    """Raised when an inbound body is not an RPC request envelope."""

    status_code = 400


class DirectoryError(ProxyError):
    """Raised when a per-identity download directory cannot be prepared."""

    status_code = 502


class UnsupportedRpcRequestError(ProxyError):
    """Raised for calls the proxy cannot rewrite for the caller's rule."""

    status_code = 501


class SessionConflictError(ProxyError):
    """Raised when a caller does not echo the proxy's session id.

    Reported with status 409 and the id to retry with, like the daemon's
    own handshake.
    """

    status_code = 409

    def __init__(self, session_id: str, *, tag: int | None = None) -> None:
        self.session_id = session_id
        super().__init__("invalid session id", tag=tag)
