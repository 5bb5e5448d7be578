"""Session handshake with callers.

Callers see the same protocol the daemon speaks: a call without the
current ``X-Transmission-Session-Id`` is answered 409 carrying the id, and
the caller retries with it. The id is issued by the proxy, so the daemon's
own token never leaves the proxy and a daemon restart does not force
callers through the handshake again.
"""

from __future__ import annotations

import secrets

from transmission_proxy.proxy.exceptions import SessionConflictError


class CallerSession:
    """Per-process session id callers must echo on every RPC call."""

    def __init__(self, session_id: str | None = None) -> None:
        self.session_id = session_id or secrets.token_urlsafe(32)

    def verify(self, presented: str | None, *, tag: int | None = None) -> None:
        """Check the id a caller sent.

        Raises:
            SessionConflictError: If it is missing or not the current id.
        """
        if presented is None or not secrets.compare_digest(presented, self.session_id):
            raise SessionConflictError(self.session_id, tag=tag)
