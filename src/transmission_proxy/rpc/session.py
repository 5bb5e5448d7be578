"""Shared Transmission session token.

The daemon requires every call to carry its current session token and
answers HTTP 409 with the correct one when it is missing or stale. One
store is shared by every client talking to the same daemon.
"""

from __future__ import annotations

import asyncio

from transmission_proxy.observability.logging import get_logger


logger = get_logger(__name__)


class SessionTokenStore:
    """Single guarded cell holding the daemon's session token.

    Reads are plain attribute reads. Refreshes are serialized by a lock and
    applied compare-and-set style: a refresh only replaces the token the
    caller actually sent, so two requests hitting 409 at the same time do
    not overwrite each other's result with an older value.
    """

    def __init__(self, token: str | None = None) -> None:
        self._token = token
        self._lock = asyncio.Lock()

    @property
    def token(self) -> str | None:
        """Current token, or None before the first handshake."""
        return self._token

    async def refresh(self, stale: str | None, fresh: str) -> str:
        """Replace ``stale`` with ``fresh`` unless another refresh won.

        Args:
            stale: The token the failed call was sent with.
            fresh: The token the daemon returned in its 409 response.

        Returns:
            The token to retry with.
        """
        async with self._lock:
            if self._token is None or self._token == stale:
                self._token = fresh
                logger.debug("Transmission session token refreshed")
            return self._token

    async def clear(self) -> None:
        """Forget the token (next call performs a fresh handshake)."""
        async with self._lock:
            self._token = None
