"""Pending OAuth2 logins.

A login exists between the authorize redirect and the callback. Entries
expire after a fixed window so abandoned logins never accumulate.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from pydantic import BaseModel, Field

from transmission_proxy.observability.logging import get_logger


logger = get_logger(__name__)


class PendingLogin(BaseModel):
    """Server-side half of an in-flight OAuth2 login."""

    state: str
    provider: str
    code_verifier: str = Field(..., repr=False)
    redirect_uri: str
    return_to: str | None = None
    created_at: float

    model_config = {"frozen": True}


class PendingLoginStore:
    """In-memory, lifetime-bounded map of state token to pending login.

    Expired entries are purged on every access. Each state is single-use:
    ``pop`` removes it whether or not the callback then succeeds.
    """

    def __init__(
        self,
        ttl_seconds: float = 600.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._pending: dict[str, PendingLogin] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._pending)

    async def add(
        self,
        state: str,
        *,
        provider: str,
        code_verifier: str,
        redirect_uri: str,
        return_to: str | None = None,
    ) -> PendingLogin:
        async with self._lock:
            self._purge()
            login = PendingLogin(
                state=state,
                provider=provider,
                code_verifier=code_verifier,
                redirect_uri=redirect_uri,
                return_to=return_to,
                created_at=self._clock(),
            )
            self._pending[state] = login
            return login

    async def pop(self, state: str) -> PendingLogin | None:
        """Remove and return the login for ``state`` if it has not expired."""
        async with self._lock:
            self._purge()
            return self._pending.pop(state, None)

    def _purge(self) -> None:
        cutoff = self._clock() - self._ttl
        expired = [key for key, login in self._pending.items() if login.created_at < cutoff]
        for key in expired:
            del self._pending[key]
        if expired:
            logger.debug("Expired pending OAuth2 logins", count=len(expired))
