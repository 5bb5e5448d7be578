"""Unit tests for SessionTokenStore."""

from __future__ import annotations

import asyncio

import pytest

from transmission_proxy.rpc.session import SessionTokenStore


pytestmark = pytest.mark.unit


class TestSessionTokenStore:
    """Tests for the shared session token cell."""

    def test_starts_empty(self) -> None:
        """Should hold no token before the first handshake."""
        assert SessionTokenStore().token is None

    async def test_first_refresh_sets_token(self) -> None:
        """Should accept the first token the daemon hands out."""
        store = SessionTokenStore()

        assert await store.refresh(None, "a") == "a"
        assert store.token == "a"

    async def test_refresh_replaces_stale_token(self) -> None:
        """Should replace the token the failed call was sent with."""
        store = SessionTokenStore("a")

        assert await store.refresh("a", "b") == "b"

    async def test_refresh_keeps_newer_token(self) -> None:
        """Should not overwrite a token another caller already refreshed."""
        store = SessionTokenStore("a")
        await store.refresh("a", "b")

        # A late refresh for the old token returns the current one
        assert await store.refresh("a", "c") == "b"
        assert store.token == "b"

    async def test_concurrent_refreshes_agree(self) -> None:
        """Should leave one token when two calls refresh the same stale token."""
        store = SessionTokenStore("stale")

        results = await asyncio.gather(
            store.refresh("stale", "x"),
            store.refresh("stale", "y"),
        )

        assert results[0] == results[1] == store.token

    async def test_clear(self) -> None:
        """Should forget the token."""
        store = SessionTokenStore("a")

        await store.clear()

        assert store.token is None
