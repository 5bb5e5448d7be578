"""Transmission daemon RPC client.

This module provides an async HTTP client for the daemon's JSON-RPC
control API, including the mandatory session-token handshake.
"""

from __future__ import annotations

import itertools
from collections.abc import Mapping, Sequence
from typing import Any

import httpx
import orjson
from pydantic import ValidationError

from transmission_proxy.observability.logging import get_logger
from transmission_proxy.rpc.exceptions import (
    RpcHttpError,
    RpcMalformedError,
    RpcRemoteError,
    RpcTimeoutError,
    RpcTransportError,
    SessionNegotiationFailedError,
)
from transmission_proxy.rpc.models import (
    SESSION_ID_HEADER,
    BlocklistUpdateResult,
    FreeSpaceResult,
    PortTestResult,
    RenamePathResult,
    RpcMethod,
    RpcRequest,
    RpcResponse,
    SessionArguments,
    SessionStats,
    TorrentAddResult,
    TorrentGetResult,
)
from transmission_proxy.rpc.session import SessionTokenStore


logger = get_logger(__name__)

# First tag used for calls issued by this client
_INITIAL_TAG = 57680

TorrentIds = int | str | Sequence[int | str]


class TransmissionClient:
    """HTTP client for the Transmission RPC endpoint.

    Every call is sent with the current session token. When the daemon
    answers 409 the token from its response is stored and the call is
    retried exactly once; a second 409 fails with
    SessionNegotiationFailedError. No result is ever cached.

    Example:
        ```python
        client = TransmissionClient("http://localhost:9091/transmission/rpc")
        await client.initialize()

        torrents = await client.torrent_get(["id", "name"])

        await client.shutdown()
        ```
    """

    def __init__(
        self,
        url: str,
        *,
        session: SessionTokenStore | None = None,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: Full URL of the daemon's RPC endpoint.
            session: Shared session token store. A private one is created
                when omitted.
            timeout: Per-request timeout in seconds.
            http_client: Optional pre-built HTTP client (owned by the caller).
        """
        self.url = url
        self.session = session or SessionTokenStore()
        self._timeout = timeout
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._tags = itertools.count(_INITIAL_TAG)

    async def initialize(self) -> None:
        """Create the HTTP client if one was not supplied."""
        if self._http_client is not None:
            return

        self._http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )
        self._owns_http_client = True
        logger.info("TransmissionClient initialized", url=self.url)

    async def shutdown(self) -> None:
        """Release resources."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("TransmissionClient shutdown")

    # =========================================================================
    # Envelope level
    # =========================================================================

    async def execute(self, request: RpcRequest) -> RpcResponse:
        """Send a request envelope and return the daemon's response envelope.

        Args:
            request: Request envelope; its tag is sent unchanged.

        Returns:
            The successful response envelope.

        Raises:
            RpcTransportError: If the daemon is unreachable or times out.
            SessionNegotiationFailedError: If the token is rejected twice.
            RpcHttpError: For any other non-2xx status.
            RpcMalformedError: If the body is not a valid envelope.
            RpcRemoteError: If ``result`` is not "success".
        """
        if self._http_client is None:
            await self.initialize()

        payload = orjson.dumps(request.to_wire())
        token = self.session.token

        response = await self._post(payload, token)

        if response.status_code == httpx.codes.CONFLICT:
            fresh = response.headers.get(SESSION_ID_HEADER)
            if not fresh:
                msg = "daemon answered 409 without a session token"
                raise SessionNegotiationFailedError(msg)

            token = await self.session.refresh(token, fresh)
            response = await self._post(payload, token)

            if response.status_code == httpx.codes.CONFLICT:
                logger.warning(
                    "Transmission rejected a freshly negotiated session token",
                    method=request.method,
                )
                msg = "daemon rejected the session token after renegotiation"
                raise SessionNegotiationFailedError(msg)

        if not response.is_success:
            logger.warning(
                "Transmission returned an HTTP error",
                status_code=response.status_code,
                method=request.method,
            )
            raise RpcHttpError(response.status_code)

        rpc_response = self._parse(response, request)

        if not rpc_response.is_success:
            logger.debug(
                "Transmission reported a failure",
                method=request.method,
                result=rpc_response.result,
            )
            raise RpcRemoteError(rpc_response)

        return rpc_response

    async def call(
        self,
        method: RpcMethod | str,
        arguments: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Call an RPC method and return its response arguments.

        A fresh tag is attached and checked against the response.
        """
        request = RpcRequest(
            method=str(method),
            arguments=dict(arguments or {}),
            tag=next(self._tags),
        )
        response = await self.execute(request)
        return response.arguments

    async def _post(self, payload: bytes, token: str | None) -> httpx.Response:
        """POST one envelope, translating httpx failures."""
        headers = {"Content-Type": "application/json"}
        if token:
            headers[SESSION_ID_HEADER] = token

        try:
            return await self._http_client.post(  # type: ignore[union-attr]
                self.url,
                content=payload,
                headers=headers,
            )

        except httpx.TimeoutException as e:
            logger.warning("Request to Transmission timed out", url=self.url)
            raise RpcTimeoutError(str(e)) from e

        except httpx.RequestError as e:
            logger.warning(
                "Failed to connect to Transmission",
                url=self.url,
                error=str(e),
            )
            msg = f"Failed to connect to Transmission: {e}"
            raise RpcTransportError(msg) from e

    def _parse(self, response: httpx.Response, request: RpcRequest) -> RpcResponse:
        """Decode the response body into an envelope."""
        try:
            rpc_response = RpcResponse.model_validate(orjson.loads(response.content))
        except (orjson.JSONDecodeError, ValidationError) as e:
            msg = "daemon response is not a valid RPC envelope"
            raise RpcMalformedError(msg) from e

        if request.tag is not None and rpc_response.tag != request.tag:
            msg = f"response tag {rpc_response.tag} does not match request tag {request.tag}"
            raise RpcMalformedError(msg)

        return rpc_response

    # =========================================================================
    # Session methods
    # =========================================================================

    async def session_get(self, fields: Sequence[str] | None = None) -> SessionArguments:
        """Fetch session configuration."""
        arguments = {"fields": list(fields)} if fields else {}
        result = await self.call(RpcMethod.SESSION_GET, arguments)
        return SessionArguments.model_validate(result)

    async def session_set(self, **arguments: Any) -> None:
        """Change session configuration (keys in daemon spelling)."""
        await self.call(RpcMethod.SESSION_SET, arguments)

    async def session_stats(self) -> SessionStats:
        """Fetch transfer statistics."""
        result = await self.call(RpcMethod.SESSION_STATS)
        return SessionStats.model_validate(result)

    async def session_close(self) -> None:
        """Ask the daemon to shut down."""
        await self.call(RpcMethod.SESSION_CLOSE)

    async def free_space(self, path: str) -> FreeSpaceResult:
        """Query free space at a path on the daemon's host."""
        result = await self.call(RpcMethod.FREE_SPACE, {"path": path})
        return FreeSpaceResult.model_validate(result)

    async def port_test(self) -> PortTestResult:
        """Check whether the peer port is reachable."""
        result = await self.call(RpcMethod.PORT_TEST)
        return PortTestResult.model_validate(result)

    async def blocklist_update(self) -> BlocklistUpdateResult:
        """Reload the peer blocklist."""
        result = await self.call(RpcMethod.BLOCKLIST_UPDATE)
        return BlocklistUpdateResult.model_validate(result)

    # =========================================================================
    # Torrent methods
    # =========================================================================

    async def torrent_get(
        self,
        fields: Sequence[str],
        ids: TorrentIds | None = None,
    ) -> TorrentGetResult:
        """Fetch torrents (objects format)."""
        arguments: dict[str, Any] = {"fields": list(fields)}
        if ids is not None:
            arguments["ids"] = _ids(ids)
        result = await self.call(RpcMethod.TORRENT_GET, arguments)
        return TorrentGetResult.model_validate(result)

    async def torrent_add(
        self,
        *,
        filename: str | None = None,
        metainfo: str | None = None,
        download_dir: str | None = None,
        paused: bool | None = None,
        labels: Sequence[str] | None = None,
        **extra: Any,
    ) -> TorrentAddResult:
        """Add a torrent from a URL/magnet (filename) or base64 metainfo."""
        if (filename is None) == (metainfo is None):
            msg = "exactly one of filename or metainfo is required"
            raise ValueError(msg)

        arguments: dict[str, Any] = dict(extra)
        if filename is not None:
            arguments["filename"] = filename
        if metainfo is not None:
            arguments["metainfo"] = metainfo
        if download_dir is not None:
            arguments["download-dir"] = download_dir
        if paused is not None:
            arguments["paused"] = paused
        if labels is not None:
            arguments["labels"] = list(labels)

        result = await self.call(RpcMethod.TORRENT_ADD, arguments)
        return TorrentAddResult.model_validate(result)

    async def torrent_remove(
        self,
        ids: TorrentIds,
        *,
        delete_local_data: bool = False,
    ) -> None:
        """Remove torrents, optionally deleting their data."""
        await self.call(
            RpcMethod.TORRENT_REMOVE,
            {"ids": _ids(ids), "delete-local-data": delete_local_data},
        )

    async def torrent_start(self, ids: TorrentIds) -> None:
        """Start torrents (respecting the queue)."""
        await self.call(RpcMethod.TORRENT_START, {"ids": _ids(ids)})

    async def torrent_start_now(self, ids: TorrentIds) -> None:
        """Start torrents, bypassing the queue."""
        await self.call(RpcMethod.TORRENT_START_NOW, {"ids": _ids(ids)})

    async def torrent_stop(self, ids: TorrentIds) -> None:
        """Stop torrents."""
        await self.call(RpcMethod.TORRENT_STOP, {"ids": _ids(ids)})

    async def torrent_verify(self, ids: TorrentIds) -> None:
        """Verify local data of torrents."""
        await self.call(RpcMethod.TORRENT_VERIFY, {"ids": _ids(ids)})

    async def torrent_reannounce(self, ids: TorrentIds) -> None:
        """Ask trackers for more peers."""
        await self.call(RpcMethod.TORRENT_REANNOUNCE, {"ids": _ids(ids)})

    async def torrent_set(self, ids: TorrentIds, **fields: Any) -> None:
        """Change torrent fields (keys in daemon spelling)."""
        await self.call(RpcMethod.TORRENT_SET, {"ids": _ids(ids), **fields})

    async def torrent_set_location(
        self,
        ids: TorrentIds,
        location: str,
        *,
        move: bool = False,
    ) -> None:
        """Change where torrent data is stored."""
        await self.call(
            RpcMethod.TORRENT_SET_LOCATION,
            {"ids": _ids(ids), "location": location, "move": move},
        )

    async def torrent_rename_path(
        self,
        ids: TorrentIds,
        path: str,
        name: str,
    ) -> RenamePathResult:
        """Rename a file or directory inside a torrent."""
        result = await self.call(
            RpcMethod.TORRENT_RENAME_PATH,
            {"ids": _ids(ids), "path": path, "name": name},
        )
        return RenamePathResult.model_validate(result)

    async def queue_move_top(self, ids: TorrentIds) -> None:
        """Move torrents to the top of the queue."""
        await self.call(RpcMethod.QUEUE_MOVE_TOP, {"ids": _ids(ids)})

    async def queue_move_up(self, ids: TorrentIds) -> None:
        """Move torrents one step up the queue."""
        await self.call(RpcMethod.QUEUE_MOVE_UP, {"ids": _ids(ids)})

    async def queue_move_down(self, ids: TorrentIds) -> None:
        """Move torrents one step down the queue."""
        await self.call(RpcMethod.QUEUE_MOVE_DOWN, {"ids": _ids(ids)})

    async def queue_move_bottom(self, ids: TorrentIds) -> None:
        """Move torrents to the bottom of the queue."""
        await self.call(RpcMethod.QUEUE_MOVE_BOTTOM, {"ids": _ids(ids)})


def _ids(ids: TorrentIds) -> int | str | list[int | str]:
    """Normalize torrent ids to the daemon's wire form."""
    if isinstance(ids, (int, str)):
        return ids
    return list(ids)
