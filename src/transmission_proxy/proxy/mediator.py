"""Proxy mediator.

This module handles one inbound RPC call end to end once the caller's
identity is known:
- consult the ACL engine
- forward unrestricted calls untouched
- rewrite announce URLs for rules with tracker rules
- confine the rest to their download directory (rewrite torrent-add,
  check moves, narrow torrent ids, filter torrent-get and session-get)
- relay the daemon's answer, including its own failure results
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import orjson
from pydantic import ValidationError

from transmission_proxy.observability.logging import get_logger
from transmission_proxy.proxy import filters, trackers
from transmission_proxy.proxy.exceptions import AclDeniedError, InvalidRpcRequestError
from transmission_proxy.proxy.handshake import CallerSession
from transmission_proxy.rpc.exceptions import RpcRemoteError
from transmission_proxy.rpc.models import TORRENT_ID_METHODS, RpcMethod, RpcRequest


if TYPE_CHECKING:
    from transmission_proxy.acl.engine import AclEngine
    from transmission_proxy.acl.models import TrackerRule
    from transmission_proxy.auth.identity import Identity
    from transmission_proxy.proxy.directories import DownloadDirectories
    from transmission_proxy.rpc.client import TransmissionClient
    from transmission_proxy.rpc.models import RpcResponse

logger = get_logger(__name__)


def parse_rpc_request(body: bytes) -> RpcRequest:
    """Decode an inbound request body.

    Raises:
        InvalidRpcRequestError: If the body is not a JSON envelope with a
            string ``method``.
    """
    try:
        payload: Any = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        msg = "request body is not JSON"
        raise InvalidRpcRequestError(msg) from e

    tag = payload.get("tag") if isinstance(payload, dict) else None
    try:
        return RpcRequest.model_validate(payload)
    except ValidationError as e:
        msg = "request body is not an RPC request"
        raise InvalidRpcRequestError(msg, tag=tag if isinstance(tag, int) else None) from e


class ProxyMediator:
    """Authorizes, rewrites and forwards RPC calls.

    Attributes:
        engine: ACL engine deciding every call.
        client: Client of the upstream daemon.
        directories: Per-identity download directories.
        session: Session id callers must echo.
    """

    def __init__(
        self,
        engine: AclEngine,
        client: TransmissionClient,
        directories: DownloadDirectories,
        *,
        session: CallerSession | None = None,
    ) -> None:
        self.engine = engine
        self.client = client
        self.directories = directories
        self.session = session or CallerSession()

    async def handle(self, identity: Identity, request: RpcRequest) -> RpcResponse:
        """Process one call on behalf of ``identity``.

        Returns:
            The daemon's response, filtered for confined identities. A
            failure result reported by the daemon is returned as is.

        Raises:
            AclDeniedError: If the call is not permitted.
            DirectoryError: If the identity's directory cannot be prepared.
            UnsupportedRpcRequestError: If tracker rules cannot be applied.
            RpcError: For daemon communication failures.
        """
        decision = self.engine.decide(identity, request.method)

        if not decision.allowed:
            logger.warning(
                "RPC call denied",
                identity=str(identity),
                method=request.method,
                rule=decision.rule_index,
            )
            raise AclDeniedError(tag=request.tag)

        if decision.is_unrestricted:
            return await self._forward(request)

        request = self._rewrite_trackers(request, decision.tracker_rules)
        if decision.download_dir is None:
            return await self._forward(request)

        directory = await self.directories.prepare(decision.download_dir, tag=request.tag)

        try:
            upstream, strip_download_dir = await self._filter_request(request, directory)
        except RpcRemoteError as e:
            return e.response.model_copy(update={"tag": request.tag})

        response = await self._forward(upstream)
        if not response.is_success:
            return response

        return self._filter_response(upstream, response, directory, strip_download_dir=strip_download_dir)

    async def _forward(self, request: RpcRequest) -> RpcResponse:
        try:
            return await self.client.execute(request)
        except RpcRemoteError as e:
            return e.response

    def _rewrite_trackers(self, request: RpcRequest, rules: tuple[TrackerRule, ...]) -> RpcRequest:
        if not rules:
            return request

        if request.method == RpcMethod.TORRENT_ADD:
            arguments = trackers.rewrite_torrent_add(request.arguments, rules, tag=request.tag)
        elif request.method == RpcMethod.TORRENT_SET:
            arguments = trackers.rewrite_torrent_set(request.arguments, rules, tag=request.tag)
        else:
            return request

        logger.debug("Trackers rewritten", method=request.method)
        return request.model_copy(update={"arguments": arguments})

    async def _filter_request(
        self,
        request: RpcRequest,
        directory: str,
    ) -> tuple[RpcRequest, bool]:
        method = request.method
        arguments = dict(request.arguments)
        strip_download_dir = False

        if method == RpcMethod.TORRENT_ADD:
            arguments = filters.rewrite_download_dir(arguments, directory)
            logger.debug("torrent-add confined", download_dir=directory)

        elif method == RpcMethod.TORRENT_GET:
            arguments, strip_download_dir = filters.request_download_dir_field(arguments)

        elif method in TORRENT_ID_METHODS:
            filters.check_location(method, arguments, directory, tag=request.tag)
            arguments["ids"] = await self._owned_ids(arguments.get("ids"), directory)

        return request.model_copy(update={"arguments": arguments}), strip_download_dir

    async def _owned_ids(self, ids: Any, directory: str) -> list[Any]:
        """Narrow ``ids`` (None meaning every torrent) to those under ``directory``."""
        lookup: dict[str, Any] = {"fields": ["id", filters.DOWNLOAD_DIR_FIELD]}
        if ids is not None:
            lookup["ids"] = ids

        result = await self.client.call(RpcMethod.TORRENT_GET, lookup)
        torrents = result.get("torrents")
        owned = filters.owned_torrent_ids(torrents if isinstance(torrents, list) else [], directory)

        logger.debug("Torrent ids narrowed", requested=ids, owned=owned)
        return owned

    def _filter_response(
        self,
        request: RpcRequest,
        response: RpcResponse,
        directory: str,
        *,
        strip_download_dir: bool,
    ) -> RpcResponse:
        if request.method == RpcMethod.TORRENT_GET:
            arguments = filters.filter_torrent_get(
                response.arguments,
                directory,
                table=request.arguments.get("format") == filters.TABLE_FORMAT,
                strip_download_dir=strip_download_dir,
            )
        elif request.method == RpcMethod.SESSION_GET:
            arguments = filters.filter_session_get(response.arguments, directory)
        else:
            return response

        return response.model_copy(update={"arguments": arguments})
