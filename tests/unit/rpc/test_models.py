"""Unit tests for RPC envelope models."""

from __future__ import annotations

import pytest

from transmission_proxy.rpc.models import (
    TORRENT_ID_METHODS,
    RpcMethod,
    RpcRequest,
    RpcResponse,
    SessionArguments,
)


pytestmark = pytest.mark.unit


class TestRpcRequest:
    """Tests for RpcRequest."""

    def test_null_arguments_become_empty(self) -> None:
        """Should treat null arguments like missing ones."""
        request = RpcRequest.model_validate({"method": "session-get", "arguments": None})

        assert request.arguments == {}

    def test_wire_form_omits_absent_tag(self) -> None:
        """Should leave the tag out when the caller sent none."""
        assert RpcRequest(method="session-get").to_wire() == {
            "method": "session-get",
            "arguments": {},
        }

    def test_unknown_method_is_kept(self) -> None:
        """Should accept method names it does not know."""
        assert RpcRequest(method="group-get").method == "group-get"


class TestRpcResponse:
    """Tests for RpcResponse."""

    def test_success(self) -> None:
        """Should report success only for the literal success result."""
        assert RpcResponse(result="success").is_success
        assert not RpcResponse(result="invalid argument").is_success

    def test_wire_form_keeps_tag(self) -> None:
        """Should echo the tag."""
        assert RpcResponse(result="success", tag=3).to_wire() == {
            "result": "success",
            "arguments": {},
            "tag": 3,
        }


class TestMethods:
    """Tests for method constants."""

    def test_id_methods_are_known(self) -> None:
        """Should only list daemon methods as id-based."""
        assert TORRENT_ID_METHODS <= {method.value for method in RpcMethod}
        assert RpcMethod.TORRENT_ADD not in TORRENT_ID_METHODS
        assert RpcMethod.TORRENT_GET not in TORRENT_ID_METHODS

    def test_session_arguments_keep_unknown_keys(self) -> None:
        """Should parse known keys and preserve the rest."""
        session = SessionArguments.model_validate(
            {"download-dir": "/downloads", "rpc-version": 17, "speed-limit-up": 100}
        )

        assert session.download_dir == "/downloads"
        assert session.rpc_version == 17
        assert session.model_extra == {"speed-limit-up": 100}
