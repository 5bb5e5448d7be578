"""Unit tests for the caller session handshake."""

from __future__ import annotations

import pytest

from transmission_proxy.proxy.exceptions import SessionConflictError
from transmission_proxy.proxy.handshake import CallerSession


pytestmark = pytest.mark.unit


class TestCallerSession:
    """Tests for CallerSession."""

    def test_generates_id(self) -> None:
        """Should issue a different random id per instance."""
        assert CallerSession().session_id != CallerSession().session_id

    def test_accepts_current_id(self) -> None:
        """Should accept the id it issued."""
        CallerSession("abc").verify("abc")

    @pytest.mark.parametrize("presented", [None, "", "abd"])
    def test_rejects_other_ids(self, presented: str | None) -> None:
        """Should answer a conflict carrying the id to retry with."""
        with pytest.raises(SessionConflictError) as exc_info:
            CallerSession("abc").verify(presented, tag=3)

        assert exc_info.value.session_id == "abc"
        assert exc_info.value.status_code == 409
        assert exc_info.value.tag == 3
