"""Unit tests for the bencode codec."""

from __future__ import annotations

import pytest

from transmission_proxy.proxy import bencode


pytestmark = pytest.mark.unit


class TestDecode:
    """Tests for decoding."""

    def test_torrent_shape(self) -> None:
        """Should decode nested dictionaries, lists and strings."""
        data = b"d8:announce13:http://t/anno13:announce-listll13:http://t/annoeee"

        assert bencode.decode(data) == {
            b"announce": b"http://t/anno",
            b"announce-list": [[b"http://t/anno"]],
        }

    def test_values(self) -> None:
        """Should decode each value type."""
        assert bencode.decode(b"i42e") == 42
        assert bencode.decode(b"i-7e") == -7
        assert bencode.decode(b"4:spam") == b"spam"
        assert bencode.decode(b"0:") == b""
        assert bencode.decode(b"l4:spami1ee") == [b"spam", 1]
        assert bencode.decode(b"d3:cow3:mooe") == {b"cow": b"moo"}

    @pytest.mark.parametrize(
        "data",
        [b"", b"i42", b"ixe", b"5:spam", b"l4:spam", b"d3:cow", b"di1e3:mooe", b"x", b"i1ei2e"],
    )
    def test_malformed(self, data: bytes) -> None:
        """Should reject truncated, invalid or trailing data."""
        with pytest.raises(bencode.BencodeError):
            bencode.decode(data)


class TestEncode:
    """Tests for encoding."""

    def test_sorts_keys(self) -> None:
        """Should write dictionary keys in sorted order."""
        assert bencode.encode({"b": 1, b"a": "x"}) == b"d1:a1:x1:bi1ee"

    def test_nested(self) -> None:
        """Should encode lists and text as UTF-8 strings."""
        assert bencode.encode(["é", [0]]) == b"l2:\xc3\xa9li0eee"

    @pytest.mark.parametrize("value", [True, 1.5, None])
    def test_unsupported(self, value: object) -> None:
        """Should reject values bencode cannot represent."""
        with pytest.raises(bencode.BencodeError):
            bencode.encode(value)
