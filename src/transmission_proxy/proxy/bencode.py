"""Bencoding for torrent metainfo.

Strings decode to ``bytes``, dictionary keys included. Encoding accepts
``str`` as well and writes dictionaries with sorted keys.
"""

from __future__ import annotations

from typing import Any


class BencodeError(ValueError):
    """Raised when data is not valid bencode."""


def decode(data: bytes) -> Any:
    """Decode one complete bencoded value.

    Raises:
        BencodeError: On malformed input or trailing bytes.
    """
    value, end = _decode(data, 0)
    if end != len(data):
        msg = f"trailing data at offset {end}"
        raise BencodeError(msg)
    return value


def _decode(data: bytes, index: int) -> tuple[Any, int]:
    token = data[index : index + 1]

    if token == b"i":
        end = _find(data, b"e", index)
        try:
            return int(data[index + 1 : end]), end + 1
        except ValueError as e:
            msg = f"invalid integer at offset {index}"
            raise BencodeError(msg) from e

    if token == b"l":
        items = []
        index += 1
        while data[index : index + 1] != b"e":
            item, index = _decode(data, index)
            items.append(item)
        return items, index + 1

    if token == b"d":
        mapping: dict[bytes, Any] = {}
        index += 1
        while data[index : index + 1] != b"e":
            key, index = _decode(data, index)
            if not isinstance(key, bytes):
                msg = f"dictionary key is not a string at offset {index}"
                raise BencodeError(msg)
            mapping[key], index = _decode(data, index)
        return mapping, index + 1

    if token.isdigit():
        colon = _find(data, b":", index)
        try:
            length = int(data[index:colon])
        except ValueError as e:
            msg = f"invalid string length at offset {index}"
            raise BencodeError(msg) from e
        start = colon + 1
        end = start + length
        if end > len(data):
            msg = f"string at offset {index} runs past the end"
            raise BencodeError(msg)
        return data[start:end], end

    if not token:
        msg = "unexpected end of data"
        raise BencodeError(msg)
    msg = f"unexpected byte {token!r} at offset {index}"
    raise BencodeError(msg)


def _find(data: bytes, marker: bytes, index: int) -> int:
    end = data.find(marker, index)
    if end < 0:
        msg = f"unterminated value at offset {index}"
        raise BencodeError(msg)
    return end


def encode(value: Any) -> bytes:
    """Encode ``value``.

    Raises:
        BencodeError: If ``value`` holds a type bencode cannot represent.
    """
    parts: list[bytes] = []
    _encode(value, parts)
    return b"".join(parts)


def _encode(value: Any, parts: list[bytes]) -> None:
    if isinstance(value, bool):
        msg = "booleans cannot be bencoded"
        raise BencodeError(msg)

    if isinstance(value, int):
        parts.append(b"i%de" % value)
    elif isinstance(value, str):
        _encode(value.encode(), parts)
    elif isinstance(value, bytes):
        parts.append(b"%d:" % len(value))
        parts.append(value)
    elif isinstance(value, list | tuple):
        parts.append(b"l")
        for item in value:
            _encode(item, parts)
        parts.append(b"e")
    elif isinstance(value, dict):
        parts.append(b"d")
        keys = {key.encode() if isinstance(key, str) else key: item for key, item in value.items()}
        for key in sorted(keys):
            _encode(key, parts)
            _encode(keys[key], parts)
        parts.append(b"e")
    else:
        msg = f"cannot bencode {type(value).__name__}"
        raise BencodeError(msg)
