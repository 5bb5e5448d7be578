"""Announce URL rewriting.

Applies a rule's tracker rewrites to torrents added from metainfo and to
tracker edits made through torrent-set. Like the directory filters, every
helper returns new arguments and leaves its input alone.
"""

from __future__ import annotations

import base64
import binascii
from typing import TYPE_CHECKING, Any

from transmission_proxy.acl.models import rewrite_announce
from transmission_proxy.proxy import bencode
from transmission_proxy.proxy.exceptions import InvalidRpcRequestError, UnsupportedRpcRequestError


if TYPE_CHECKING:
    from transmission_proxy.acl.models import TrackerRule


def rewrite_tracker_list(urls: list[Any], rules: tuple[TrackerRule, ...]) -> list[Any]:
    """Rewrite every URL in ``urls``, dropping removed ones.

    Entries that are not strings (tracker ids) are kept as they are.
    """
    rewritten = []
    for url in urls:
        if not isinstance(url, str):
            rewritten.append(url)
            continue
        result = rewrite_announce(url, rules)
        if result is not None:
            rewritten.append(result)
    return rewritten


def _rewrite_tracker_text(text: str, rules: tuple[TrackerRule, ...]) -> str:
    # One URL per line, blank lines separate tiers
    lines = []
    for line in text.splitlines():
        if not line.strip():
            lines.append("")
            continue
        result = rewrite_announce(line.strip(), rules)
        if result is not None:
            lines.append(result)
    return "\n".join(lines)


def _rewrite_announce_bytes(value: Any, rules: tuple[TrackerRule, ...]) -> bytes | None:
    if not isinstance(value, bytes):
        msg = "announce URL is not a string"
        raise bencode.BencodeError(msg)
    result = rewrite_announce(value.decode(), rules)
    return None if result is None else result.encode()


def rewrite_metainfo(metainfo: str, rules: tuple[TrackerRule, ...], *, tag: int | None = None) -> str:
    """Rewrite ``announce`` and ``announce-list`` of base64 metainfo.

    Raises:
        InvalidRpcRequestError: If the metainfo is not base64 bencode.
    """
    try:
        torrent = bencode.decode(base64.b64decode(metainfo))
        if not isinstance(torrent, dict):
            msg = "metainfo is not a dictionary"
            raise bencode.BencodeError(msg)

        if b"announce" in torrent:
            announce = _rewrite_announce_bytes(torrent[b"announce"], rules)
            if announce is None:
                del torrent[b"announce"]
            else:
                torrent[b"announce"] = announce

        if b"announce-list" in torrent:
            tiers = []
            for tier in torrent[b"announce-list"]:
                urls = [_rewrite_announce_bytes(url, rules) for url in tier]
                kept = [url for url in urls if url is not None]
                if kept:
                    tiers.append(kept)
            if tiers:
                torrent[b"announce-list"] = tiers
            else:
                del torrent[b"announce-list"]

        return base64.b64encode(bencode.encode(torrent)).decode()
    except (binascii.Error, bencode.BencodeError, TypeError, UnicodeDecodeError) as e:
        msg = "metainfo is not a valid torrent"
        raise InvalidRpcRequestError(msg, tag=tag) from e


def rewrite_torrent_add(
    arguments: dict[str, Any],
    rules: tuple[TrackerRule, ...],
    *,
    tag: int | None = None,
) -> dict[str, Any]:
    """Apply tracker rules to a torrent-add.

    Raises:
        UnsupportedRpcRequestError: For torrents added by URL or magnet link,
            whose trackers cannot be seen before the daemon fetches them.
    """
    metainfo = arguments.get("metainfo")
    if not isinstance(metainfo, str):
        msg = "tracker rules need torrents added as metainfo"
        raise UnsupportedRpcRequestError(msg, tag=tag)
    return {**arguments, "metainfo": rewrite_metainfo(metainfo, rules, tag=tag)}


def rewrite_torrent_set(
    arguments: dict[str, Any],
    rules: tuple[TrackerRule, ...],
    *,
    tag: int | None = None,
) -> dict[str, Any]:
    """Apply tracker rules to the tracker edits of a torrent-set.

    Raises:
        UnsupportedRpcRequestError: For ``trackerReplace``.
    """
    if arguments.get("trackerReplace"):
        msg = "trackerReplace is not supported with tracker rules"
        raise UnsupportedRpcRequestError(msg, tag=tag)

    rewritten = dict(arguments)
    for key in ("trackerAdd", "trackerRemove"):
        if isinstance(rewritten.get(key), list):
            rewritten[key] = rewrite_tracker_list(rewritten[key], rules)
    if isinstance(rewritten.get("trackerList"), str):
        rewritten["trackerList"] = _rewrite_tracker_text(rewritten["trackerList"], rules)
    return rewritten
