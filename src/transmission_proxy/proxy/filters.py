"""Request and response rewriting for confined identities.

These helpers are pure: they return new argument mappings and never
mutate their inputs.
"""

from __future__ import annotations

import posixpath
from typing import Any

from transmission_proxy.proxy.directories import is_within
from transmission_proxy.proxy.exceptions import AclDeniedError
from transmission_proxy.rpc.models import RpcMethod


DOWNLOAD_DIR_FIELD = "downloadDir"
DOWNLOAD_DIR_ARGUMENT = "download-dir"
TABLE_FORMAT = "table"
REMOVED_FIELD = "removed"

# Calls that move torrent data, with the argument naming the destination
_LOCATION_ARGUMENTS = {
    RpcMethod.TORRENT_SET_LOCATION.value: "location",
    RpcMethod.TORRENT_SET.value: "location",
}


def rewrite_download_dir(arguments: dict[str, Any], directory: str) -> dict[str, Any]:
    """Point torrent-add at ``directory``, inserting the key if absent.

    A download directory already inside ``directory`` is kept, normalized.
    """
    requested = arguments.get(DOWNLOAD_DIR_ARGUMENT)
    if isinstance(requested, str) and is_within(requested, directory):
        return {**arguments, DOWNLOAD_DIR_ARGUMENT: posixpath.normpath(requested)}
    return {**arguments, DOWNLOAD_DIR_ARGUMENT: directory}


def check_location(
    method: str,
    arguments: dict[str, Any],
    directory: str,
    *,
    tag: int | None = None,
) -> None:
    """Reject a move outside ``directory``.

    Raises:
        AclDeniedError: If the call would place data outside the directory.
    """
    key = _LOCATION_ARGUMENTS.get(method)
    if key is None or key not in arguments:
        return

    location = arguments[key]
    if not isinstance(location, str) or not is_within(location, directory):
        raise AclDeniedError(tag=tag)


def request_download_dir_field(arguments: dict[str, Any]) -> tuple[dict[str, Any], bool]:
    """Make sure torrent-get returns ``downloadDir``.

    Returns:
        The new arguments and whether the field was added (and must be
        stripped from the response again).
    """
    fields = arguments.get("fields")
    if not isinstance(fields, list) or DOWNLOAD_DIR_FIELD in fields:
        return dict(arguments), False
    return {**arguments, "fields": [*fields, DOWNLOAD_DIR_FIELD]}, True


def _torrent_in(torrent: Any, directory: str) -> bool:
    if not isinstance(torrent, dict):
        return False
    download_dir = torrent.get(DOWNLOAD_DIR_FIELD)
    return isinstance(download_dir, str) and is_within(download_dir, directory)


def owned_torrent_ids(torrents: list[Any], directory: str) -> list[Any]:
    """Ids of the torrents (objects format) stored under ``directory``."""
    return [torrent["id"] for torrent in torrents if _torrent_in(torrent, directory) and "id" in torrent]


def filter_torrent_get(
    arguments: dict[str, Any],
    directory: str,
    *,
    table: bool = False,
    strip_download_dir: bool = False,
) -> dict[str, Any]:
    """Keep only torrents stored under ``directory``.

    Supports both the ``objects`` format (a list of mappings) and the
    ``table`` format (a header row of field names followed by value rows).
    The ``removed`` ids of a ``recently-active`` query are emptied, since
    the directory of a removed torrent can no longer be looked up.
    """
    filtered_arguments = dict(arguments)
    if REMOVED_FIELD in filtered_arguments:
        filtered_arguments[REMOVED_FIELD] = []
    torrents = arguments.get("torrents")
    if not isinstance(torrents, list):
        return filtered_arguments

    if table:
        filtered = _filter_table(torrents, directory, strip_download_dir=strip_download_dir)
    else:
        filtered = [
            _strip(torrent) if strip_download_dir else torrent
            for torrent in torrents
            if _torrent_in(torrent, directory)
        ]
    return {**filtered_arguments, "torrents": filtered}


def _strip(torrent: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in torrent.items() if key != DOWNLOAD_DIR_FIELD}


def _filter_table(
    rows: list[Any],
    directory: str,
    *,
    strip_download_dir: bool,
) -> list[Any]:
    if not rows or not isinstance(rows[0], list) or DOWNLOAD_DIR_FIELD not in rows[0]:
        return rows[:1]

    header = rows[0]
    column = header.index(DOWNLOAD_DIR_FIELD)
    kept = [
        row
        for row in rows[1:]
        if isinstance(row, list)
        and len(row) > column
        and isinstance(row[column], str)
        and is_within(row[column], directory)
    ]

    if strip_download_dir:
        header = header[:column] + header[column + 1 :]
        kept = [row[:column] + row[column + 1 :] for row in kept]
    return [header, *kept]


def filter_session_get(arguments: dict[str, Any], directory: str) -> dict[str, Any]:
    """Report ``directory`` as the session's download directory."""
    if DOWNLOAD_DIR_ARGUMENT not in arguments:
        return dict(arguments)
    return {**arguments, DOWNLOAD_DIR_ARGUMENT: directory}
