"""Transmission RPC wire models.

The daemon speaks a small JSON envelope protocol:

    request:  {"method": "torrent-get", "arguments": {...}, "tag": 7}
    response: {"result": "success", "arguments": {...}, "tag": 7}

Arguments are kept as free-form mappings on the envelope so that calls the
proxy does not understand are relayed untouched. Typed result models below
only describe the keys callers commonly read; unknown keys are preserved.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


SUCCESS = "success"

# Header carrying the daemon's anti-CSRF session token
SESSION_ID_HEADER = "X-Transmission-Session-Id"


class RpcMethod(StrEnum):
    """RPC methods understood by the Transmission daemon."""

    TORRENT_START = "torrent-start"
    TORRENT_START_NOW = "torrent-start-now"
    TORRENT_STOP = "torrent-stop"
    TORRENT_VERIFY = "torrent-verify"
    TORRENT_REANNOUNCE = "torrent-reannounce"
    TORRENT_SET = "torrent-set"
    TORRENT_GET = "torrent-get"
    TORRENT_ADD = "torrent-add"
    TORRENT_REMOVE = "torrent-remove"
    TORRENT_SET_LOCATION = "torrent-set-location"
    TORRENT_RENAME_PATH = "torrent-rename-path"
    SESSION_SET = "session-set"
    SESSION_GET = "session-get"
    SESSION_STATS = "session-stats"
    SESSION_CLOSE = "session-close"
    BLOCKLIST_UPDATE = "blocklist-update"
    PORT_TEST = "port-test"
    QUEUE_MOVE_TOP = "queue-move-top"
    QUEUE_MOVE_UP = "queue-move-up"
    QUEUE_MOVE_DOWN = "queue-move-down"
    QUEUE_MOVE_BOTTOM = "queue-move-bottom"
    FREE_SPACE = "free-space"


# Calls that address existing torrents through an "ids" argument
TORRENT_ID_METHODS: frozenset[str] = frozenset(
    {
        RpcMethod.TORRENT_START,
        RpcMethod.TORRENT_START_NOW,
        RpcMethod.TORRENT_STOP,
        RpcMethod.TORRENT_VERIFY,
        RpcMethod.TORRENT_REANNOUNCE,
        RpcMethod.TORRENT_SET,
        RpcMethod.TORRENT_REMOVE,
        RpcMethod.TORRENT_SET_LOCATION,
        RpcMethod.TORRENT_RENAME_PATH,
        RpcMethod.QUEUE_MOVE_TOP,
        RpcMethod.QUEUE_MOVE_UP,
        RpcMethod.QUEUE_MOVE_DOWN,
        RpcMethod.QUEUE_MOVE_BOTTOM,
    }
)


class RpcRequest(BaseModel):
    """RPC request envelope.

    Attributes:
        method: RPC method name. Kept as a plain string so unknown methods
            can still be authorized and relayed.
        arguments: Method arguments, opaque except for the keys the proxy
            rewrites.
        tag: Optional correlation tag echoed back by the daemon.
    """

    model_config = ConfigDict(extra="ignore")

    method: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    tag: int | None = None

    @field_validator("arguments", mode="before")
    @classmethod
    def null_arguments(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_wire(self) -> dict[str, Any]:
        """Serialize for the daemon, omitting an absent tag."""
        wire: dict[str, Any] = {"method": self.method, "arguments": self.arguments}
        if self.tag is not None:
            wire["tag"] = self.tag
        return wire


class RpcResponse(BaseModel):
    """RPC response envelope."""

    model_config = ConfigDict(extra="ignore")

    result: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    tag: int | None = None

    @field_validator("arguments", mode="before")
    @classmethod
    def null_arguments(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def is_success(self) -> bool:
        """Whether the daemon reported success."""
        return self.result == SUCCESS

    def to_wire(self) -> dict[str, Any]:
        """Serialize for the caller, omitting an absent tag."""
        wire: dict[str, Any] = {"result": self.result, "arguments": self.arguments}
        if self.tag is not None:
            wire["tag"] = self.tag
        return wire


# =============================================================================
# Typed results
# =============================================================================


class Torrent(BaseModel):
    """A torrent as returned by torrent-get (objects format)."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | None = None
    name: str | None = None
    hash_string: str | None = Field(default=None, alias="hashString")
    download_dir: str | None = Field(default=None, alias="downloadDir")
    status: int | None = None
    percent_done: float | None = Field(default=None, alias="percentDone")
    error: int | None = None
    error_string: str | None = Field(default=None, alias="errorString")


class TorrentGetResult(BaseModel):
    """Result of torrent-get."""

    model_config = ConfigDict(extra="allow")

    torrents: list[Torrent] = Field(default_factory=list)
    removed: list[int] = Field(default_factory=list)


class TorrentAddResult(BaseModel):
    """Result of torrent-add; exactly one key is set by the daemon."""

    model_config = ConfigDict(populate_by_name=True)

    torrent_added: Torrent | None = Field(default=None, alias="torrent-added")
    torrent_duplicate: Torrent | None = Field(default=None, alias="torrent-duplicate")

    @property
    def torrent(self) -> Torrent | None:
        """The added or already present torrent."""
        return self.torrent_added or self.torrent_duplicate


class SessionArguments(BaseModel):
    """Subset of session-get arguments; every other key is preserved."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    download_dir: str | None = Field(default=None, alias="download-dir")
    version: str | None = None
    rpc_version: int | None = Field(default=None, alias="rpc-version")
    rpc_version_minimum: int | None = Field(default=None, alias="rpc-version-minimum")


class SessionStatsTotals(BaseModel):
    """Cumulative or current-session counters."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    uploaded_bytes: int = Field(default=0, alias="uploadedBytes")
    downloaded_bytes: int = Field(default=0, alias="downloadedBytes")
    files_added: int = Field(default=0, alias="filesAdded")
    session_count: int = Field(default=0, alias="sessionCount")
    seconds_active: int = Field(default=0, alias="secondsActive")


class SessionStats(BaseModel):
    """Result of session-stats."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    active_torrent_count: int = Field(default=0, alias="activeTorrentCount")
    paused_torrent_count: int = Field(default=0, alias="pausedTorrentCount")
    torrent_count: int = Field(default=0, alias="torrentCount")
    download_speed: int = Field(default=0, alias="downloadSpeed")
    upload_speed: int = Field(default=0, alias="uploadSpeed")
    cumulative_stats: SessionStatsTotals | None = Field(
        default=None, alias="cumulative-stats"
    )
    current_stats: SessionStatsTotals | None = Field(default=None, alias="current-stats")


class FreeSpaceResult(BaseModel):
    """Result of free-space."""

    model_config = ConfigDict(populate_by_name=True)

    path: str
    size_bytes: int = Field(alias="size-bytes")
    total_size: int | None = Field(default=None, alias="total_size")


class PortTestResult(BaseModel):
    """Result of port-test."""

    model_config = ConfigDict(populate_by_name=True)

    port_is_open: bool = Field(alias="port-is-open")


class BlocklistUpdateResult(BaseModel):
    """Result of blocklist-update."""

    model_config = ConfigDict(populate_by_name=True)

    blocklist_size: int = Field(alias="blocklist-size")


class RenamePathResult(BaseModel):
    """Result of torrent-rename-path."""

    model_config = ConfigDict(extra="allow")

    id: int | None = None
    name: str | None = None
    path: str | None = None
