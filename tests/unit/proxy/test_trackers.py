"""Unit tests for announce URL rewriting."""

from __future__ import annotations

import base64

import pytest

from transmission_proxy.acl.models import TrackerRule
from transmission_proxy.proxy import bencode, trackers
from transmission_proxy.proxy.exceptions import InvalidRpcRequestError, UnsupportedRpcRequestError


pytestmark = pytest.mark.unit

RULES = (
    TrackerRule.model_validate({"from": r"^http://tracker\.lan/", "to": "https://tracker.example.org/"}),
    TrackerRule.model_validate({"from": r"^.*\.private/.*$", "to": ""}),
)


class TestRewriteTrackerList:
    """Tests for tracker list rewriting."""

    def test_rewrites_and_drops(self) -> None:
        """Should rewrite matches, drop removed URLs and keep tracker ids."""
        result = trackers.rewrite_tracker_list(
            ["http://tracker.lan/a", "http://x.private/b", "udp://open:1", 4],
            RULES,
        )

        assert result == ["https://tracker.example.org/a", "udp://open:1", 4]


class TestRewriteTorrentSet:
    """Tests for torrent-set tracker edits."""

    def test_tracker_list_text(self) -> None:
        """Should rewrite the newline separated tracker list, keeping tiers."""
        arguments = {"ids": [1], "trackerList": "http://tracker.lan/a\n\nhttp://x.private/b\nudp://o:1"}

        result = trackers.rewrite_torrent_set(arguments, RULES)

        assert result["trackerList"] == "https://tracker.example.org/a\n\nudp://o:1"
        assert arguments["trackerList"].startswith("http://tracker.lan/")

    def test_tracker_replace(self) -> None:
        """Should refuse trackerReplace."""
        with pytest.raises(UnsupportedRpcRequestError):
            trackers.rewrite_torrent_set({"trackerReplace": [0, "http://tracker.lan/a"]}, RULES, tag=2)


class TestRewriteMetainfo:
    """Tests for torrent-add metainfo."""

    def test_drops_emptied_announce(self) -> None:
        """Should remove announce keys whose URLs were all dropped."""
        metainfo = base64.b64encode(
            bencode.encode(
                {
                    "announce": "http://x.private/a",
                    "announce-list": [["http://x.private/a"]],
                    "info": {"name": "f"},
                }
            )
        ).decode()

        torrent = bencode.decode(base64.b64decode(trackers.rewrite_metainfo(metainfo, RULES)))

        assert torrent == {b"info": {b"name": b"f"}}

    @pytest.mark.parametrize(
        "metainfo",
        [
            "%%%",
            base64.b64encode(b"le").decode(),
            base64.b64encode(b"d8:announcei1ee").decode(),
            base64.b64encode(b"d13:announce-listi1ee").decode(),
        ],
    )
    def test_invalid(self, metainfo: str) -> None:
        """Should reject metainfo that is not a usable torrent."""
        with pytest.raises(InvalidRpcRequestError) as exc_info:
            trackers.rewrite_metainfo(metainfo, RULES, tag=5)

        assert exc_info.value.tag == 5
