"""Unit tests for per-identity download directories."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest

from transmission_proxy.proxy.directories import DownloadDirectories, is_within
from transmission_proxy.proxy.exceptions import DirectoryError


pytestmark = pytest.mark.unit


class TestIsWithin:
    """Tests for is_within."""

    @pytest.mark.parametrize(
        ("location", "directory", "expected"),
        [
            ("/d/alice", "/d/alice", True),
            ("/d/alice/", "/d/alice", True),
            ("/d/alice/x", "/d/alice", True),
            ("/d/alicex", "/d/alice", False),
            ("/d/alice/../bob", "/d/alice", False),
            ("/d", "/d/alice", False),
            ("/anything", "/", True),
        ],
    )
    def test_is_within(self, location: str, directory: str, expected: bool) -> None:
        """Should compare normalized paths component-wise."""
        assert is_within(location, directory) is expected


class TestDownloadDirectories:
    """Tests for DownloadDirectories."""

    def test_path_for(self) -> None:
        """Should join the root and subdirectory."""
        assert DownloadDirectories("/downloads/").path_for("alice") == "/downloads/alice"

    async def test_creates_directory(self, tmp_path: Path) -> None:
        """Should create a missing directory and its parents."""
        directories = DownloadDirectories(str(tmp_path / "root"))

        path = await directories.prepare("alice")

        assert path == str(tmp_path / "root" / "alice")
        assert Path(path).is_dir()

    async def test_existing_directory(self, tmp_path: Path) -> None:
        """Should accept a directory that already exists."""
        (tmp_path / "alice").mkdir()
        directories = DownloadDirectories(str(tmp_path))

        assert await directories.prepare("alice") == str(tmp_path / "alice")

    async def test_prepares_once(self, tmp_path: Path) -> None:
        """Should not touch the filesystem again for a prepared directory."""
        directories = DownloadDirectories(str(tmp_path))
        await directories.prepare("alice")

        with patch.object(Path, "mkdir") as mkdir:
            await directories.prepare("alice")

        mkdir.assert_not_called()

    async def test_creation_disabled(self, tmp_path: Path) -> None:
        """Should only compute the path when creation is disabled."""
        directories = DownloadDirectories(str(tmp_path), create=False)

        path = await directories.prepare("alice")

        assert not Path(path).exists()

    async def test_creation_failure(self, tmp_path: Path) -> None:
        """Should raise DirectoryError carrying the request tag."""
        blocker = tmp_path / "file"
        blocker.write_text("x")
        directories = DownloadDirectories(str(blocker))

        with pytest.raises(DirectoryError) as exc_info:
            await directories.prepare("alice", tag=5)

        assert exc_info.value.tag == 5
        assert exc_info.value.status_code == 502

    async def test_concurrent_first_use(self, tmp_path: Path) -> None:
        """Should let simultaneous first calls of one identity all succeed."""
        directories = DownloadDirectories(str(tmp_path / "fresh"))

        paths = await asyncio.gather(*(directories.prepare("alice") for _ in range(8)))

        assert set(paths) == {str(tmp_path / "fresh" / "alice")}
        assert Path(paths[0]).is_dir()

    async def test_nested_identity_directory(self, tmp_path: Path) -> None:
        """Should create the nested directories of OAuth2 identities."""
        directories = DownloadDirectories(str(tmp_path))

        path = await directories.prepare(".oauth2/google/bob@example.org")

        assert Path(path).is_dir()
        assert Path(path).parent.name == "google"
