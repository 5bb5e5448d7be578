"""Per-identity download directories.

Every confined identity gets one subdirectory of the shared download root.
Paths are composed in POSIX form since they are handed to the daemon.
"""

from __future__ import annotations

import asyncio
import posixpath
from pathlib import Path

from transmission_proxy.observability.logging import get_logger
from transmission_proxy.proxy.exceptions import DirectoryError


logger = get_logger(__name__)


def is_within(location: str, directory: str) -> bool:
    """Return True if ``location`` is ``directory`` or lies below it.

    Both paths are normalized first, so ``..`` segments cannot escape.
    """
    location = posixpath.normpath(location)
    directory = posixpath.normpath(directory)
    if directory == "/":
        return location.startswith("/")
    return location == directory or location.startswith(directory + "/")


class DownloadDirectories:
    """Creates and names per-identity directories under a root.

    Creation is lazy and idempotent: an existing directory is success, and
    directories already prepared by this process are not touched again.
    """

    def __init__(self, root: str, *, create: bool = True) -> None:
        """Initialize.

        Args:
            root: Download root as seen by the daemon.
            create: Create missing directories (requires the proxy to share
                the daemon's filesystem).
        """
        self.root = posixpath.normpath(root)
        self._create = create
        self._prepared: set[str] = set()

    def path_for(self, subdir: str) -> str:
        """Absolute daemon path of a subdirectory of the root."""
        return posixpath.join(self.root, subdir)

    async def prepare(self, subdir: str, *, tag: int | None = None) -> str:
        """Ensure the subdirectory exists and return its path.

        Raises:
            DirectoryError: If the directory cannot be created.
        """
        path = self.path_for(subdir)
        if not self._create or path in self._prepared:
            return path

        try:
            await asyncio.to_thread(Path(path).mkdir, parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create download directory", path=path, error=str(e))
            msg = "could not prepare download directory"
            raise DirectoryError(msg, tag=tag) from e

        self._prepared.add(path)
        logger.debug("Download directory ready", path=path)
        return path
