"""Directory registry — holds the destination directory for uploads."""

import asyncio
import logging
from pathlib import Path

import aiofiles.os

from landrop.errors import DirectoryError

log = logging.getLogger(__name__)


def _absolute(path: str | Path) -> Path:
    if not str(path).strip():
        raise DirectoryError("Directory path is empty")
    try:
        return Path(path).expanduser().resolve()
    except (OSError, RuntimeError, ValueError) as e:
        raise DirectoryError(f"Invalid directory path {path!r}: {e}") from e


class DirectoryRegistry:
    """Current destination directory.

    Reads return the path immediately. Writers are serialized, and the path is
    swapped only after the new directory exists, so readers see either the old
    or the new directory.
    """

    def __init__(self, initial: str | Path):
        path = _absolute(initial)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryError(f"Cannot create {path}: {e}") from e
        self._path = path
        self._write_lock = asyncio.Lock()

    def get(self) -> Path:
        return self._path

    async def set(self, new_path: str | Path) -> Path:
        """Create `new_path` if needed and make it the destination directory."""
        path = _absolute(new_path)
        async with self._write_lock:
            try:
                await aiofiles.os.makedirs(path, exist_ok=True)
            except (OSError, ValueError) as e:
                raise DirectoryError(f"Cannot create {path}: {e}") from e
            previous, self._path = self._path, path

        if previous != path:
            log.info(f"Destination directory changed: {previous} -> {path}")
        return path
