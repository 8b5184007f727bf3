"""Filename service — collision-free target paths inside the destination directory."""

import itertools
from collections.abc import Iterator
from pathlib import Path

import aiofiles
import aiofiles.os
from aiofiles.threadpool.binary import AsyncBufferedIOBase

FALLBACK_NAME = "upload.bin"


def safe_name(requested: str | None) -> str:
    """Reduce a client-supplied file name to a bare name, or the fallback."""
    if not requested:
        return FALLBACK_NAME
    name = requested.replace("\x00", "").replace("\\", "/").rsplit("/", 1)[-1].strip()
    if name in ("", ".", ".."):
        return FALLBACK_NAME
    return name


def split_name(name: str) -> tuple[str, str]:
    """Split at the last dot: 'a.tar.gz' -> ('a.tar', 'gz'), 'README' -> ('README', '')."""
    stem, dot, ext = name.rpartition(".")
    if not dot:
        return name, ""
    return stem, ext


def candidates(directory: Path, name: str) -> Iterator[Path]:
    """Yield `name`, then `stem_1.ext`, `stem_2.ext`, ... without end."""
    yield directory / name
    stem, ext = split_name(name)
    for i in itertools.count(1):
        yield directory / (f"{stem}_{i}.{ext}" if ext else f"{stem}_{i}")


def resolve(directory: Path, requested: str | None) -> Path:
    """Return the first candidate path that does not exist right now."""
    for candidate in candidates(directory, safe_name(requested)):
        if not candidate.exists():
            return candidate


async def claim(directory: Path, requested: str | None) -> tuple[Path, AsyncBufferedIOBase]:
    """Create and open the first free candidate exclusively.

    A candidate created by someone else between probes is skipped, so two
    concurrent uploads of the same name never share a file.
    """
    await aiofiles.os.makedirs(directory, exist_ok=True)
    for candidate in candidates(directory, safe_name(requested)):
        try:
            handle = await aiofiles.open(candidate, "xb")
        except FileExistsError:
            continue
        return candidate, handle
