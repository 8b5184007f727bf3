"""Upload service — streams multipart uploads into the destination directory."""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from landrop.api.events.dto.event import UploadEvent
from landrop.api.events.services.broadcaster import EventBroadcaster
from landrop.api.settings.repositories.directory_registry import DirectoryRegistry
from landrop.api.upload.dto.upload import SavedFile, UploadResponse
from landrop.api.upload.services import filename_service
from landrop.config import MAX_UPLOAD_SIZE
from landrop.errors import MalformedRequest, PayloadTooLarge

log = logging.getLogger(__name__)


def parse_boundary(content_type: str | None) -> bytes:
    """Return the multipart boundary declared by a Content-Type header."""
    if not content_type:
        raise MalformedRequest("Missing Content-Type header")
    media_type, params = parse_options_header(content_type)
    if media_type.lower() != b"multipart/form-data":
        raise MalformedRequest(f"Expected multipart/form-data, got {media_type.decode('latin-1')}")
    boundary = params.get(b"boundary")
    if not boundary:
        raise MalformedRequest("Missing multipart boundary")
    return boundary


def _file_name(content_disposition: bytes | None) -> str | None:
    """File name of a part, '' when given but empty, None for non-file parts."""
    if not content_disposition:
        return None
    _, options = parse_options_header(content_disposition)
    if b"filename" not in options:
        return None
    return options[b"filename"].decode("utf-8", errors="replace")


class _PartCollector:
    """Records parser callbacks so they can be handled with awaits afterwards."""

    def __init__(self):
        self.pending: list[tuple[str, object]] = []
        self.finished = False
        self._headers: dict[bytes, bytes] = {}
        self._header_field = b""
        self._header_value = b""

    def callbacks(self) -> dict:
        return {
            "on_part_begin": self.on_part_begin,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_end": self.on_end,
        }

    def on_part_begin(self):
        self._headers = {}

    def on_header_field(self, data: bytes, start: int, end: int):
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int):
        self._header_value += data[start:end]

    def on_header_end(self):
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def on_headers_finished(self):
        self.pending.append(("begin", _file_name(self._headers.get(b"content-disposition"))))

    def on_part_data(self, data: bytes, start: int, end: int):
        self.pending.append(("data", bytes(data[start:end])))

    def on_part_end(self):
        self.pending.append(("end", None))

    def on_end(self):
        self.finished = True

    def drain(self) -> list[tuple[str, object]]:
        pending, self.pending = self.pending, []
        return pending


@dataclass
class _FileField:
    requested_name: str
    path: Path | None = None
    handle: object = None
    received: int = 0
    failed: bool = False

    async def close(self) -> None:
        if self.handle is not None:
            handle, self.handle = self.handle, None
            await handle.close()


async def _open_field(
    requested_name: str, registry: DirectoryRegistry, broadcaster: EventBroadcaster
) -> _FileField:
    field = _FileField(requested_name)
    try:
        field.path, field.handle = await filename_service.claim(registry.get(), requested_name)
    except OSError as e:
        log.error(f"Cannot create file for {requested_name!r}: {e}")
        field.failed = True
        return field
    broadcaster.publish(UploadEvent.started(field.path.name))
    return field


async def _write_chunk(
    field: _FileField, chunk: bytes, max_size: int, broadcaster: EventBroadcaster
) -> None:
    if not chunk:
        return
    if field.received + len(chunk) > max_size:
        raise PayloadTooLarge(f"File exceeds max size of {max_size} bytes")
    field.received += len(chunk)
    if field.failed:
        return
    try:
        await field.handle.write(chunk)
    except OSError as e:
        log.error(f"Write to {field.path} failed, abandoning file: {e}")
        field.failed = True
        await field.close()
        return
    broadcaster.publish(UploadEvent.progress(field.path.name, field.received))


async def _finish_field(field: _FileField, broadcaster: EventBroadcaster) -> SavedFile | None:
    if field.failed:
        return None
    try:
        await field.close()
    except OSError as e:
        log.error(f"Closing {field.path} failed, abandoning file: {e}")
        return None
    broadcaster.publish(UploadEvent.done(field.path.name))
    log.info(f"Saved {field.path} ({field.received} bytes)")
    return SavedFile(name=field.path.name, size=field.received)


async def ingest(
    stream: AsyncIterator[bytes],
    content_type: str | None,
    *,
    registry: DirectoryRegistry,
    broadcaster: EventBroadcaster,
    max_size: int = MAX_UPLOAD_SIZE,
) -> UploadResponse:
    """Decode a multipart body and stream every file field to disk.

    Each file field is written to a fresh name in the registry's current
    directory and reported as started, progress and done events. Non-file
    fields are skipped. I/O failures abandon only the affected field; a field
    larger than `max_size` stops the whole request with PayloadTooLarge and
    leaves the partial file behind.
    """
    collector = _PartCollector()
    parser = MultipartParser(parse_boundary(content_type), collector.callbacks())
    saved: list[SavedFile] = []
    current: _FileField | None = None

    try:
        async for chunk in stream:
            if not chunk:
                continue
            try:
                parser.write(chunk)
            except MultipartParseError as e:
                raise MalformedRequest(f"Invalid multipart body: {e}") from e

            for kind, value in collector.drain():
                if kind == "begin":
                    if value is not None:
                        current = await _open_field(value, registry, broadcaster)
                elif kind == "data":
                    if current is not None:
                        await _write_chunk(current, value, max_size, broadcaster)
                elif kind == "end":
                    if current is not None:
                        result = await _finish_field(current, broadcaster)
                        if result is not None:
                            saved.append(result)
                        current = None
        parser.finalize()
    finally:
        if current is not None:
            await current.close()

    if not collector.finished:
        raise MalformedRequest("Multipart body ended before the closing boundary")
    return UploadResponse(files=saved)
