import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from landrop.api.events.services.broadcaster import EventBroadcaster
from landrop.api.settings.repositories.directory_registry import DirectoryRegistry
from landrop.main import create_app

BOUNDARY = "lanDropTestBoundary"
CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"


def multipart_body(parts, boundary: str = BOUNDARY) -> bytes:
    """Build a multipart/form-data body from (field, filename or None, data) triples."""
    body = b""
    for field, filename, data in parts:
        disposition = f'form-data; name="{field}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        body += f"--{boundary}\r\nContent-Disposition: {disposition}\r\n\r\n".encode()
        body += data + b"\r\n"
    body += f"--{boundary}--\r\n".encode()
    return body


async def stream_of(body: bytes, chunk_size: int | None = None):
    """Async byte stream over `body`, optionally split into fixed-size chunks."""
    if chunk_size is None:
        yield body
        return
    for i in range(0, len(body), chunk_size):
        await asyncio.sleep(0)
        yield body[i : i + chunk_size]


async def collect(broadcaster: EventBroadcaster, subscription) -> list:
    """Close the broadcaster and return everything the subscription received."""
    broadcaster.close()
    return [event async for event in subscription]


async def wait_for(predicate, timeout: float = 2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def registry(upload_dir):
    return DirectoryRegistry(upload_dir)


@pytest.fixture
def broadcaster():
    return EventBroadcaster()


@pytest.fixture
def app(upload_dir):
    return create_app(upload_dir=upload_dir, max_upload_size=1024, port=8080)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
async def async_client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://landrop.test") as client:
        yield client
