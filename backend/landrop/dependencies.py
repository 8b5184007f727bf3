"""Request dependencies — hand the shared state built by create_app to handlers."""

from fastapi import Request

from landrop.api.events.services.broadcaster import EventBroadcaster
from landrop.api.settings.repositories.directory_registry import DirectoryRegistry


def get_registry(request: Request) -> DirectoryRegistry:
    return request.app.state.registry


def get_broadcaster(request: Request) -> EventBroadcaster:
    return request.app.state.broadcaster


def get_max_upload_size(request: Request) -> int:
    return request.app.state.max_upload_size


def get_port(request: Request) -> int:
    return request.app.state.port
