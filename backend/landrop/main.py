"""LAN Drop — Main application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from landrop.api.events.controllers.events_controller import router as events_router
from landrop.api.events.services.broadcaster import EventBroadcaster
from landrop.api.pages.controllers.pages_controller import router as pages_router
from landrop.api.settings.controllers.settings_controller import router as settings_router
from landrop.api.settings.repositories.directory_registry import DirectoryRegistry
from landrop.api.upload.controllers.upload_controller import router as upload_router
from landrop.config import EVENT_QUEUE_SIZE, HOST, MAX_UPLOAD_SIZE, PORT, UPLOAD_DIR, configure_logging

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(f"Receiving uploads into {app.state.registry.get()}")
    yield
    # Ends any /events streams still open
    app.state.broadcaster.close()


async def _unroutable_as_not_found(request: Request, exc: StarletteHTTPException):
    """Routes match on method and path together, so a wrong method is a 404 too."""
    if exc.status_code == 405:
        exc = StarletteHTTPException(status_code=404, detail="Not Found")
    return await http_exception_handler(request, exc)


def create_app(
    upload_dir: str | Path = UPLOAD_DIR,
    max_upload_size: int = MAX_UPLOAD_SIZE,
    port: int = PORT,
    event_queue_size: int = EVENT_QUEUE_SIZE,
) -> FastAPI:
    """Build the app with its shared state; handlers reach it through dependencies."""
    app = FastAPI(title="LAN Drop", version="0.1.0", lifespan=lifespan)

    app.state.registry = DirectoryRegistry(upload_dir)
    app.state.broadcaster = EventBroadcaster(event_queue_size)
    app.state.max_upload_size = max_upload_size
    app.state.port = port

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, _unroutable_as_not_found)

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    app.include_router(pages_router)
    app.include_router(upload_router)
    app.include_router(events_router)
    app.include_router(settings_router)
    return app


class LanDropServer(uvicorn.Server):
    """uvicorn server that ends open /events streams as soon as shutdown starts.

    uvicorn waits for every connection to finish before the lifespan shutdown
    runs, and an event stream only finishes once the broadcaster closes.
    """

    def __init__(self, config: uvicorn.Config, broadcaster: EventBroadcaster):
        super().__init__(config)
        self.broadcaster = broadcaster
        self._loop: asyncio.AbstractEventLoop | None = None

    async def serve(self, sockets=None):
        self._loop = asyncio.get_running_loop()
        await super().serve(sockets)

    def handle_exit(self, sig, frame):
        if self._loop is not None:
            # may be called from a signal handler, so hand off to the loop
            self._loop.call_soon_threadsafe(self.broadcaster.close)
        super().handle_exit(sig, frame)


def run():
    configure_logging()
    app = create_app()
    config = uvicorn.Config(app, host=HOST, port=PORT, log_config=None)
    log.info(f"HTTP server listening on http://{HOST}:{PORT}")
    LanDropServer(config, app.state.broadcaster).run()


if __name__ == "__main__":
    run()
