"""FastAPI backend for the kara karaoke party.

Phones search and queue songs, the TV page plays them and receives every
queue change over the ``/ws`` WebSocket, and the admin page arbitrates which
device is master.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from eliot import log_message
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from kara import __version__
from kara.config import MASTER_HEADER, Settings, get_settings
from kara.dependencies import get_connection_manager, get_queue_manager
from kara.routes import (
    master_router,
    playback_router,
    playlists_router,
    queue_router,
    search_router,
    settings_router,
    websocket_router,
)
from kara.services.autofill import AutoFill
from kara.services.broadcast import ConnectionManager
from kara.services.master import MasterManager
from kara.services.playlists import PlaylistStore
from kara.services.queue import QueueManager
from kara.services.youtube import ApiKeyRing, YouTubeClient


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire queue notifications exactly once per process start."""
    app.state.started_at = time.time()

    queue: QueueManager = app.state.queue
    queue.reset_listeners()
    app.state.connections.attach(queue)
    app.state.autofill.attach()

    log_message(
        message_type="application_ready",
        message=f"kara backend v{__version__} started",
        playlist_store=str(app.state.settings.playlist_store),
        youtube_keys=len(app.state.youtube.keys.keys),
    )

    yield

    queue.reset_listeners()
    app.state.autofill.shutdown()
    log_message(message_type="application_stopped", message="kara backend shutting down")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application and the services it owns."""
    settings = settings or get_settings()

    app = FastAPI(
        title="kara Karaoke API",
        description="Shared karaoke queue, playback control and realtime updates",
        version=__version__,
        lifespan=lifespan,
    )

    queue = QueueManager(auto_recommend=settings.auto_recommend)
    youtube = YouTubeClient(
        ApiKeyRing(settings.youtube_api_keys),
        max_results=settings.search_max_results,
        include_unembeddable=settings.search_include_unembeddable,
    )
    app.state.settings = settings
    app.state.started_at = 0.0
    app.state.queue = queue
    app.state.master = MasterManager()
    app.state.connections = ConnectionManager()
    app.state.playlists = PlaylistStore(settings.playlist_store)
    app.state.youtube = youtube
    # Recommendation fetches run here, off the request path
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="kara-autofill")
    app.state.autofill = AutoFill(queue, youtube, count=settings.recommend_count, executor=executor)

    # Phones and the TV are served from other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[MASTER_HEADER],
    )

    app.include_router(queue_router, prefix="/api")
    app.include_router(playback_router, prefix="/api")
    app.include_router(master_router, prefix="/api")
    app.include_router(settings_router, prefix="/api")
    app.include_router(playlists_router, prefix="/api")
    app.include_router(search_router, prefix="/api")
    app.include_router(websocket_router)

    @app.get("/api/health")
    async def health_check(
        queue: QueueManager = Depends(get_queue_manager),
        connections: ConnectionManager = Depends(get_connection_manager),
    ):
        """Health check endpoint."""
        started_at = app.state.started_at
        return {
            "status": "healthy",
            "version": __version__,
            "queue_length": len(queue.get_state().songs),
            "subscribers": len(connections.active_connections),
            "uptime_seconds": int(time.time() - started_at) if started_at else 0,
        }

    return app


def run():
    """Entry point for running the server."""
    import uvicorn
    from kara.core.logging import setup_logging

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)

    uvicorn.run(
        "kara.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
