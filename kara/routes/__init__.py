"""API routes for the kara backend."""

from kara.routes.master import router as master_router
from kara.routes.playback import router as playback_router
from kara.routes.playlists import router as playlists_router
from kara.routes.queue import router as queue_router
from kara.routes.search import router as search_router
from kara.routes.settings import router as settings_router
from kara.routes.websocket import router as websocket_router

__all__ = [
    "master_router",
    "playback_router",
    "playlists_router",
    "queue_router",
    "search_router",
    "settings_router",
    "websocket_router",
]
