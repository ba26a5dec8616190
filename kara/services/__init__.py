"""Services behind the kara API."""

from kara.services.autofill import AutoFill
from kara.services.broadcast import ConnectionManager, Subscriber
from kara.services.master import MasterManager
from kara.services.playlists import PlaylistStore
from kara.services.queue import QueueManager
from kara.services.youtube import ApiKeyRing, YouTubeAPIError, YouTubeClient, YouTubeConfigError, YouTubeError

__all__ = [
    "AutoFill",
    "ApiKeyRing",
    "ConnectionManager",
    "MasterManager",
    "PlaylistStore",
    "QueueManager",
    "Subscriber",
    "YouTubeAPIError",
    "YouTubeClient",
    "YouTubeConfigError",
    "YouTubeError",
]
