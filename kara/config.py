"""Configuration for the kara backend, read from the environment / .env."""

from dataclasses import dataclass, field
from decouple import Csv, config
from functools import lru_cache
from pathlib import Path

# Master token transport
MASTER_COOKIE = "kara_master_player"
MASTER_HEADER = "x-master-token"
MASTER_COOKIE_MAX_AGE = 60 * 60 * 24

# Device identity header used for self-removal of queued songs
DEVICE_HEADER = "x-device-id"

# Queue
HISTORY_LIMIT = 50

# YouTube
YOUTUBE_API_URL = "https://www.googleapis.com/youtube/v3"
YOUTUBE_MAX_RESULTS_CAP = 25
YOUTUBE_TIMEOUT = 10  # seconds

# WebSocket
WS_HEARTBEAT_INTERVAL = 30.0  # seconds


@dataclass
class Settings:
    """Application settings."""

    api_host: str = "127.0.0.1"
    api_port: int = 3000
    reload: bool = False

    youtube_api_keys: list[str] = field(default_factory=list)
    search_max_results: int = 10
    search_include_unembeddable: bool = True

    playlist_store: Path = Path("library") / "playlists.json"

    auto_recommend: bool = True
    recommend_count: int = 5

    log_level: str = "INFO"
    log_file: str | None = None


def load_settings() -> Settings:
    """Build settings from environment variables (and .env when present)."""
    return Settings(
        api_host=config("KARA_API_HOST", default="127.0.0.1"),
        api_port=config("KARA_API_PORT", default=3000, cast=int),
        reload=config("KARA_RELOAD", default=False, cast=bool),
        youtube_api_keys=config("KARA_YOUTUBE_API_KEYS", default="", cast=Csv()),
        search_max_results=config("KARA_SEARCH_MAX_RESULTS", default=10, cast=int),
        search_include_unembeddable=config("KARA_SEARCH_INCLUDE_UNEMBEDDABLE", default=True, cast=bool),
        playlist_store=Path(config("KARA_PLAYLIST_STORE", default="library/playlists.json")),
        auto_recommend=config("KARA_AUTO_RECOMMEND", default=True, cast=bool),
        recommend_count=config("KARA_RECOMMEND_COUNT", default=5, cast=int),
        log_level=config("KARA_LOG_LEVEL", default="INFO"),
        log_file=config("KARA_LOG_FILE", default=None),
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()
