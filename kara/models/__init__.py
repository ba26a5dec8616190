"""Pydantic models for the kara API."""

from kara.models.events import EVENT_MAP, BroadcastEvents, QueueEvents, WebSocketMessage
from kara.models.master import (
    AuthorizeResult,
    ClientInfo,
    MasterRequest,
    MasterResult,
    MasterState,
    MasterStatus,
)
from kara.models.playlist import PlaylistData, PlaylistRequest, PlaylistSummary
from kara.models.queue import PlaybackRequest, QueueState, SettingsUpdateRequest
from kara.models.search import RecommendationRequest, SearchMode, YouTubeSearchResult
from kara.models.song import CamelModel, Song, SongCreate, now_ms

__all__ = [
    # Song models
    "CamelModel",
    "Song",
    "SongCreate",
    "now_ms",
    # Queue models
    "QueueState",
    "PlaybackRequest",
    "SettingsUpdateRequest",
    # Master models
    "MasterState",
    "MasterStatus",
    "MasterResult",
    "MasterRequest",
    "AuthorizeResult",
    "ClientInfo",
    # Playlist models
    "PlaylistData",
    "PlaylistSummary",
    "PlaylistRequest",
    # Search models
    "YouTubeSearchResult",
    "RecommendationRequest",
    "SearchMode",
    # Event models
    "WebSocketMessage",
    "QueueEvents",
    "BroadcastEvents",
    "EVENT_MAP",
]
