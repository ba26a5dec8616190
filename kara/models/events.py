"""Realtime event names and the WebSocket envelope."""

from datetime import datetime
from pydantic import BaseModel
from typing import Any


class WebSocketMessage(BaseModel):
    """Envelope for every message pushed to realtime clients."""

    event: str
    data: Any = None
    timestamp: datetime


class QueueEvents:
    """Notifications emitted by the queue engine."""

    UPDATE = "update"
    SONG_ADDED = "song_added"
    SONG_REMOVED = "song_removed"
    CURRENT_CHANGED = "current_changed"
    PLAYBACK_STATE = "playback_state"
    QUEUE_EMPTY = "queue_empty"
    FALLBACK_INTERRUPTED = "fallback_interrupted"


class BroadcastEvents:
    """Event names seen by realtime clients."""

    QUEUE_UPDATE = "queue_update"
    SONG_ADDED = "song_added"
    SONG_REMOVED = "song_removed"
    CURRENT_CHANGED = "current_changed"
    PLAYBACK_STATE = "playback_state"
    QUEUE_EMPTY = "queue_empty"
    FALLBACK_INTERRUPTED = "fallback_interrupted"
    HEARTBEAT = "heartbeat"


# Engine notification -> broadcast event
EVENT_MAP = {
    QueueEvents.UPDATE: BroadcastEvents.QUEUE_UPDATE,
    QueueEvents.SONG_ADDED: BroadcastEvents.SONG_ADDED,
    QueueEvents.SONG_REMOVED: BroadcastEvents.SONG_REMOVED,
    QueueEvents.CURRENT_CHANGED: BroadcastEvents.CURRENT_CHANGED,
    QueueEvents.PLAYBACK_STATE: BroadcastEvents.PLAYBACK_STATE,
    QueueEvents.QUEUE_EMPTY: BroadcastEvents.QUEUE_EMPTY,
    QueueEvents.FALLBACK_INTERRUPTED: BroadcastEvents.FALLBACK_INTERRUPTED,
}
