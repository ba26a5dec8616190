"""Queue models for playback queue management."""

from kara.models.song import CamelModel, Song
from pydantic import Field
from typing import Literal


class QueueState(CamelModel):
    """Snapshot of the play queue.

    Returned by the queue engine as a copy; mutating it has no effect on
    the engine.
    """

    songs: list[Song] = Field(default_factory=list)
    current_index: int = -1
    is_playing: bool = False
    play_history: list[Song] = Field(default_factory=list)
    auto_recommend_enabled: bool = True


class PlaybackRequest(CamelModel):
    """Playback command sent by the master device."""

    action: Literal["next", "previous", "play", "pause", "play_at", "complete", "skip", "reorder"]
    index: int | None = None
    from_index: int | None = None
    to_index: int | None = None


class SettingsUpdateRequest(CamelModel):
    """Request to update queue settings."""

    auto_recommend: bool | None = None
