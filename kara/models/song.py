"""Song models for the karaoke queue."""

import time
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Literal


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Song(CamelModel):
    """A queue entry. Immutable once created."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    video_id: str
    title: str
    artist: str = ""
    duration: float = 0
    thumbnail: str = ""
    source: Literal["youtube"] = "youtube"
    added_at: int = Field(default_factory=now_ms)
    added_by: str | None = None
    is_fallback: bool = False


class SongCreate(CamelModel):
    """Request to add a song to the queue (sent by phones)."""

    id: str | None = None
    video_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    artist: str = ""
    duration: float = 0
    thumbnail: str = ""
    added_at: int | None = None
    added_by: str | None = None
    is_fallback: bool = False

    @field_validator("video_id", "title")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def to_song(self) -> Song:
        """Build the queue entry, filling in id and timestamp."""
        added_at = self.added_at if self.added_at is not None else now_ms()
        return Song(
            id=self.id or f"yt-{self.video_id}-{added_at}",
            video_id=self.video_id,
            title=self.title,
            artist=self.artist,
            duration=self.duration,
            thumbnail=self.thumbnail,
            added_at=added_at,
            added_by=self.added_by,
            is_fallback=self.is_fallback,
        )
