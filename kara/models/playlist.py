"""Saved playlist models."""

from kara.models.song import CamelModel, Song
from pydantic import Field
from typing import Literal


class PlaylistData(CamelModel):
    """A stored playlist record."""

    name: str
    songs: list[Song] = Field(default_factory=list)
    updated_at: int


class PlaylistSummary(CamelModel):
    """Playlist listing entry."""

    name: str
    updated_at: int
    count: int


class PlaylistRequest(CamelModel):
    """Request to save the queue as, or load the queue from, a playlist."""

    action: Literal["save", "load"]
    name: str = Field(min_length=1, max_length=200)
