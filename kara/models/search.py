"""YouTube search models."""

from kara.models.song import CamelModel
from pydantic import Field
from typing import Literal

SearchMode = Literal["song", "artist", "genre", "decade"]


class YouTubeSearchResult(CamelModel):
    """A search hit shown on the phone."""

    video_id: str
    title: str
    channel_title: str
    thumbnail: str
    duration: str = "0:00"
    embeddable: bool = True
    blocked_reason: str | None = None


class RecommendationRequest(CamelModel):
    """Request for recommended songs."""

    count: int = Field(5, ge=1, le=25)
