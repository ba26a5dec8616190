"""YouTube search and recommendation routes for the kara API."""

import requests
from fastapi import APIRouter, Depends, HTTPException, Query
from kara.core.logging import log_error
from kara.dependencies import get_queue_manager, get_youtube
from kara.models.search import RecommendationRequest, SearchMode, YouTubeSearchResult
from kara.services.queue import QueueManager
from kara.services.youtube import YouTubeClient, YouTubeConfigError, YouTubeError

router = APIRouter(tags=["search"])


@router.get("/search", response_model=list[YouTubeSearchResult])
def search(
    q: str = Query(min_length=1),
    mode: SearchMode = "song",
    limit: int | None = None,
    include_unembeddable: bool | None = Query(None, alias="includeUnembeddable"),
    karaoke_only: bool = Query(True, alias="karaokeOnly"),
    youtube: YouTubeClient = Depends(get_youtube),
):
    """Search YouTube for karaoke videos."""
    try:
        return youtube.search(q, mode, limit, include_unembeddable, karaoke_only)
    except YouTubeConfigError as e:
        log_error(e, context="search")
        raise HTTPException(status_code=500, detail="YouTube API key not configured") from e
    except (YouTubeError, requests.RequestException) as e:
        log_error(e, context="search", query=q)
        raise HTTPException(status_code=502, detail="Failed to search YouTube") from e


@router.post("/recommendations")
def recommendations(
    request: RecommendationRequest | None = None,
    youtube: YouTubeClient = Depends(get_youtube),
    queue: QueueManager = Depends(get_queue_manager),
):
    """Recommended fallback songs based on the play history."""
    count = request.count if request else 5
    try:
        songs = youtube.recommend(queue.get_state().play_history, count)
    except YouTubeConfigError as e:
        log_error(e, context="recommendations")
        raise HTTPException(status_code=500, detail="YouTube API key not configured") from e
    except (YouTubeError, requests.RequestException) as e:
        log_error(e, context="recommendations")
        raise HTTPException(status_code=502, detail="Failed to fetch recommendations") from e
    return {"recommendations": songs}
