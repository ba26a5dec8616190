"""YouTube Data API client for song search and recommendations."""

import random
import re
import requests
import threading
from kara.config import YOUTUBE_API_URL, YOUTUBE_MAX_RESULTS_CAP, YOUTUBE_TIMEOUT
from kara.core.logging import log_api_request
from kara.models.search import YouTubeSearchResult
from kara.models.song import Song, now_ms

DEFAULT_RECOMMEND_QUERY = "karaoke popular songs"
MUSIC_CATEGORY_ID = "10"
RECENT_SEED_WINDOW = 10

_ISO_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


class YouTubeError(Exception):
    """Base error for the YouTube provider."""


class YouTubeConfigError(YouTubeError):
    """No API key configured."""


class YouTubeAPIError(YouTubeError):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"YouTube API error {status_code}: {message}")
        self.status_code = status_code


class ApiKeyRing:
    """Round-robin rotation over the configured API keys."""

    def __init__(self, keys: list[str]):
        self.keys = [key for key in keys if key]
        self._index = 0
        self._lock = threading.Lock()

    def next_key(self) -> str:
        with self._lock:
            if not self.keys:
                raise YouTubeConfigError("No YouTube API keys configured")
            key = self.keys[self._index]
            self._index = (self._index + 1) % len(self.keys)
            return key


def build_search_query(query: str, mode: str = "song", karaoke_only: bool = True) -> str:
    """Append the karaoke hint that matches the search mode."""
    trimmed = query.strip()
    if not karaoke_only:
        return trimmed
    suffixes = {
        "artist": "karaoke songs",
        "genre": "karaoke playlist",
        "decade": "karaoke hits",
    }
    return f"{trimmed} {suffixes.get(mode, 'karaoke')}"


def clamp_limit(limit: int | None, default: int) -> int:
    if limit is None:
        return default
    return max(1, min(limit, YOUTUBE_MAX_RESULTS_CAP))


def iso_to_duration(iso: str | None) -> str:
    """Render an ISO-8601 duration (PT4M13S) as m:ss or h:mm:ss."""
    if not iso:
        return "0:00"
    match = _ISO_DURATION.match(iso)
    if not match:
        return "0:00"
    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{hours * 60 + minutes}:{seconds:02d}"


class YouTubeClient:
    """Search and recommendation calls against the YouTube Data API v3."""

    def __init__(
        self,
        keys: ApiKeyRing,
        max_results: int = 10,
        include_unembeddable: bool = True,
        session: requests.Session | None = None,
    ):
        self.keys = keys
        self.max_results = max_results
        self.include_unembeddable = include_unembeddable
        self.session = session or requests.Session()
        self.base_url = YOUTUBE_API_URL

    def _get(self, endpoint: str, params: dict) -> requests.Response:
        return self.session.get(f"{self.base_url}/{endpoint}", params=params, timeout=YOUTUBE_TIMEOUT)

    def _get_json(self, endpoint: str, params: dict) -> dict:
        response = self._get(endpoint, params)
        if not response.ok:
            raise YouTubeAPIError(response.status_code, response.text)
        return response.json()

    def search(
        self,
        query: str,
        mode: str = "song",
        limit: int | None = None,
        include_unembeddable: bool | None = None,
        karaoke_only: bool = True,
    ) -> list[YouTubeSearchResult]:
        """Search videos, annotated with duration and embeddability.

        Args:
            query: Free text typed on the phone
            mode: song, artist, genre or decade (picks the karaoke hint)
            limit: Result count, clamped to 1..25 (config default when None)
            include_unembeddable: Keep videos that cannot play in an embed
            karaoke_only: Append the karaoke hint to the query

        Raises:
            YouTubeConfigError: No API key configured
            YouTubeAPIError: The search call failed
        """
        if include_unembeddable is None:
            include_unembeddable = self.include_unembeddable
        api_key = self.keys.next_key()
        search_query = build_search_query(query, mode, karaoke_only)

        log_api_request("youtube_search", description=search_query)
        data = self._get_json(
            "search",
            {
                "part": "snippet",
                "q": search_query,
                "type": "video",
                "videoEmbeddable": "any" if include_unembeddable else "true",
                "maxResults": clamp_limit(limit, self.max_results),
                "key": api_key,
            },
        )
        items = data.get("items", [])
        details = self._video_details([item["id"]["videoId"] for item in items if item.get("id", {}).get("videoId")], api_key)

        results = []
        for item in items:
            video_id = item.get("id", {}).get("videoId")
            if not video_id:
                continue
            info = details.get(video_id, {})
            snippet = item["snippet"]
            result = YouTubeSearchResult(
                video_id=video_id,
                title=snippet["title"],
                channel_title=snippet["channelTitle"],
                thumbnail=_thumbnail(snippet, prefer="medium"),
                duration=info.get("duration", "0:00"),
                embeddable=info.get("embeddable", True),
                blocked_reason=info.get("blocked_reason"),
            )
            if include_unembeddable or result.embeddable:
                results.append(result)
        return results

    def _video_details(self, video_ids: list[str], api_key: str) -> dict[str, dict]:
        """Fetch duration and embed status; empty on failure (results stay embeddable)."""
        if not video_ids:
            return {}

        response = self._get("videos", {"part": "contentDetails,status", "id": ",".join(video_ids), "key": api_key})
        if not response.ok:
            log_api_request("youtube_video_details", description=f"failed with {response.status_code}")
            return {}

        details = {}
        for item in response.json().get("items", []):
            status = item.get("status", {})
            embeddable = status.get("embeddable") is not False
            details[item["id"]] = {
                "embeddable": embeddable,
                "blocked_reason": None
                if embeddable
                else status.get("rejectionReason") or status.get("failureReason") or "Not embeddable",
                "duration": iso_to_duration(item.get("contentDetails", {}).get("duration")),
            }
        return details

    def recommend(self, play_history: list[Song] | None = None, count: int = 5) -> list[Song]:
        """Suggest fallback songs seeded from a recently sung song.

        Raises:
            YouTubeConfigError: No API key configured
            YouTubeAPIError: The search call failed
        """
        api_key = self.keys.next_key()

        if play_history:
            seed = random.choice(play_history[-RECENT_SEED_WINDOW:])
            search_query = f"{seed.artist} {seed.title} karaoke"
        else:
            search_query = DEFAULT_RECOMMEND_QUERY

        log_api_request("youtube_recommend", description=search_query)
        data = self._get_json(
            "search",
            {
                "part": "snippet",
                "q": search_query,
                "type": "video",
                "videoCategoryId": MUSIC_CATEGORY_ID,
                "maxResults": count,
                "key": api_key,
                "safeSearch": "none",
            },
        )

        songs = []
        for item in data.get("items", []):
            video_id = item.get("id", {}).get("videoId")
            if not video_id:
                continue
            added_at = now_ms()
            songs.append(
                Song(
                    id=f"yt-fallback-{video_id}-{added_at}",
                    video_id=video_id,
                    title=item["snippet"]["title"],
                    artist=item["snippet"]["channelTitle"],
                    duration=0,
                    thumbnail=_thumbnail(item["snippet"], prefer="high"),
                    added_at=added_at,
                    added_by="system",
                    is_fallback=True,
                )
            )
        return songs


def _thumbnail(snippet: dict, prefer: str) -> str:
    thumbnails = snippet.get("thumbnails", {})
    chosen = thumbnails.get(prefer) or thumbnails.get("default") or {}
    return chosen.get("url", "")
