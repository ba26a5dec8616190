"""Flat-file store for named playlists."""

import json
import threading
from kara.core.logging import log_error, log_queue_operation
from kara.models.playlist import PlaylistData, PlaylistSummary
from kara.models.song import Song, now_ms
from pathlib import Path
from pydantic import ValidationError


class PlaylistStore:
    """Playlists kept as a JSON list of ``{name, songs, updatedAt}`` records.

    Names are matched case-insensitively; saving an existing name replaces it.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _ensure_store(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.write_text("[]")

    def _read(self) -> list[PlaylistData]:
        self._ensure_store()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return [PlaylistData.model_validate(entry) for entry in raw]
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError, TypeError) as e:
            # Unreadable store is treated as empty
            log_error(e, context="playlist_store_read", path=str(self.path))
            return []

    def _write(self, data: list[PlaylistData]) -> None:
        self._ensure_store()
        payload = [entry.model_dump(mode="json", by_alias=True) for entry in data]
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def list_playlists(self) -> list[PlaylistSummary]:
        with self._lock:
            return [
                PlaylistSummary(name=entry.name, updated_at=entry.updated_at, count=len(entry.songs))
                for entry in self._read()
            ]

    def save(self, name: str, songs: list[Song]) -> PlaylistData:
        """Insert or replace the playlist called ``name``."""
        with self._lock:
            data = self._read()
            entry = PlaylistData(name=name, songs=list(songs), updated_at=now_ms())
            for index, existing in enumerate(data):
                if existing.name.lower() == name.lower():
                    data[index] = entry
                    break
            else:
                data.append(entry)
            self._write(data)
            log_queue_operation("save_playlist", name=name, count=len(entry.songs))
            return entry

    def load(self, name: str) -> PlaylistData | None:
        with self._lock:
            return next((entry for entry in self._read() if entry.name.lower() == name.lower()), None)
