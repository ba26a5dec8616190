"""Queue engine: the single owner of the karaoke play queue."""

import threading
from collections.abc import Callable
from kara.config import HISTORY_LIMIT
from kara.core.logging import log_error, log_queue_operation
from kara.models.events import QueueEvents
from kara.models.queue import QueueState
from kara.models.song import Song
from typing import Any

Listener = Callable[[str, Any], None]


class QueueManager:
    """Manages the play queue in-memory (session-only, not persisted).

    Every successful mutation notifies listeners synchronously: ``update``
    (with a fresh state snapshot) first, then the event-specific
    notifications. Invalid input (unknown id, out-of-range index) is a
    no-op reported through the return value; nothing is raised and nothing
    is emitted.
    """

    def __init__(self, auto_recommend: bool = True, history_limit: int = HISTORY_LIMIT):
        self.history_limit = history_limit
        self._songs: list[Song] = []
        self._current_index = -1
        self._is_playing = False
        self._play_history: list[Song] = []
        self._auto_recommend_enabled = auto_recommend
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()  # Reentrant: listeners may read state

    # Notifications

    def add_listener(self, listener: Listener) -> None:
        """Register ``listener(event, payload)``. Registering twice is a no-op."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def reset_listeners(self) -> None:
        """Detach every listener. Called once at startup before wiring."""
        with self._lock:
            self._listeners.clear()

    def _emit(self, event: str, payload: Any = None) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception as e:
                log_error(e, context="queue_listener", event=event)

    def _emit_update(self) -> None:
        self._emit(QueueEvents.UPDATE, self._snapshot())

    # Accessors

    def _snapshot(self) -> QueueState:
        return QueueState(
            songs=list(self._songs),
            current_index=self._current_index,
            is_playing=self._is_playing,
            play_history=list(self._play_history),
            auto_recommend_enabled=self._auto_recommend_enabled,
        )

    def get_state(self) -> QueueState:
        """Return a copy of the queue state."""
        with self._lock:
            return self._snapshot()

    def get_current_song(self) -> Song | None:
        with self._lock:
            return self._current_song()

    def _current_song(self) -> Song | None:
        if 0 <= self._current_index < len(self._songs):
            return self._songs[self._current_index]
        return None

    def get_song(self, song_id: str) -> Song | None:
        """Find a queued song by id."""
        with self._lock:
            return next((s for s in self._songs if s.id == song_id), None)

    def set_auto_recommend(self, enabled: bool) -> None:
        with self._lock:
            self._auto_recommend_enabled = enabled
            log_queue_operation("set_auto_recommend", enabled=enabled)

    def get_auto_recommend(self) -> bool:
        with self._lock:
            return self._auto_recommend_enabled

    # Mutations

    def add_song(self, song: Song) -> None:
        """Append a song to the end of the queue.

        A real request (``is_fallback`` false) removes every auto-recommended
        fallback song first. The current song is then located again by id;
        if it was one of the removed fallbacks, the song that took over its
        slot becomes current.

        Emits ``fallback_interrupted`` (when fallbacks were removed),
        ``update`` and ``song_added``.
        """
        with self._lock:
            interrupted = False
            if not song.is_fallback and any(s.is_fallback for s in self._songs):
                previous = self._current_song()
                slot = sum(1 for s in self._songs[: max(self._current_index, 0)] if not s.is_fallback)
                removed = len(self._songs)
                self._songs = [s for s in self._songs if not s.is_fallback]
                removed -= len(self._songs)
                interrupted = True

            self._songs.append(song)

            if interrupted:
                self._current_index = self._relocate(previous, slot)
                log_queue_operation("fallback_interrupted", removed=removed, current_index=self._current_index)
                self._emit(QueueEvents.FALLBACK_INTERRUPTED)

            log_queue_operation(
                "add_song", title=song.title, total=len(self._songs), current_index=self._current_index
            )
            self._emit_update()
            self._emit(QueueEvents.SONG_ADDED, song)

    def add_fallbacks(self, songs: list[Song]) -> int:
        """Append recommended songs, but only into an empty queue with auto-recommend on.

        The check and the appends happen under one lock hold, so a request
        that arrived while recommendations were being fetched wins.

        Returns:
            The number of songs added
        """
        with self._lock:
            if self._songs or not self._auto_recommend_enabled:
                log_queue_operation("add_fallbacks", result="skipped", queued=len(self._songs))
                return 0
            for song in songs:
                self.add_song(song)
            return len(songs)

    def _relocate(self, previous: Song | None, slot: int) -> int:
        if previous is None:
            return -1
        for index, song in enumerate(self._songs):
            if song.id == previous.id:
                return index
        # Current song was removed; whatever slid into its slot is current
        return slot if slot < len(self._songs) else -1

    def remove_song(self, song_id: str) -> Song | None:
        """Remove the first song with ``song_id``.

        Removing at or before the current position shifts ``current_index``
        back by one.

        Returns:
            The removed song, or None if no song has that id
        """
        with self._lock:
            index = next((i for i, s in enumerate(self._songs) if s.id == song_id), -1)
            if index == -1:
                return None

            removed = self._songs.pop(index)
            if index <= self._current_index:
                self._current_index -= 1

            log_queue_operation("remove_song", title=removed.title, index=index, current_index=self._current_index)
            self._emit_update()
            self._emit(QueueEvents.SONG_REMOVED, removed)
            return removed

    def play_next(self) -> Song | None:
        """Advance to the next song and start playing it."""
        with self._lock:
            return self._select(self._current_index + 1, "play_next")

    def play_previous(self) -> Song | None:
        """Step back to the previous song (never before index 0)."""
        with self._lock:
            if self._current_index - 1 < 0:
                return None
            return self._select(self._current_index - 1, "play_previous")

    def play_song_at(self, index: int) -> Song | None:
        """Jump directly to ``index``."""
        with self._lock:
            return self._select(index, "play_song_at")

    def _select(self, index: int, operation: str) -> Song | None:
        if not 0 <= index < len(self._songs):
            return None

        self._current_index = index
        self._is_playing = True
        song = self._songs[index]

        log_queue_operation(operation, title=song.title, current_index=index)
        self._emit_update()
        self._emit(QueueEvents.CURRENT_CHANGED, song)
        return song

    def set_playing_state(self, is_playing: bool) -> None:
        """Set the transport flag. Always notifies."""
        with self._lock:
            self._is_playing = is_playing
            log_queue_operation("set_playing_state", is_playing=is_playing)
            self._emit_update()
            self._emit(QueueEvents.PLAYBACK_STATE, is_playing)

    def remove_current_and_move_next(self) -> Song | None:
        """Finish (or skip) the current song.

        The finished song goes to the play history (fallbacks excluded,
        oldest entries evicted past ``history_limit``) and leaves the queue;
        the following song slides into ``current_index``. When nothing
        follows, playback stops and, with auto-recommend on, ``queue_empty``
        is emitted.

        Returns:
            The new current song, or None
        """
        with self._lock:
            current = self._current_song()
            if current is None:
                log_queue_operation("remove_current_and_move_next", result="no current song")
                return None

            if not current.is_fallback:
                self._play_history.append(current)
                if len(self._play_history) > self.history_limit:
                    del self._play_history[: len(self._play_history) - self.history_limit]

            del self._songs[self._current_index]

            exhausted = self._current_index >= len(self._songs)
            if exhausted:
                self._current_index = -1
                self._is_playing = False

            next_song = self._current_song()
            log_queue_operation(
                "remove_current_and_move_next",
                title=current.title,
                next_title=next_song.title if next_song else None,
                history=len(self._play_history),
            )

            if exhausted and self._auto_recommend_enabled:
                self._emit(QueueEvents.QUEUE_EMPTY)

            self._emit_update()
            self._emit(QueueEvents.SONG_REMOVED, current)
            if next_song is not None:
                self._emit(QueueEvents.CURRENT_CHANGED, next_song)
            return next_song

    def skip_current(self) -> Song | None:
        """Skip removes the current song exactly like completing it."""
        return self.remove_current_and_move_next()

    def reorder_queue(self, from_index: int, to_index: int) -> bool:
        """Move the song at ``from_index`` to ``to_index``.

        ``current_index`` keeps pointing at the same song.

        Returns:
            False (and no change) if either index is out of range
        """
        with self._lock:
            size = len(self._songs)
            if not (0 <= from_index < size) or not (0 <= to_index < size):
                return False

            song = self._songs.pop(from_index)
            self._songs.insert(to_index, song)

            if from_index == self._current_index:
                self._current_index = to_index
            elif from_index < self._current_index <= to_index:
                # Moved from before current to after it
                self._current_index -= 1
            elif to_index <= self._current_index < from_index:
                # Moved from after current to before it
                self._current_index += 1

            log_queue_operation(
                "reorder", from_index=from_index, to_index=to_index, current_index=self._current_index
            )
            self._emit_update()
            return True

    def clear_queue(self) -> None:
        """Empty the queue and the play history."""
        with self._lock:
            self._songs = []
            self._current_index = -1
            self._is_playing = False
            self._play_history = []
            log_queue_operation("clear_queue")
            self._emit_update()

    def load_songs(self, songs: list[Song]) -> None:
        """Replace the queue contents (playlist load). Nothing is selected."""
        with self._lock:
            self._songs = list(songs)
            self._current_index = -1
            self._is_playing = False
            log_queue_operation("load_songs", count=len(self._songs))
            self._emit_update()
