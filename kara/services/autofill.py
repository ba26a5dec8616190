"""Refill an exhausted queue with recommended fallback songs."""

import requests
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from kara.core.logging import log_error, log_queue_operation
from kara.models.events import QueueEvents
from kara.services.queue import QueueManager
from kara.services.youtube import YouTubeClient, YouTubeError
from typing import Any


class AutoFill:
    """Listens for ``queue_empty`` and enqueues recommendations.

    The fetch is fire-and-forget: it always runs on the executor, never inside
    the engine's notification, and a failed fetch leaves the queue untouched.
    Songs are only added if the queue is still empty once the fetch returns.
    """

    def __init__(self, queue: QueueManager, youtube: YouTubeClient, count: int = 5, executor: Executor | None = None):
        self.queue = queue
        self.youtube = youtube
        self.count = count
        self.executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="kara-autofill")

    def attach(self) -> None:
        self.queue.add_listener(self.on_queue_event)

    def on_queue_event(self, event: str, payload: Any = None) -> None:
        if event == QueueEvents.QUEUE_EMPTY:
            self.schedule()

    def schedule(self) -> Future:
        """Submit :meth:`fill` to the executor."""
        future = self.executor.submit(self.fill)
        future.add_done_callback(self._report)
        return future

    def _report(self, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            log_error(error, context="auto_recommend")

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False, cancel_futures=True)

    def fill(self) -> int:
        """Fetch recommendations and add them. Returns the number added."""
        state = self.queue.get_state()
        if state.songs or not state.auto_recommend_enabled:
            # Someone queued a song (or turned this off) before we ran
            return 0

        history = state.play_history
        try:
            songs = self.youtube.recommend(history, self.count)
        except (YouTubeError, requests.RequestException) as e:
            log_error(e, context="auto_recommend")
            return 0

        added = self.queue.add_fallbacks(songs)
        log_queue_operation("auto_recommend", added=added, fetched=len(songs), seeded=bool(history))
        return added
