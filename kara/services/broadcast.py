"""Realtime fan-out of queue notifications to WebSocket clients."""

import asyncio
import uuid
from datetime import datetime, timezone
from fastapi import WebSocket
from kara.core.logging import log_broadcast
from kara.models.events import EVENT_MAP, BroadcastEvents, WebSocketMessage
from kara.services.queue import QueueManager
from pydantic import BaseModel
from typing import Any


def encode_payload(data: Any) -> Any:
    """Turn models (or lists of them) into JSON-ready camelCase data."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, list):
        return [encode_payload(item) for item in data]
    return data


def build_message(event: str, data: Any = None) -> str:
    message = WebSocketMessage(event=event, data=encode_payload(data), timestamp=datetime.now(timezone.utc))
    return message.model_dump_json()


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class Subscriber:
    """One realtime client: an outbox drained in order by a single sender."""

    def __init__(self, websocket: WebSocket | None = None):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.outbox: asyncio.Queue[str] = asyncio.Queue()
        self._loop = _running_loop()

    def deliver(self, message: str) -> None:
        """Queue a message; safe to call from any thread.

        With a loop bound, every message (loop thread included) goes through
        ``call_soon_threadsafe`` so the outbox keeps emission order.
        """
        if self._loop is None:
            self.outbox.put_nowait(message)
        else:
            self._loop.call_soon_threadsafe(self.outbox.put_nowait, message)

    async def pump(self) -> None:
        """Send queued messages until the connection fails or the task is cancelled."""
        while True:
            message = await self.outbox.get()
            await self.websocket.send_text(message)


class ConnectionManager:
    """Manages WebSocket subscribers and broadcasts queue notifications."""

    def __init__(self):
        self.active_connections: list[Subscriber] = []
        self._queue: QueueManager | None = None

    def attach(self, queue: QueueManager) -> None:
        """Subscribe to the queue engine. Attaching again never double-delivers."""
        if self._queue is not None:
            self._queue.remove_listener(self.on_queue_event)
        self._queue = queue
        queue.add_listener(self.on_queue_event)

    def on_queue_event(self, event: str, payload: Any = None) -> None:
        self.emit_to_all(EVENT_MAP.get(event, event), payload)

    async def connect(self, websocket: WebSocket) -> Subscriber:
        """Accept a connection and send it the current queue state."""
        await websocket.accept()
        return self.subscribe(websocket)

    def subscribe(self, websocket: WebSocket | None = None) -> Subscriber:
        """Register a subscriber; it receives the full queue state first."""
        subscriber = Subscriber(websocket)
        if self._queue is not None:
            subscriber.deliver(build_message(BroadcastEvents.QUEUE_UPDATE, self._queue.get_state()))
        self.active_connections.append(subscriber)
        return subscriber

    def disconnect(self, subscriber: Subscriber) -> None:
        if subscriber in self.active_connections:
            self.active_connections.remove(subscriber)

    def emit_to_all(self, event: str, data: Any = None) -> None:
        """Broadcast an event to every connected client."""
        message = build_message(event, data)
        for subscriber in list(self.active_connections):
            subscriber.deliver(message)
        log_broadcast(event, len(self.active_connections))

    def send_to(self, subscriber: Subscriber, event: str, data: Any = None) -> None:
        """Send an event to a single client."""
        subscriber.deliver(build_message(event, data))
