"""WebSocket endpoint for real-time queue events."""

import asyncio
import contextlib
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from kara.config import WS_HEARTBEAT_INTERVAL
from kara.dependencies import get_connection_manager, get_master_manager
from kara.models.events import BroadcastEvents
from kara.services.broadcast import ConnectionManager
from kara.services.master import MasterManager

router = APIRouter(tags=["websocket"])


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    device_id: str | None = Query(None, alias="deviceId"),
    connections: ConnectionManager = Depends(get_connection_manager),
    master: MasterManager = Depends(get_master_manager),
):
    """WebSocket endpoint: full queue state on connect, then every queue event."""
    subscriber = await connections.connect(websocket)
    client_id = device_id or f"anonymous-{subscriber.id}"
    master.register_client(
        client_id,
        subscriber.id,
        user_agent=websocket.headers.get("user-agent"),
        ip=websocket.client.host if websocket.client else None,
    )
    sender = asyncio.create_task(subscriber.pump())
    # A failed send ends the pump; stop fanning out to this client
    sender.add_done_callback(lambda _: connections.disconnect(subscriber))

    try:
        while True:
            try:
                data = await asyncio.wait_for(websocket.receive_text(), timeout=WS_HEARTBEAT_INTERVAL)
                master.update_client(client_id, subscriber.id)
                if data == "ping":
                    subscriber.deliver("pong")
            except asyncio.TimeoutError:
                connections.send_to(subscriber, BroadcastEvents.HEARTBEAT)
    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await sender
        connections.disconnect(subscriber)
        master.unregister_client(client_id, subscriber.id)
