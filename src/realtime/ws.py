"""WebSocket gateway to the notification hub.

Clients send JSON commands::

    {"action": "subscribe", "room": "client:42"}
    {"action": "unsubscribe", "room": "client:42"}
    {"action": "get_rooms"}

and receive acknowledgements plus every event published to their rooms,
all shaped as ``{"event": ..., "room": ..., "data": ...}``.
"""

import asyncio
import json

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from realtime import get_hub
from realtime.connections import QueueConnection

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["realtime"])


def handle_client_message(hub, connection, message) -> dict:
    """Apply one client command to the hub and build the reply."""
    if not isinstance(message, dict):
        return {"event": "error", "room": None, "data": {"message": "Message must be a JSON object"}}

    action = message.get("action")
    room = message.get("room")

    if action == "get_rooms":
        return {"event": "rooms_info", "room": None, "data": {"rooms": hub.rooms_of(connection)}}

    if action not in ("subscribe", "unsubscribe"):
        return {"event": "error", "room": None, "data": {"message": f"Unknown action: {action}"}}

    if not isinstance(room, str) or not room.strip():
        return {"event": "error", "room": None, "data": {"message": "Room name is required"}}

    room = room.strip()
    if action == "subscribe":
        hub.subscribe(connection, room)
        return {"event": "subscribed", "room": room, "data": {"room": room}}

    hub.unsubscribe(connection, room)
    return {"event": "unsubscribed", "room": room, "data": {"room": room}}


async def _pump(websocket: WebSocket, connection: QueueConnection) -> None:
    while True:
        message = await connection.queue.get()
        await websocket.send_json(message)


@router.websocket("/ws")
async def notifications_socket(websocket: WebSocket):
    await websocket.accept()
    hub = get_hub()
    connection = QueueConnection(asyncio.get_running_loop())
    pump = asyncio.create_task(_pump(websocket, connection))
    logger.info("WebSocket connected", connection_id=connection.id)

    try:
        while True:
            text = await websocket.receive_text()
            try:
                message = json.loads(text)
            except json.JSONDecodeError:
                message = None
            connection.queue.put_nowait(handle_client_message(hub, connection, message))
    except WebSocketDisconnect:
        logger.info("WebSocket disconnected", connection_id=connection.id)
    finally:
        hub.disconnect(connection)
        pump.cancel()
