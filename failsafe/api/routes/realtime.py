"""
failsafe.api.routes.realtime — WebSocket relay endpoint
========================================================

Protocol (JSON text frames)::

    client → server   {"type": "join",    "roomId": "<room>"}
    client → server   {"type": "message", "roomId": "<room>"}
    server → client   {"type": "message", "roomId": "<room>"}

A ``message`` frame is echoed to every *other* connection in the room
so their clients re-fetch history.  Anything else is ignored.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from failsafe.api.deps import RegistryDep
from failsafe.services.relay import Connection, ConnectionRegistry, RelayClient, message_frame

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)

FRAME_TYPES = frozenset({"join", "message"})


def parse_frame(raw: str | None) -> tuple[str, str] | None:
    """Return ``(type, room_id)`` for a well-formed frame, else ``None``."""
    try:
        data: Any = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict):
        return None
    frame_type = data.get("type")
    room_id = data.get("roomId")
    if frame_type not in FRAME_TYPES or not isinstance(room_id, str) or not room_id:
        return None
    return frame_type, room_id


async def handle_frame(
    registry: ConnectionRegistry, conn: Connection, raw: str | None
) -> None:
    parsed = parse_frame(raw)
    if parsed is None:
        logger.debug("Ignoring malformed frame")
        return

    frame_type, room_id = parsed
    if frame_type == "join":
        registry.subscribe(room_id, conn)
    else:
        await registry.broadcast(room_id, message_frame(room_id), except_conn=conn)


@router.websocket("/ws")
async def relay_socket(websocket: WebSocket, registry: RegistryDep):
    await websocket.accept()
    client = RelayClient(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            # Binary frames carry no "text" and fall through as malformed
            await handle_frame(registry, client, message.get("text"))
    except WebSocketDisconnect:
        logger.debug("Relay client disconnected")
    finally:
        registry.unsubscribe(client)
