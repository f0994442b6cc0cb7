"""
failsafe.services.relay — Realtime Room Registry
=================================================

Tracks which live WebSocket connections are watching which chat room and
fans out a "new message in room X" ping to everyone else in that room.
The ping carries no message body; clients re-fetch history over REST.

A connection watches at most one room: joining another room moves it.
There is no history, acknowledgement or delivery guarantee; a ping
sent to an empty room is dropped.

Only touched from the event loop, so no lock is needed.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Protocol

logger = logging.getLogger(__name__)

SEND_TIMEOUT_SECONDS = 5.0


class Connection(Protocol):
    """What the registry needs from a connection (Starlette WebSocket fits)."""

    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class RelayClient:
    """Identity-hashable handle around one WebSocket.

    Starlette's ``WebSocket`` is a ``Mapping`` and therefore unhashable,
    so the registry stores these instead.
    """

    __slots__ = ("websocket",)

    def __init__(self, websocket: Any) -> None:
        self.websocket = websocket

    async def send_json(self, data: Any, mode: str = "text") -> None:
        await self.websocket.send_json(data, mode=mode)


def message_frame(room_id: str) -> dict[str, str]:
    return {"type": "message", "roomId": room_id}


class ConnectionRegistry:
    """Room id → set of subscribed connections."""

    def __init__(self, send_timeout: float = SEND_TIMEOUT_SECONDS) -> None:
        self.send_timeout = send_timeout
        self._rooms: dict[str, set[Connection]] = defaultdict(set)
        self._room_of: dict[Connection, str] = {}

    def subscribe(self, room_id: str, conn: Connection) -> None:
        """Add *conn* to *room_id*, leaving whatever room it was in."""
        previous = self._room_of.get(conn)
        if previous == room_id:
            return
        if previous is not None:
            self._discard(previous, conn)
        self._rooms[room_id].add(conn)
        self._room_of[conn] = room_id

    def unsubscribe(self, conn: Connection) -> str | None:
        """Forget *conn*; returns the room it was in, if any."""
        room_id = self._room_of.pop(conn, None)
        if room_id is not None:
            self._discard(room_id, conn)
        return room_id

    def room_of(self, conn: Connection) -> str | None:
        return self._room_of.get(conn)

    def members(self, room_id: str) -> frozenset[Connection]:
        return frozenset(self._rooms.get(room_id, ()))

    def room_count(self) -> int:
        return len(self._rooms)

    async def broadcast(
        self,
        room_id: str,
        frame: dict[str, Any],
        except_conn: Connection | None = None,
    ) -> int:
        """Send *frame* to every subscriber of *room_id* except *except_conn*.

        Sends run concurrently; a connection that errors or takes longer
        than ``send_timeout`` seconds is dropped.  Returns the number of
        successful deliveries.
        """
        targets = [c for c in self._rooms.get(room_id, ()) if c is not except_conn]
        if not targets:
            return 0

        results = await asyncio.gather(
            *(asyncio.wait_for(c.send_json(frame), self.send_timeout) for c in targets),
            return_exceptions=True,
        )
        delivered = 0
        for conn, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Dropping dead connection from room %s: %r", room_id, result
                )
                self.unsubscribe(conn)
            else:
                delivered += 1
        return delivered

    def _discard(self, room_id: str, conn: Connection) -> None:
        conns = self._rooms.get(room_id)
        if conns is None:
            return
        conns.discard(conn)
        if not conns:
            del self._rooms[room_id]
