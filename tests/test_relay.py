"""
tests/test_relay.py — Realtime room registry & frame handling
==============================================================
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock

from failsafe.api.routes.realtime import handle_frame, parse_frame
from failsafe.services.relay import ConnectionRegistry, RelayClient, message_frame


def run_async(coro):
    """Helper to run an async coroutine in sync tests."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FakeConn:
    """Stands in for a RelayClient; records what it was sent."""

    def __init__(self, fail: bool = False, delay: float = 0.0) -> None:
        self.sent: list[dict] = []
        self.fail = fail
        self.delay = delay

    async def send_json(self, data, mode: str = "text") -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


# ===========================================================================
# Registry
# ===========================================================================
class TestConnectionRegistry:
    def test_last_join_wins(self):
        reg = ConnectionRegistry()
        conn = FakeConn()
        reg.subscribe("r1", conn)
        reg.subscribe("r2", conn)
        assert reg.room_of(conn) == "r2"
        assert conn not in reg.members("r1")
        assert reg.room_count() == 1

    def test_unsubscribe(self):
        reg = ConnectionRegistry()
        conn = FakeConn()
        reg.subscribe("r1", conn)
        assert reg.unsubscribe(conn) == "r1"
        assert reg.unsubscribe(conn) is None
        assert reg.room_count() == 0

    def test_broadcast_skips_sender_and_other_rooms(self):
        reg = ConnectionRegistry()
        sender, peer, elsewhere = FakeConn(), FakeConn(), FakeConn()
        reg.subscribe("r1", sender)
        reg.subscribe("r1", peer)
        reg.subscribe("r2", elsewhere)

        delivered = run_async(reg.broadcast("r1", message_frame("r1"), except_conn=sender))

        assert delivered == 1
        assert peer.sent == [{"type": "message", "roomId": "r1"}]
        assert sender.sent == []
        assert elsewhere.sent == []

    def test_broadcast_to_empty_room(self):
        assert run_async(ConnectionRegistry().broadcast("nobody", message_frame("nobody"))) == 0

    def test_dead_connections_dropped(self):
        reg = ConnectionRegistry()
        dead, alive = FakeConn(fail=True), FakeConn()
        reg.subscribe("r1", dead)
        reg.subscribe("r1", alive)

        assert run_async(reg.broadcast("r1", message_frame("r1"))) == 1
        assert reg.members("r1") == frozenset({alive})
        assert reg.room_of(dead) is None

    def test_stalled_connection_does_not_block_room(self):
        reg = ConnectionRegistry(send_timeout=0.05)
        stalled, alive = FakeConn(delay=5), FakeConn()
        reg.subscribe("r1", stalled)
        reg.subscribe("r1", alive)

        assert run_async(reg.broadcast("r1", message_frame("r1"))) == 1
        assert alive.sent == [{"type": "message", "roomId": "r1"}]
        assert reg.members("r1") == frozenset({alive})

    def test_relay_client_is_hashable_wrapper(self):
        ws = AsyncMock()
        client = RelayClient(ws)
        reg = ConnectionRegistry()
        reg.subscribe("r1", client)
        run_async(reg.broadcast("r1", message_frame("r1")))
        ws.send_json.assert_awaited_once_with({"type": "message", "roomId": "r1"}, mode="text")


# ===========================================================================
# Frames
# ===========================================================================
class TestFrames:
    def test_parse_valid(self):
        assert parse_frame(json.dumps({"type": "join", "roomId": "r1"})) == ("join", "r1")
        assert parse_frame(json.dumps({"type": "message", "roomId": "r1"})) == ("message", "r1")

    def test_parse_rejects_malformed(self):
        for raw in [
            "not json",
            "[1, 2]",
            json.dumps({"type": "shout", "roomId": "r1"}),
            json.dumps({"type": "join"}),
            json.dumps({"type": "join", "roomId": ""}),
            json.dumps({"type": "join", "roomId": 42}),
        ]:
            assert parse_frame(raw) is None, raw

    def test_join_then_message_pings_others(self):
        reg = ConnectionRegistry()
        a, b = FakeConn(), FakeConn()
        run_async(handle_frame(reg, a, json.dumps({"type": "join", "roomId": "r1"})))
        run_async(handle_frame(reg, b, json.dumps({"type": "join", "roomId": "r1"})))
        run_async(handle_frame(reg, a, json.dumps({"type": "message", "roomId": "r1"})))

        assert b.sent == [{"type": "message", "roomId": "r1"}]
        assert a.sent == []

    def test_malformed_frame_ignored(self):
        reg = ConnectionRegistry()
        a = FakeConn()
        run_async(handle_frame(reg, a, "{oops"))
        assert reg.room_of(a) is None

    def test_binary_payload_ignored(self):
        # Binary WebSocket frames arrive with no text
        reg = ConnectionRegistry()
        a = FakeConn()
        run_async(handle_frame(reg, a, None))
        assert reg.room_of(a) is None
        assert parse_frame(None) is None
