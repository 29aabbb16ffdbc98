"""Tests for the SSE and WebSocket event streams."""

import asyncio
import json
import time
from types import SimpleNamespace

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from livecast.comments.service import LiveCommentService, ModerationRejectedError
from livecast.events.router import SSE_KEEP_ALIVE, events_websocket, sse_stream


def parse_sse(message: str) -> dict:
    """Split one SSE message into its fields, decoding data as JSON."""
    fields = {}
    for line in message.strip().split("\n"):
        key, _, value = line.partition(": ")
        fields[key] = value
    fields["data"] = json.loads(fields["data"])
    return fields


class FakeWebSocket:
    """WebSocket stand-in recording what the handler sends."""

    def __init__(
        self,
        service: LiveCommentService,
        heartbeat: float = 5.0,
        fail_sends: bool = False,
        disconnect_after: float | None = None,
    ) -> None:
        self.app = SimpleNamespace(
            state=SimpleNamespace(
                live_comment_service=service,
                settings=SimpleNamespace(events_heartbeat_interval=heartbeat),
            )
        )
        self.fail_sends = fail_sends
        self.disconnect_after = disconnect_after
        self.calls: list[tuple[str, object]] = []

    async def accept(self) -> None:
        self.calls.append(("accept", None))

    async def send_json(self, data: dict) -> None:
        if self.fail_sends:
            msg = "connection lost"
            raise RuntimeError(msg)
        self.calls.append(("send", data))

    async def receive_json(self) -> dict:
        if self.disconnect_after is None:
            await asyncio.sleep(3600)
        await asyncio.sleep(self.disconnect_after)
        raise WebSocketDisconnect(code=1006)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.calls.append(("close", code))


class TestSSEStream:
    """Tests for the SSE rendering of a subscription."""

    @pytest.mark.asyncio
    async def test_backlog_then_live(self, service: LiveCommentService) -> None:
        """Backlog arrives first without ids, live events carry their sequence."""
        old = await service.create_comment("A", "old")
        stream = sse_stream(service, heartbeat=1.0)

        first = parse_sse(await anext(stream))
        second = parse_sse(await anext(stream))
        assert first["event"] == "comment"
        assert first["data"]["id"] == old.id
        assert "id" not in first
        assert second["event"] == "ng_words_updated"
        assert second["data"] == {"ngWords": [], "added": []}

        new = await service.create_comment("B", "new")
        live = parse_sse(await asyncio.wait_for(anext(stream), timeout=1))
        assert live["event"] == "comment"
        assert live["data"]["id"] == new.id
        assert int(live["id"]) > 0

        await stream.aclose()

    @pytest.mark.asyncio
    async def test_keep_alive(self, service: LiveCommentService) -> None:
        stream = sse_stream(service, heartbeat=0.01)
        await anext(stream)

        assert await asyncio.wait_for(anext(stream), timeout=1) == SSE_KEEP_ALIVE
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_closing_stream_unsubscribes(
        self, service: LiveCommentService
    ) -> None:
        stream = sse_stream(service)
        await anext(stream)
        assert service.broadcaster.subscriber_count == 1

        await stream.aclose()

        assert service.broadcaster.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_stream_dropped_before_first_read(
        self, service: LiveCommentService
    ) -> None:
        """A response discarded before streaming leaves no subscriber behind."""
        stream = sse_stream(service)

        await stream.aclose()
        await service.create_comment("A", "hello")

        assert service.broadcaster.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_blocked_comment_reaches_stream(
        self, service: LiveCommentService
    ) -> None:
        """A rejected comment still announces the words it taught the filter."""
        stream = sse_stream(service, heartbeat=1.0)
        await anext(stream)

        with pytest.raises(ModerationRejectedError):
            await service.create_comment("A", "merde")

        update = parse_sse(await asyncio.wait_for(anext(stream), timeout=1))
        assert update["event"] == "ng_words_updated"
        assert update["data"] == {"ngWords": ["merde"], "added": ["merde"]}
        await stream.aclose()


class TestWebSocketHandler:
    """Tests for the WebSocket handler against a stand-in socket."""

    @pytest.mark.asyncio
    async def test_broken_sender_unsubscribes(
        self, service: LiveCommentService
    ) -> None:
        """A socket that fails on send is dropped without affecting publishers."""
        websocket = FakeWebSocket(service, fail_sends=True, disconnect_after=0.05)

        await asyncio.wait_for(events_websocket(websocket), timeout=2)

        assert service.broadcaster.subscriber_count == 0
        comment = await service.create_comment("A", "still works")
        assert service.get_comment(comment.id).message == "still works"

    @pytest.mark.asyncio
    async def test_no_ping_after_sender_closed(
        self, service: LiveCommentService
    ) -> None:
        """Once the subscriber is closed the socket is closed and left alone."""
        websocket = FakeWebSocket(service, heartbeat=0.01)
        asyncio.get_running_loop().call_later(0.05, service.broadcaster.close)

        await asyncio.wait_for(events_websocket(websocket), timeout=2)

        assert websocket.calls[-1] == ("close", 1013)
        assert service.broadcaster.subscriber_count == 0


class TestWebSocketStream:
    """Tests for WS /ws/events."""

    def test_backlog_and_live_events(self, client: TestClient) -> None:
        created = client.post("/comments", json={"message": "before"}).json()

        with client.websocket_connect("/ws/events") as websocket:
            backlog_comment = websocket.receive_json()
            assert backlog_comment["type"] == "comment"
            assert backlog_comment["sequence"] is None
            assert backlog_comment["data"]["id"] == created["id"]

            snapshot = websocket.receive_json()
            assert snapshot["type"] == "ng_words_updated"

            client.post(
                f"/comments/{created['id']}/reactions", json={"reaction": "laugh"}
            )
            live = websocket.receive_json()
            assert live["type"] == "reaction_updated"
            assert live["data"]["reactions"]["laugh"] == 1
            assert isinstance(live["sequence"], int)

    def test_ping_pong(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/events") as websocket:
            websocket.receive_json()

            websocket.send_json({"type": "ping"})

            assert websocket.receive_json() == {"type": "pong"}

    def test_subscriber_registered_while_connected(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/events") as websocket:
            websocket.receive_json()
            websocket.send_json({"type": "ping"})
            websocket.receive_json()

            ready = client.get("/health/ready").json()
            assert ready["subscribers"] == 1

    def test_disconnect_removes_subscriber(self, client: TestClient) -> None:
        """Closing the socket unregisters its subscriber."""
        with client.websocket_connect("/ws/events") as websocket:
            websocket.receive_json()
            websocket.send_json({"type": "ping"})
            websocket.receive_json()

        deadline = time.monotonic() + 2
        while client.get("/health/ready").json()["subscribers"] and (
            time.monotonic() < deadline
        ):
            time.sleep(0.01)

        assert client.get("/health/ready").json()["subscribers"] == 0
