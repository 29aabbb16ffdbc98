"""Live event streams.

Provides:
- GET /events - Server-Sent Events stream
- WS /ws/events - WebSocket stream

Both replay the current state (every comment, then the banned-word set)
before streaming live events.
"""

import asyncio
from collections.abc import AsyncIterator

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse

from livecast.comments.dependencies import LiveCommentServiceDep
from livecast.comments.service import LiveCommentService
from livecast.core.context import set_subscriber_id
from livecast.core.logging import get_logger

from .broadcaster import Subscriber


logger = get_logger(__name__)

router = APIRouter(tags=["events"])

SSE_KEEP_ALIVE = ": keep-alive\n\n"


async def sse_stream(
    service: LiveCommentService,
    heartbeat: float | None = None,
    client_ip: str | None = None,
) -> AsyncIterator[str]:
    """Subscribe and render the subscription as SSE messages.

    Registration happens on the first read and removal in the same frame, so
    a response that is dropped before it starts streaming leaves nothing
    registered. The subscriber is removed when the stream ends, including
    when the client disconnects and the response task is cancelled.
    """
    subscriber: Subscriber | None = None
    try:
        subscriber = await service.subscribe()
        set_subscriber_id(subscriber.subscriber_id)
        logger.info(
            "sse_stream_opened",
            subscriber_id=subscriber.subscriber_id,
            client_ip=client_ip,
        )

        for event in subscriber.backlog:
            yield event.to_sse()

        async for event in subscriber.stream(heartbeat):
            yield SSE_KEEP_ALIVE if event is None else event.to_sse()
    finally:
        if subscriber is not None:
            service.unsubscribe(subscriber)


@router.get("/events", summary="Live event stream (SSE)")
async def events(request: Request, service: LiveCommentServiceDep) -> StreamingResponse:
    """Stream live events as text/event-stream."""
    return StreamingResponse(
        sse_stream(
            service,
            heartbeat=request.app.state.settings.events_heartbeat_interval,
            client_ip=request.client.host if request.client else None,
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


async def forward_events(websocket: WebSocket, subscriber: Subscriber) -> None:
    """Send the backlog, then every live event, to a WebSocket."""
    for event in subscriber.backlog:
        await websocket.send_json(event.to_message())

    async for event in subscriber.stream():
        await websocket.send_json(event.to_message())

    # Subscriber was closed (slow consumer or shutdown)
    await websocket.close(code=1013, reason="Subscriber closed")


@router.websocket("/ws/events")
async def events_websocket(websocket: WebSocket) -> None:
    """WebSocket endpoint for live events.

    Connect with: ws://host/ws/events

    Messages received:
    - {"type": <event type>, "sequence": N | null, "data": {...}} - Live event
    - {"type": "ping"} - Keep-alive ping

    Messages you can send:
    - {"type": "ping"} - Server answers with {"type": "pong"}
    - {"type": "pong"} - Response to ping
    """
    service: LiveCommentService | None = getattr(
        websocket.app.state, "live_comment_service", None
    )
    if service is None:
        await websocket.close(code=1011, reason="Live comment service not available")
        return

    await websocket.accept()
    subscriber = await service.subscribe()
    set_subscriber_id(subscriber.subscriber_id)

    sender_task = asyncio.create_task(forward_events(websocket, subscriber))
    ping_interval = websocket.app.state.settings.events_heartbeat_interval

    try:
        while not sender_task.done():
            try:
                message = await asyncio.wait_for(
                    websocket.receive_json(),
                    timeout=ping_interval,
                )
            except TimeoutError:
                # Sender already closed the socket
                if sender_task.done():
                    break
                await websocket.send_json({"type": "ping"})
                continue

            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning("websocket_error", error=str(e), error_type=type(e).__name__)
    finally:
        service.unsubscribe(subscriber)
        if not sender_task.done():
            sender_task.cancel()
        (outcome,) = await asyncio.gather(sender_task, return_exceptions=True)
        if isinstance(outcome, Exception) and not isinstance(
            outcome, WebSocketDisconnect
        ):
            logger.warning(
                "websocket_send_failed",
                error=str(outcome),
                error_type=type(outcome).__name__,
            )
