"""In-process fan-out of live events to connected subscribers.

Key features:
- Non-blocking publish via asyncio.Queue.put_nowait() per subscriber
- Slow consumers are dropped on queue full, never waited on
- A single global sequence, so every subscriber sees the same order

Queues are asyncio objects: publish and the subscriber streams must run on
the application event loop.
"""

import asyncio
import itertools
import threading
from collections.abc import AsyncIterator, Iterable

from livecast.core.logging import get_logger

from .models import Event


logger = get_logger(__name__)

# Queue marker telling the consumer that the subscriber was closed
_CLOSED = object()


class Subscriber:
    """A connected live event consumer.

    ``backlog`` holds the state snapshot to replay before any live event.
    Live events are buffered in a bounded queue and read with ``stream()``.
    """

    def __init__(
        self,
        subscriber_id: int,
        backlog: Iterable[Event] = (),
        queue_size: int = 1000,
    ) -> None:
        self.subscriber_id = subscriber_id
        self.backlog: tuple[Event, ...] = tuple(backlog)
        self.queue_size = queue_size
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=queue_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Live events buffered but not yet consumed."""
        return self._queue.qsize()

    def offer(self, event: Event) -> bool:
        """Queue an event without blocking.

        Returns:
            True if queued, False if the subscriber is closed or full
        """
        if self._closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    def close(self) -> None:
        """Discard pending events and wake the consumer so its stream ends."""
        if self._closed:
            return
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def stream(
        self, heartbeat: float | None = None
    ) -> AsyncIterator[Event | None]:
        """Yield live events until the subscriber is closed.

        Yields None after ``heartbeat`` seconds without events so transports
        can send a keep-alive.
        """
        while True:
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout=heartbeat)
            except TimeoutError:
                yield None
                continue

            if item is _CLOSED:
                return
            yield item


class EventBroadcaster:
    """Registry of subscribers and ordered event fan-out."""

    def __init__(self, queue_size: int = 1000) -> None:
        self.queue_size = queue_size

        self._subscribers: dict[int, Subscriber] = {}
        self._subscriber_ids = itertools.count(1)
        self._sequence = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, backlog: Iterable[Event] = ()) -> Subscriber:
        """Register a subscriber that receives every event published from now on.

        Callers that need backlog and registration to be indivisible must
        hold off publishing while they build the backlog and call this.
        """
        with self._lock:
            subscriber = Subscriber(
                next(self._subscriber_ids), backlog, queue_size=self.queue_size
            )
            self._subscribers[subscriber.subscriber_id] = subscriber
            total = len(self._subscribers)

        logger.info(
            "subscriber_connected",
            subscriber_id=subscriber.subscriber_id,
            backlog_size=len(subscriber.backlog),
            subscribers=total,
        )
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> bool:
        """Remove a subscriber. Safe to call more than once.

        Returns:
            True if the subscriber was registered
        """
        with self._lock:
            removed = self._subscribers.pop(subscriber.subscriber_id, None)
            total = len(self._subscribers)
        subscriber.close()

        if removed is not None:
            logger.info(
                "subscriber_disconnected",
                subscriber_id=subscriber.subscriber_id,
                subscribers=total,
            )
        return removed is not None

    def publish(self, event: Event) -> Event:
        """Deliver an event to every registered subscriber.

        Subscribers whose queue is full are dropped instead of waited on.

        Returns:
            The event with its assigned sequence number
        """
        dropped: list[Subscriber] = []

        with self._lock:
            event = event.with_sequence(next(self._sequence))
            for subscriber in list(self._subscribers.values()):
                if not subscriber.offer(event):
                    del self._subscribers[subscriber.subscriber_id]
                    subscriber.close()
                    dropped.append(subscriber)
            delivered = len(self._subscribers)

        for subscriber in dropped:
            logger.warning(
                "subscriber_overflow",
                subscriber_id=subscriber.subscriber_id,
                queue_size=subscriber.queue_size,
                sequence=event.sequence,
            )

        logger.debug(
            "event_published",
            event_type=event.type.value,
            sequence=event.sequence,
            delivered=delivered,
        )
        return event

    def close(self) -> None:
        """Close every subscriber, ending their streams."""
        with self._lock:
            subscribers = list(self._subscribers.values())
            self._subscribers.clear()

        for subscriber in subscribers:
            subscriber.close()

        if subscribers:
            logger.info("broadcaster_closed", subscribers=len(subscribers))
