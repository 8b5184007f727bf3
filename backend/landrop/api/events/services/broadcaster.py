"""Event broadcaster — fans upload events out to streaming subscribers."""

import asyncio
import logging
import threading

from landrop.api.events.dto.event import UploadEvent
from landrop.config import EVENT_QUEUE_SIZE

log = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """One observer's bounded view of the event stream.

    Iterate with ``async for``; iteration ends when the broadcaster closes.
    Leaving the ``with`` block (or calling ``close``) unsubscribes.
    """

    def __init__(self, broadcaster: "EventBroadcaster", maxsize: int):
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._finished = False
        self.dropped = 0

    def _deliver(self, item) -> None:
        """Enqueue without blocking, discarding the oldest item when full."""
        while True:
            try:
                self._queue.put_nowait(item)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()
                self.dropped += 1

    async def get(self) -> UploadEvent | None:
        """Wait for the next event; None once the broadcaster has closed."""
        if self._finished:
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            self._finished = True
            return None
        return item

    def __aiter__(self):
        return self

    async def __anext__(self) -> UploadEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event

    def close(self) -> None:
        self._broadcaster._unsubscribe(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class EventBroadcaster:
    """Multi-producer, multi-consumer channel of upload events.

    Publishing reads an immutable snapshot of subscribers and never waits; the
    lock only guards replacing that snapshot.
    """

    def __init__(self, queue_size: int = EVENT_QUEUE_SIZE):
        self._queue_size = queue_size
        self._lock = threading.Lock()
        self._subscribers: tuple[Subscription, ...] = ()
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: UploadEvent) -> None:
        for subscription in self._subscribers:
            dropped = subscription.dropped
            subscription._deliver(event)
            if subscription.dropped != dropped:
                log.debug(f"Subscriber queue full, dropped oldest event for {event.file_name}")

    def subscribe(self) -> Subscription:
        subscription = Subscription(self, self._queue_size)
        with self._lock:
            if self._closed:
                subscription._deliver(_CLOSED)
                return subscription
            self._subscribers = self._subscribers + (subscription,)
        log.debug(f"Subscriber connected ({self.subscriber_count} active)")
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription not in self._subscribers:
                return
            self._subscribers = tuple(s for s in self._subscribers if s is not subscription)
        log.debug(f"Subscriber disconnected ({self.subscriber_count} active)")

    def close(self) -> None:
        """End every subscription after its queued events; refuse new ones."""
        with self._lock:
            self._closed = True
            subscribers, self._subscribers = self._subscribers, ()
        for subscription in subscribers:
            subscription._deliver(_CLOSED)
