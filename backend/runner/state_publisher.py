"""State publisher for the simulation runner.

The runner is the only writer of the session state. Every time it replaces
the state it hands the new snapshot to the publisher, which stamps it with a
version and fans it out to:

- async subscribers (``subscribe()``), each with its own bounded queue that
  keeps the newest snapshots when a consumer falls behind
- synchronous listeners (``add_listener()``), called inline in publish order
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional, Set

import orjson

from backend.runner.perf_tracker import PerfTracker
from backend.state_payloads import SnapshotPayload
from core.game_state import SimulationState

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[SnapshotPayload], None]

_CLOSED = object()


class SnapshotSubscription:
    """A change-notification stream of snapshots for one consumer.

    Iterate with ``async for payload in subscription``; iteration ends once
    the subscription is closed. With ``maxsize=0`` every snapshot is kept,
    otherwise the oldest queued snapshots are dropped to make room.
    """

    def __init__(self, publisher: "StatePublisher", maxsize: int = 1):
        self._publisher = publisher
        self._queue: asyncio.Queue = asyncio.Queue()
        self.maxsize = maxsize
        self.closed = False
        self.dropped = 0

    def offer(self, payload: SnapshotPayload) -> None:
        if self.closed:
            return
        if self.maxsize and self._queue.qsize() >= self.maxsize:
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(payload)

    async def get(self) -> Optional[SnapshotPayload]:
        """Wait for the next snapshot; None once the subscription is closed."""
        if self.closed and self._queue.empty():
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item

    def pending(self) -> int:
        """Number of snapshots waiting to be read."""
        return self._queue.qsize() - (1 if self.closed and not self._queue.empty() else 0)

    def close(self) -> None:
        self._publisher.unsubscribe(self)

    def _mark_closed(self) -> None:
        if self.closed:
            return
        self.closed = True
        # Wake a consumer blocked in get()
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "SnapshotSubscription":
        return self

    async def __anext__(self) -> SnapshotPayload:
        payload = await self.get()
        if payload is None:
            raise StopAsyncIteration
        return payload


class StatePublisher:
    """Stamps, caches and fans out state snapshots."""

    def __init__(self, perf_tracker: Optional[PerfTracker] = None, default_maxsize: int = 1):
        self.perf_tracker = perf_tracker or PerfTracker(enable_logging=False)
        self.default_maxsize = default_maxsize
        self._version = 0
        self._latest: Optional[SnapshotPayload] = None
        self._subscriptions: Set[SnapshotSubscription] = set()
        self._listeners: List[SnapshotListener] = []

    @property
    def latest(self) -> Optional[SnapshotPayload]:
        return self._latest

    @property
    def version(self) -> int:
        return self._version

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions) + len(self._listeners)

    def publish(self, frame: int, state: SimulationState) -> SnapshotPayload:
        """Publish a new snapshot to every subscriber and listener."""
        with self.perf_tracker.measure("publish"):
            self._version += 1
            payload = SnapshotPayload(version=self._version, frame=frame, state=state)
            self._latest = payload

            for subscription in list(self._subscriptions):
                subscription.offer(payload)

            failed = []
            for listener in list(self._listeners):
                try:
                    listener(payload)
                except Exception as e:
                    logger.warning("Snapshot listener %r failed, removing it: %s", listener, e)
                    failed.append(listener)
            for listener in failed:
                self.remove_listener(listener)

        return payload

    def subscribe(self, maxsize: Optional[int] = None) -> SnapshotSubscription:
        """Open a snapshot stream, primed with the latest snapshot if any."""
        subscription = SnapshotSubscription(
            self, maxsize=self.default_maxsize if maxsize is None else maxsize
        )
        if self._latest is not None:
            subscription.offer(self._latest)
        self._subscriptions.add(subscription)
        logger.debug("Subscriber added (%d total)", self.subscriber_count)
        return subscription

    def unsubscribe(self, subscription: SnapshotSubscription) -> None:
        self._subscriptions.discard(subscription)
        subscription._mark_closed()

    def add_listener(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def close(self) -> None:
        """End every open subscription."""
        for subscription in list(self._subscriptions):
            self.unsubscribe(subscription)
        self._listeners.clear()

    def serialize_state(self, payload: Optional[SnapshotPayload] = None) -> bytes:
        """Serialize a snapshot (the latest one by default) to JSON bytes."""
        payload = payload or self._latest
        if payload is None:
            raise ValueError("No snapshot has been published yet")

        serialize_start = time.perf_counter()
        serialized = orjson.dumps(payload.to_dict())
        serialize_ms = (time.perf_counter() - serialize_start) * 1000

        if serialize_ms > 10:
            logger.warning(
                "serialize_state: Frame %s slow serialization: %.2f ms, Size: %d bytes",
                payload.frame,
                serialize_ms,
                len(serialized),
            )
        return serialized
