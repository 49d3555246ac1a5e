"""Snapshot fan-out to connected subscribers.

Every successful board mutation publishes the full updated collection on its
channel. Publishing only enqueues messages; each connection drains its own
queue, so delivery never blocks or fails the mutating operation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping
from uuid import uuid4

TASKS_CHANNEL = "tasks:update"
VISITS_CHANNEL = "visits:update"
HELPERS_CHANNEL = "helpers:update"

CHANNELS: tuple[str, ...] = (TASKS_CHANNEL, VISITS_CHANNEL, HELPERS_CHANNEL)

# Queued in place of a message when a subscriber is dropped.
CLOSE = None

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class Subscriber:
    """A connected client and its pending messages."""

    queue: asyncio.Queue
    id: str = field(default_factory=lambda: uuid4().hex)


class FanOut:
    """Publish collection snapshots to every subscriber.

    Usage:
        fanout = FanOut()

        # On connection
        subscriber = fanout.subscribe(board.snapshot())

        # After a mutation
        fanout.publish("tasks:update", tasks)

        # Cleanup
        fanout.unsubscribe(subscriber)
    """

    def __init__(self, *, max_subscribers: int = 100, queue_size: int = 64) -> None:
        self._max_subscribers = max_subscribers
        self._queue_size = queue_size
        self._subscribers: dict[str, Subscriber] = {}

    @property
    def subscriber_count(self) -> int:
        """Number of active subscribers."""
        return len(self._subscribers)

    def subscribe(self, snapshot: Mapping[str, Any] | None = None) -> Subscriber | None:
        """Register a subscriber and queue the current snapshot of every channel.

        Returns None when the subscriber limit has been reached.
        """
        if len(self._subscribers) >= self._max_subscribers:
            logger.warning(
                "Subscriber limit reached",
                extra={"max_subscribers": self._max_subscribers},
            )
            return None

        initial = dict(snapshot or {})
        subscriber = Subscriber(queue=asyncio.Queue(maxsize=max(self._queue_size, len(initial))))
        for channel, data in initial.items():
            subscriber.queue.put_nowait(_message(channel, data))
        self._subscribers[subscriber.id] = subscriber
        logger.info(
            "Subscriber connected",
            extra={"subscriber_id": subscriber.id, "subscribers": len(self._subscribers)},
        )
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Remove subscriber."""
        if self._subscribers.pop(subscriber.id, None) is not None:
            logger.info(
                "Subscriber disconnected",
                extra={"subscriber_id": subscriber.id, "subscribers": len(self._subscribers)},
            )

    def publish(self, channel: str, data: Any) -> int:
        """Queue ``data`` on ``channel`` for all subscribers and return how many got it.

        Subscribers whose queue is full are dropped.
        """
        message = _message(channel, data)
        delivered = 0
        dropped: list[Subscriber] = []
        for subscriber in self._subscribers.values():
            try:
                subscriber.queue.put_nowait(message)
            except asyncio.QueueFull:
                dropped.append(subscriber)
                continue
            delivered += 1

        for subscriber in dropped:
            self._subscribers.pop(subscriber.id, None)
            _close(subscriber)
            logger.warning(
                "Dropped slow subscriber",
                extra={"subscriber_id": subscriber.id, "channel": channel},
            )

        return delivered


def _message(channel: str, data: Any) -> dict[str, Any]:
    return {"channel": channel, "data": data}


def _close(subscriber: Subscriber) -> None:
    # Pending snapshots are stale once dropped; leave only the close marker.
    while not subscriber.queue.empty():
        subscriber.queue.get_nowait()
    subscriber.queue.put_nowait(CLOSE)


__all__ = [
    "CHANNELS",
    "CLOSE",
    "FanOut",
    "HELPERS_CHANNEL",
    "Subscriber",
    "TASKS_CHANNEL",
    "VISITS_CHANNEL",
]
