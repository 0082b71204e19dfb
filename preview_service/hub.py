"""
Notification hub for live-reload event streams.

Keeps the registry of open Server-Sent Events channels and fans out change
events to all of them. All methods run on the event loop thread; the file
watcher marshals its callbacks onto the loop before calling broadcast(), so
the registry needs no locking.

Each subscriber is backed by a bounded asyncio.Queue. The SSE response
generator drains the queue; broadcast() only enqueues, so delivery to every
subscriber happens synchronously within a single broadcast call.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from .errors import BroadcastWriteError

logger = logging.getLogger(__name__)

EVENT_CONNECTED = "connected"
EVENT_UPDATE = "update"

DEFAULT_QUEUE_SIZE = 100


class SubscriberClosed(Exception):
    """Write attempted on a subscriber whose connection has closed."""


def format_event(event_type: str) -> str:
    """Serialize an event as compact JSON, e.g. {"type":"update"}."""
    return json.dumps({"type": event_type}, separators=(",", ":"))


@dataclass(eq=False)
class Subscriber:
    """One open event-stream channel."""

    subscriber_id: str
    queue_size: int = DEFAULT_QUEUE_SIZE
    closed: bool = False
    messages_sent: int = 0
    queue: "asyncio.Queue[Optional[str]]" = field(init=False)

    def __post_init__(self):
        # One extra slot is reserved for the close sentinel
        self.queue = asyncio.Queue(maxsize=self.queue_size + 1)

    def send(self, message: str) -> None:
        """
        Enqueue a message for delivery.

        Raises:
            SubscriberClosed: The channel has already closed
            BroadcastWriteError: The client is not draining its queue
        """
        if self.closed:
            raise SubscriberClosed(self.subscriber_id)
        if self.queue.qsize() >= self.queue_size:
            raise BroadcastWriteError(
                self.subscriber_id,
                f"message queue full ({self.queue_size} pending)"
            )
        self.queue.put_nowait(message)
        self.messages_sent += 1

    def close(self) -> None:
        """Mark closed and wake the stream reader so it can finish."""
        if self.closed:
            return
        self.closed = True
        try:
            self.queue.put_nowait(None)
        except asyncio.QueueFull:
            logger.debug(f"[{self.subscriber_id}] Queue full on close, reader sees closed flag")

    async def next_message(self) -> Optional[str]:
        """Wait for the next message; None once the channel is closed."""
        if self.closed and self.queue.empty():
            return None
        return await self.queue.get()


class NotificationHub:
    """
    Registry of connected event-stream subscribers.

    Provides:
    - register/unregister of subscriber channels
    - best-effort broadcast of a single event type to every channel
    - close_all() for server shutdown
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: Dict[str, Subscriber] = {}
        self._counter = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def __contains__(self, subscriber: Subscriber) -> bool:
        return self._subscribers.get(subscriber.subscriber_id) is subscriber

    def create_subscriber(self) -> Subscriber:
        self._counter += 1
        return Subscriber(f"sub_{self._counter}", queue_size=self.queue_size)

    def register(self, subscriber: Optional[Subscriber] = None) -> Subscriber:
        """
        Add a channel to the broadcast set and greet it.

        The "connected" message is delivered to the new channel only.

        Args:
            subscriber: Existing channel, or None to create a new one

        Returns:
            The registered subscriber
        """
        if subscriber is None:
            subscriber = self.create_subscriber()

        subscriber.send(format_event(EVENT_CONNECTED))
        self._subscribers[subscriber.subscriber_id] = subscriber

        logger.info(
            f"[{subscriber.subscriber_id}] Client connected. "
            f"Total clients: {self.subscriber_count}"
        )
        return subscriber

    def unregister(self, subscriber: Subscriber) -> None:
        """Remove a channel and mark it closed. Safe to call twice."""
        removed = self._subscribers.pop(subscriber.subscriber_id, None)
        subscriber.close()
        if removed is not None:
            logger.info(
                f"[{subscriber.subscriber_id}] Client disconnected after "
                f"{subscriber.messages_sent} message(s). "
                f"Total clients: {self.subscriber_count}"
            )

    def broadcast(self, event_type: str = EVENT_UPDATE) -> int:
        """
        Write {"type": event_type} to every registered channel.

        Iterates over a snapshot of the registry so channels unregistering
        mid-broadcast cannot disturb the traversal. A closed channel is
        unregistered; any other write failure is logged and skipped.

        Returns:
            Number of channels the message was written to
        """
        snapshot = list(self._subscribers.values())
        if not snapshot:
            logger.debug(f"No clients to notify of {event_type}")
            return 0

        logger.info(f"Notifying {len(snapshot)} client(s) of {event_type}")
        message = format_event(event_type)
        delivered = 0

        for subscriber in snapshot:
            try:
                subscriber.send(message)
                delivered += 1
            except SubscriberClosed:
                self.unregister(subscriber)
            except BroadcastWriteError as e:
                logger.warning(f"Failed to notify client: {e}")

        return delivered

    def close_all(self) -> None:
        """Close every channel so open event streams terminate."""
        for subscriber in list(self._subscribers.values()):
            self.unregister(subscriber)
