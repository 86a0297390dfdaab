"""
Homesite – Change notifications between admin and public pages.

A notification only says "group G changed at time T"; receivers always
re-fetch the whole document. Browser tabs on the same machine signal each
other through localStorage (public/scripts/liveUpdates.js); the server
channel below lets other devices follow along over Server-Sent Events.
"""

import asyncio
import json
import logging
import time
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import AsyncIterator, Awaitable, Callable, Iterable, Protocol

from fastapi import Request

logger = logging.getLogger(__name__)

ALL_TOPICS = "*"
HEARTBEAT_SECONDS = 15.0


@dataclass(frozen=True)
class NotificationEvent:
    key: str
    timestamp: int  # milliseconds since epoch, same as Date.now()

    def to_dict(self) -> dict:
        return asdict(self)


Handler = Callable[[NotificationEvent], None]


class NotificationChannel(Protocol):
    def publish(self, topic: str) -> NotificationEvent: ...

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]: ...


class LocalNotificationChannel:
    """In-process pub/sub; handlers run synchronously inside ``publish``."""

    def __init__(self):
        self._subscribers: dict[str, list[Handler]] = defaultdict(list)

    def publish(self, topic: str) -> NotificationEvent:
        event = NotificationEvent(key=topic, timestamp=int(time.time() * 1000))
        handlers = list(self._subscribers.get(topic, ())) + list(self._subscribers.get(ALL_TOPICS, ()))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Notification handler failed for %s", topic)
        logger.debug("Published %s to %d subscriber(s)", topic, len(handlers))
        return event

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        self._subscribers[topic].append(handler)

        def unsubscribe():
            handlers = self._subscribers.get(topic)
            if handlers and handler in handlers:
                handlers.remove(handler)
                if not handlers:
                    del self._subscribers[topic]

        return unsubscribe

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))


def format_sse(event: NotificationEvent) -> str:
    return f"event: {event.key}\ndata: {json.dumps(event.to_dict())}\n\n"


async def event_stream(
    channel: NotificationChannel,
    topics: Iterable[str],
    is_disconnected: Callable[[], Awaitable[bool]],
    heartbeat: float = HEARTBEAT_SECONDS,
) -> AsyncIterator[str]:
    """Yield SSE frames for ``topics`` until the client goes away."""
    queue: asyncio.Queue[NotificationEvent] = asyncio.Queue()
    unsubscribes = [channel.subscribe(topic, queue.put_nowait) for topic in topics]
    try:
        yield ": connected\n\n"
        while not await is_disconnected():
            try:
                event = await asyncio.wait_for(queue.get(), timeout=heartbeat)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield format_sse(event)
    finally:
        for unsubscribe in unsubscribes:
            unsubscribe()


def get_notification_channel(request: Request) -> NotificationChannel:
    return request.app.state.notifications
