"""In-process change notifications for comment lists.

Subscribers watch one scope, a `(entity_type, entity_id)` pair such as
`("poll", "<id>")`, and receive a `ChangeEvent` whenever a comment under
that scope is inserted or deleted. Events carry no row data; consumers
refetch the full list, so the last refetch wins.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Literal

from vibesphere.db.time import utcnow

logger = logging.getLogger(__name__)

ChangeKind = Literal["INSERT", "DELETE"]
Scope = tuple[str, str]


@dataclass(frozen=True)
class ChangeEvent:
    """A change on the `comments` table within one scope."""

    table: str
    kind: ChangeKind
    scope: Scope
    row_id: str | None = None
    at: str = field(default_factory=lambda: utcnow().isoformat())


class Subscription:
    """Async iterator over the change events of one scope.

    The sequence is lazy and unbounded; it ends only when `close()` is
    called. Subscribing again after closing starts a fresh sequence.
    """

    def __init__(self, feed: ChangeFeed, scope: Scope) -> None:
        self.scope = scope
        self._feed = feed
        self._queue: asyncio.Queue[ChangeEvent | None] = asyncio.Queue()
        self._loop = asyncio.get_running_loop()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, event: ChangeEvent | None) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._queue.put_nowait(event)
        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    def close(self) -> None:
        """Unsubscribe and wake any pending consumer."""
        if self._closed:
            return
        self._closed = True
        self._feed._remove(self)
        self._deliver(None)

    def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is None:
            raise StopAsyncIteration
        return event

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class ChangeFeed:
    """Fan-out hub routing published events to scope subscribers."""

    def __init__(self) -> None:
        self._subscribers: dict[Scope, set[Subscription]] = defaultdict(set)
        self._lock = threading.Lock()

    def subscribe(self, entity_type: str, entity_id: str) -> Subscription:
        """Open a subscription; must be called from within a running event loop."""
        subscription = Subscription(self, (entity_type, entity_id))
        with self._lock:
            self._subscribers[subscription.scope].add(subscription)
        logger.debug("Subscribed to %s:%s", entity_type, entity_id)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.scope)
            if subscribers is None:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[subscription.scope]

    def subscriber_count(self, entity_type: str, entity_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get((entity_type, entity_id), ()))

    def publish(self, event: ChangeEvent) -> int:
        """Deliver an event to every subscriber of its scope.

        Returns:
            Number of subscriptions the event was delivered to.
        """
        with self._lock:
            targets = list(self._subscribers.get(event.scope, ()))
        for subscription in targets:
            subscription._deliver(event)
        return len(targets)

    def publish_comment_change(
        self,
        kind: ChangeKind,
        *,
        post_id: str | None = None,
        poll_id: str | None = None,
        comment_id: str | None = None,
    ) -> None:
        """Publish a comment change to the post or poll scope it belongs to."""
        if post_id is not None:
            self.publish(ChangeEvent("comments", kind, ("post", post_id), comment_id))
        if poll_id is not None:
            self.publish(ChangeEvent("comments", kind, ("poll", poll_id), comment_id))


class _ChangeFeedSingleton:
    _instance: ChangeFeed | None = None

    @classmethod
    def get_instance(cls) -> ChangeFeed:
        if cls._instance is None:
            cls._instance = ChangeFeed()
        return cls._instance


def get_change_feed() -> ChangeFeed:
    """Return the process-wide change feed."""
    return _ChangeFeedSingleton.get_instance()
