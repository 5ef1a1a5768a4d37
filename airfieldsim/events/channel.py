"""Synchronous publish/subscribe channel shared by all orchestration components.

Delivery happens on the publishing call, in subscription order. A handler that
publishes again is served depth-first before the outer publish returns; the
nesting depth is bounded so a feedback loop between handlers cannot recurse
forever. Handler failures are logged and never reach the publisher or the
remaining handlers.

Example:
    >>> channel = EventChannel()
    >>> seen = []
    >>> unsubscribe = channel.subscribe("taxi.state.changed", seen.append)
    >>> channel.publish("taxi.state.changed", {"vehicle_id": "c1"})
    1
    >>> unsubscribe()
    >>> channel.publish("taxi.state.changed", {"vehicle_id": "c1"})
    0
"""

from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
import logging
import time
from typing import Any

from .topics import Event

logger = logging.getLogger(__name__)

WILDCARD = "*"
DEFAULT_HISTORY_SIZE = 1000
DEFAULT_MAX_DEPTH = 32

Handler = Callable[[Any], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class EventRecord:
    """One entry of the channel history."""

    topic: str
    payload: Any
    timestamp: float


class _Subscription:
    __slots__ = ("handler", "once", "active")

    def __init__(self, handler: Handler, once: bool) -> None:
        self.handler = handler
        self.once = once
        self.active = True


class EventChannel:
    """Topic based event bus with bounded history.

    Handlers registered for a topic receive the published payload. Handlers
    registered for ``"*"`` receive the :class:`EventRecord` of every publish.

    Attributes:
        enabled: When False, ``publish`` records nothing and delivers nothing.
    """

    def __init__(
        self,
        history_size: int = DEFAULT_HISTORY_SIZE,
        max_depth: int = DEFAULT_MAX_DEPTH,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._subscribers: dict[str, list[_Subscription]] = defaultdict(list)
        self._history: deque[EventRecord] = deque(maxlen=history_size)
        self._max_depth = max_depth
        self._depth = 0
        self._clock = clock
        self._dropped = 0
        self.enabled = True

    def subscribe(self, topic: str, handler: Handler) -> Unsubscribe:
        """Register ``handler`` for ``topic`` and return a function undoing it."""
        return self._add(topic, _Subscription(handler, once=False))

    def subscribe_once(self, topic: str, handler: Handler) -> Unsubscribe:
        """Register ``handler`` for the next publish on ``topic`` only."""
        return self._add(topic, _Subscription(handler, once=True))

    def _add(self, topic: str, subscription: _Subscription) -> Unsubscribe:
        self._subscribers[topic].append(subscription)
        logger.debug("Subscribed to %s", topic)

        def unsubscribe() -> None:
            self._discard(topic, subscription)

        return unsubscribe

    def _discard(self, topic: str, subscription: _Subscription) -> None:
        subscriptions = self._subscribers.get(topic)
        if not subscriptions:
            return
        subscription.active = False
        try:
            subscriptions.remove(subscription)
        except ValueError:
            return
        if not subscriptions:
            del self._subscribers[topic]

    def unsubscribe(self, topic: str, handler: Handler) -> bool:
        """Remove the first registration of ``handler`` for ``topic``."""
        for subscription in self._subscribers.get(topic, ()):
            if subscription.handler == handler:
                self._discard(topic, subscription)
                return True
        return False

    def unsubscribe_all(self, topic: str | None = None) -> None:
        """Drop every handler of ``topic``, or of all topics when omitted."""
        topics = list(self._subscribers) if topic is None else [topic]
        for name in topics:
            for subscription in self._subscribers.pop(name, ()):
                subscription.active = False

    def publish(self, topic: str, payload: Any = None) -> int:
        """Deliver ``payload`` to the subscribers of ``topic``.

        Returns:
            int: Number of handlers invoked (wildcard handlers included).
        """
        if not self.enabled:
            return 0

        if self._depth >= self._max_depth:
            self._dropped += 1
            logger.error("Dropping %s: publish nesting exceeded %d levels", topic, self._max_depth)
            return 0

        record = EventRecord(topic, payload, self._clock())
        self._history.append(record)

        # Snapshot so handlers may (un)subscribe while we deliver.
        targets = [(topic, s, payload) for s in self._subscribers.get(topic, ())]
        if topic != WILDCARD:
            targets.extend((WILDCARD, s, record) for s in self._subscribers.get(WILDCARD, ()))

        delivered = 0
        self._depth += 1
        try:
            for registered_topic, subscription, argument in targets:
                # Removed by an earlier handler of this publish.
                if not subscription.active:
                    continue
                if subscription.once:
                    self._discard(registered_topic, subscription)
                delivered += 1
                try:
                    subscription.handler(argument)
                except Exception:
                    logger.exception("Handler error for %s", topic)
        finally:
            self._depth -= 1

        return delivered

    def emit(self, event: Event) -> int:
        """Publish a typed payload under its own ``TOPIC``."""
        return self.publish(event.TOPIC, event)

    def history(self, topic: str | None = None, limit: int | None = None) -> list[EventRecord]:
        records = [r for r in self._history if topic is None or r.topic == topic]
        if limit is not None:
            records = records[-limit:] if limit > 0 else []
        return records

    def listener_count(self, topic: str | None = None) -> int:
        if topic is None:
            return sum(len(s) for s in self._subscribers.values())
        return len(self._subscribers.get(topic, ()))

    def clear(self) -> None:
        """Remove all subscribers and forget the history."""
        self.unsubscribe_all()
        self._history.clear()

    def debug_info(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "topics": sorted(self._subscribers),
            "listener_count": self.listener_count(),
            "history_size": len(self._history),
            "dropped": self._dropped,
        }
