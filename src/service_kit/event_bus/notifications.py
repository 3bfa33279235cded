"""In-process instrumentation channel.

A tiny publish/subscribe primitive that the :class:`~service_kit.event_bus.bus.EventBus`
uses to decouple handler registration from dispatch. External observers
(metrics, log shippers, test helpers) can subscribe to the same namespaced
stream without touching the bus internals.

## Quick Start

```python
import re

from service_kit.event_bus.notifications import get_notifier

notifier = get_notifier()
subscription = notifier.subscribe(re.compile(r"^service_kit\\.events\\."), print)
notifier.instrument("service_kit.events.user_created", {"user_id": 1})
notifier.unsubscribe(subscription)
```

Subscribers run synchronously, in subscription order, on the instrumenting
thread. Exceptions raised by a subscriber propagate to the caller of
``instrument``.
"""

import itertools
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import arrow
from loguru import logger


@dataclass(frozen=True)
class Notification:
    """A single instrumented occurrence.

    Attributes:
        name: Namespaced notification name (``service_kit.events.<event>``)
        payload: The payload passed unchanged to every subscriber
        started_at: UTC timestamp taken before the first subscriber runs
        finished_at: UTC timestamp taken after the last subscriber returned
            (None while subscribers are still running)
    """

    name: str
    payload: Any
    started_at: arrow.Arrow
    finished_at: arrow.Arrow | None = None

    @property
    def duration_ms(self) -> float | None:
        """Elapsed time between start and finish in milliseconds."""
        if self.finished_at is None:
            return None
        return (self.finished_at.float_timestamp - self.started_at.float_timestamp) * 1000


Subscriber = Callable[[Notification], Any]


@dataclass(frozen=True)
class Subscription:
    """Handle returned by :meth:`Notifier.subscribe`; pass it back to unsubscribe."""

    id: int
    pattern: str | re.Pattern[str]
    callback: Subscriber = field(compare=False)

    def matches(self, name: str) -> bool:
        if isinstance(self.pattern, re.Pattern):
            return self.pattern.search(name) is not None
        return self.pattern == name


class Notifier:
    """Thread-safe registry of subscriptions keyed by name or regex."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    def subscribe(self, pattern: str | re.Pattern[str], callback: Subscriber) -> Subscription:
        """Subscribe ``callback`` to an exact name or to every name matching a regex."""
        with self._lock:
            subscription = Subscription(next(self._ids), pattern, callback)
            self._subscriptions.append(subscription)
        logger.trace(f"Subscribed #{subscription.id} to {pattern}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a subscription. Returns False when it was not registered."""
        with self._lock:
            try:
                self._subscriptions.remove(subscription)
            except ValueError:
                return False
        logger.trace(f"Unsubscribed #{subscription.id}")
        return True

    def subscriber_count(self, name: str | None = None) -> int:
        """Count subscriptions, optionally only those matching ``name``."""
        with self._lock:
            if name is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions if s.matches(name))

    def instrument(self, name: str, payload: Any) -> Notification:
        """Notify every matching subscriber and return the finished notification."""
        with self._lock:
            listeners = [s for s in self._subscriptions if s.matches(name)]

        notification = Notification(name=name, payload=payload, started_at=arrow.utcnow())
        for subscription in listeners:
            subscription.callback(notification)

        finished = Notification(
            name=name,
            payload=payload,
            started_at=notification.started_at,
            finished_at=arrow.utcnow(),
        )
        logger.trace(f"{name} ({finished.duration_ms:.1f}ms) {len(listeners)} subscriber(s)")
        return finished


@lru_cache
def get_notifier() -> Notifier:
    """Get or create the process-wide Notifier."""
    return Notifier()


__all__ = ["Notification", "Notifier", "Subscriber", "Subscription", "get_notifier"]
