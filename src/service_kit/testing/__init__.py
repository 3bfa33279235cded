"""Test helpers for applications built on service_kit.

```python
from service_kit.testing import assert_event_emitted, capture_events


def test_create_user_emits_event():
    with capture_events() as events:
        CreateUserService.call(email="user@example.com")

    assert_event_emitted(events, "user_created", payload={"user_id": 1, "email": "user@example.com"})
```

``InMemoryQueueAdapter`` records ``call_async`` jobs instead of running them.
``arguments_example`` and ``result_example`` build fixtures from the
``example``/``examples`` keywords of a service's schemas.
"""

import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from service_kit.constants import EVENT_NAMESPACE
from service_kit.event_bus.core import EventName, normalize_event_name
from service_kit.event_bus.notifications import Notification, get_notifier
from service_kit.jobs.adapters import InMemoryQueueAdapter

from .examples import ExampleExtractor, arguments_example, deep_merge, result_example

_EVENT_PATTERN = re.compile(rf"^{re.escape(EVENT_NAMESPACE)}\.")


@dataclass(frozen=True)
class CapturedEvent:
    """An event observed by :func:`capture_events`."""

    name: str
    payload: Any


@contextmanager
def capture_events() -> Iterator[list[CapturedEvent]]:
    """Collect every event emitted on the bus while the block runs."""
    captured: list[CapturedEvent] = []

    def record(notification: Notification) -> None:
        captured.append(CapturedEvent(_EVENT_PATTERN.sub("", notification.name, count=1), notification.payload))

    notifier = get_notifier()
    subscription = notifier.subscribe(_EVENT_PATTERN, record)
    try:
        yield captured
    finally:
        notifier.unsubscribe(subscription)


_MISSING = object()


def assert_event_emitted(captured: list[CapturedEvent], event_name: EventName, payload: Any = _MISSING) -> CapturedEvent:
    """Assert that ``event_name`` was captured (with ``payload``, when given).

    Returns:
        The first matching captured event

    Raises:
        AssertionError: Listing the captured event names when nothing matches
    """
    name = normalize_event_name(event_name)
    candidates = [event for event in captured if event.name == name]
    emitted = [event.name for event in captured]

    if not candidates:
        raise AssertionError(f"Expected event '{name}' to be emitted, emitted: {emitted}")
    if payload is _MISSING:
        return candidates[0]

    for event in candidates:
        if event.payload == payload:
            return event
    payloads = [event.payload for event in candidates]
    raise AssertionError(f"Event '{name}' was emitted with {payloads}, expected payload {payload!r}")


__all__ = [
    "CapturedEvent",
    "ExampleExtractor",
    "InMemoryQueueAdapter",
    "arguments_example",
    "assert_event_emitted",
    "capture_events",
    "deep_merge",
    "result_example",
]
