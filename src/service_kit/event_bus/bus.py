"""Event Bus Implementation.

This module provides the main EventBus class that maps event names to
handler classes and dispatches emitted events to them. Dispatch goes through
the instrumentation channel in ``notifications.py``: every registration opens
a subscription on ``service_kit.events.<event_name>`` and every emission is
instrumented under that name, so observers get timing information for free.

## Key Features

- **Synchronous Dispatch**: Handlers run on the emitting thread, in registration order
- **Multiple Subscribers**: Any number of handlers per event (no deduplication)
- **Failure Propagation**: A failing handler raises into the emitter's call stack
- **Clean Teardown**: ``clear()`` releases every subscription (dev reload, tests)
- **Thread Safety**: Registration and teardown are guarded by a lock
- **Singleton Pattern**: Global instance via @lru_cache

## Usage

```python
from service_kit.event_bus import get_event_bus


class AuditTrail:
    @classmethod
    def handle(cls, payload):
        print(f"audit: {payload}")


bus = get_event_bus()
bus.register_handler("user_created", AuditTrail)
bus.emit("user_created", {"user_id": 123})
```

"""

import threading
from functools import lru_cache
from typing import Any

from loguru import logger

from service_kit.constants import EVENT_NAMESPACE

from .core import EventName, HandlerRegistrationError, SupportsHandle, normalize_event_name
from .notifications import Notification, Notifier, Subscription, get_notifier


def notification_name(event_name: EventName) -> str:
    """Return the namespaced notification name for an event."""
    return f"{EVENT_NAMESPACE}.{normalize_event_name(event_name)}"


class EventBus:
    """Registry of event handlers plus synchronous dispatcher.

    Example:
        ```python
        bus = get_event_bus()
        bus.register_handler("user_created", UserCreatedHandler)
        bus.emit("user_created", {"user_id": 1})
        ```
    """

    def __init__(self, notifier: Notifier | None = None) -> None:
        """Initialize a new EventBus instance.

        Args:
            notifier: Instrumentation channel to dispatch through. Defaults to
                the process-wide notifier.
        """
        self._notifier = notifier or get_notifier()
        self._handlers: dict[str, list[Any]] = {}
        self._subscriptions: dict[str, list[Subscription]] = {}
        self._lock = threading.RLock()
        logger.debug("EventBus initialized")

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    def register_handler(self, event_name: EventName, handler: SupportsHandle) -> None:
        """Register a handler for an event.

        The same handler may be registered more than once; it is then
        dispatched once per registration.

        Args:
            event_name: Name of the event
            handler: Handler class (or object) exposing ``handle(payload)``

        Raises:
            HandlerRegistrationError: If the handler exposes no callable ``handle``
        """
        name = normalize_event_name(event_name)
        if not callable(getattr(handler, "handle", None)):
            raise HandlerRegistrationError(f"Handler must expose a callable 'handle': {handler!r}")

        def dispatch(notification: Notification) -> Any:
            return handler.handle(notification.payload)

        with self._lock:
            registered = self._handlers.setdefault(name, [])
            if handler in registered:
                logger.debug(f"Handler {_label(handler)} registered again for '{name}'")
            registered.append(handler)
            subscription = self._notifier.subscribe(notification_name(name), dispatch)
            self._subscriptions.setdefault(name, []).append(subscription)

        logger.debug(f"Registered handler for '{name}': {_label(handler)}")

    def handlers_for(self, event_name: EventName) -> list[Any]:
        """Return a copy of the handlers registered for an event."""
        name = normalize_event_name(event_name)
        with self._lock:
            return list(self._handlers.get(name, []))

    def get_handler_count(self, event_name: EventName) -> int:
        """Get the number of handlers registered for an event."""
        return len(self.handlers_for(event_name))

    def get_registered_events(self) -> list[str]:
        """Get all event names that have registered handlers."""
        with self._lock:
            return [name for name, handlers in self._handlers.items() if handlers]

    def emit(self, event_name: EventName, payload: Any) -> Notification:
        """Emit an event to every registered handler.

        Handlers run synchronously, in registration order, and receive the
        payload unchanged. Emitting an event nobody handles is a no-op.
        Exceptions raised by a handler are not caught.

        Args:
            event_name: Name of the event to emit
            payload: Event payload

        Returns:
            The finished instrumentation record (name, payload, timing)
        """
        name = normalize_event_name(event_name)
        logger.debug(f"Emitting '{name}' to {self.get_handler_count(name)} handler(s)")
        return self._notifier.instrument(notification_name(name), payload)

    def remove_handler(self, event_name: EventName, handler: Any) -> bool:
        """Remove the most recent registration of ``handler`` for an event."""
        name = normalize_event_name(event_name)
        with self._lock:
            registered = self._handlers.get(name, [])
            for index in range(len(registered) - 1, -1, -1):
                if registered[index] is handler:
                    del registered[index]
                    self._notifier.unsubscribe(self._subscriptions[name].pop(index))
                    logger.debug(f"Removed handler for '{name}': {_label(handler)}")
                    return True
        return False

    def clear_handlers(self, event_name: EventName | None = None) -> None:
        """Clear handlers for a specific event or all events."""
        if event_name is None:
            self.clear()
            return

        name = normalize_event_name(event_name)
        with self._lock:
            for subscription in self._subscriptions.pop(name, []):
                self._notifier.unsubscribe(subscription)
            self._handlers.pop(name, None)
        logger.debug(f"Cleared handlers for '{name}'")

    def clear(self) -> None:
        """Remove every registration and release the underlying subscriptions."""
        with self._lock:
            for subscriptions in self._subscriptions.values():
                for subscription in subscriptions:
                    self._notifier.unsubscribe(subscription)
            self._subscriptions.clear()
            self._handlers.clear()
        logger.debug("Cleared all handlers")


def _label(handler: Any) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


@lru_cache
def get_event_bus() -> EventBus:
    """Get or create the singleton EventBus instance.

    Example:
        ```python
        bus = get_event_bus()
        bus.register_handler("user_created", UserCreatedHandler)
        bus.emit("user_created", {"user_id": 1})
        ```
    """
    return EventBus()


__all__ = ["EventBus", "get_event_bus", "notification_name"]
