"""Core Event Bus Components.

This module contains the fundamental abstractions shared by the bus, the
service emitter and event handlers.

## Key Components

- **EventName**: accepted event identifiers (``str`` or ``Enum`` members)
- **EventBusError**: Base exception for all event bus related errors
- **HandlerRegistrationError**: Raised when handler registration or declaration fails
- **EventEmissionError**: Raised when an event cannot be emitted
- **OrphanedHandlerError**: Raised when handlers subscribe to events no service emits

"""

from enum import Enum
from typing import Any, Protocol, runtime_checkable

EventName = str | Enum


def normalize_event_name(event_name: EventName) -> str:
    """Return the canonical string form of an event name.

    Example:
        >>> normalize_event_name("user_created")
        'user_created'
    """
    if isinstance(event_name, Enum):
        event_name = event_name.value
    if not isinstance(event_name, str) or not event_name:
        raise HandlerRegistrationError(f"Event name must be a non-empty string, got: {event_name!r}")
    return event_name


@runtime_checkable
class SupportsHandle(Protocol):
    """Anything the bus can dispatch to: exposes ``handle(payload)``."""

    def handle(self, payload: Any) -> Any: ...


class EventBusError(Exception):
    """Base exception for all event bus related errors.

    This is the root of the event bus exception hierarchy. All specific
    event bus exceptions inherit from this class.

    Use this for catching any event bus related error:
        ```python
        try:
            UserCreatedHandler.emit({"user_id": 1})
        except EventBusError as e:
            logger.error(f"Event bus error: {e}")
        ```
    """


class HandlerRegistrationError(EventBusError):
    """Raised when handler registration fails.

    This occurs when:
    - The handler does not expose a callable ``handle``
    - A handler class calls ``handles`` a second time
    - An invocation is declared without a payload mapper
    """


class EventEmissionError(EventBusError):
    """Raised when event emission fails.

    This occurs when:
    - A handler class emits before declaring its event with ``handles``
    """


class OrphanedHandlerError(EventBusError):
    """Raised when an event handler subscribes to an event that no service emits.

    This helps catch typos in event names and handlers left behind after a
    service stopped emitting an event.
    """
