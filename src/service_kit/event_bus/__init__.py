"""Event Bus System for Decoupled Service Communication.

Services announce what happened by emitting named events; handlers react by
invoking other services. Neither side knows about the other:

- **Named Events**: Events are plain names (strings or enums) with any payload
- **Declarative Emission**: Services declare ``@emits(...)`` per outcome
- **Declarative Handlers**: ``EventHandler`` subclasses map payloads to service calls
- **Instrumented Dispatch**: Every emission is timed and observable
- **Singleton Pattern**: Global event bus instance via @lru_cache

## Quick Start

```python
from service_kit import EventHandler, Service, emits, invoke


@emits("user_created", on="success")
class CreateUserService(Service):
    def __init__(self, email: str):
        self.email = email

    def call(self):
        return self.success({"user_id": 1, "email": self.email})


class UserCreatedHandler(EventHandler, handles="user_created"):
    @invoke(SendWelcomeEmailService, async_=True)
    def welcome(payload):
        return {"user_id": payload["user_id"]}


CreateUserService.call(email="user@example.com")
```

For the dispatch core, see `bus.py`. For the service side, see `emitter.py`;
for the handler side, `handler.py`.
"""

from .bus import EventBus, get_event_bus, notification_name
from .core import (
    EventBusError,
    EventEmissionError,
    EventName,
    HandlerRegistrationError,
    OrphanedHandlerError,
    normalize_event_name,
)
from .notifications import Notification, Notifier, Subscription, get_notifier
from .emitter import Emission, EmitsMixin, Trigger, emits
from .handler import EventHandler, Invocation, InvocationOptions, find_orphaned_handlers, invoke, validate_all_handlers

__all__ = [
    "Emission",
    "EmitsMixin",
    "EventBus",
    "EventBusError",
    "EventEmissionError",
    "EventHandler",
    "EventName",
    "HandlerRegistrationError",
    "Invocation",
    "InvocationOptions",
    "Notification",
    "Notifier",
    "OrphanedHandlerError",
    "Subscription",
    "Trigger",
    "emits",
    "find_orphaned_handlers",
    "get_event_bus",
    "get_notifier",
    "invoke",
    "normalize_event_name",
    "notification_name",
    "validate_all_handlers",
]
