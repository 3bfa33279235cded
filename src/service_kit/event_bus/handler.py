"""Event handlers: map one event to service invocations.

A handler subscribes to exactly one event and declares which services run in
response, how the event payload maps to their keyword arguments, and whether
they run synchronously or through the job queue.

## Declaring a handler

```python
from service_kit import EventHandler, invoke


class UserCreatedHandler(EventHandler, handles="user_created"):
    PAYLOAD_SCHEMA = {
        "type": "object",
        "required": ["user_id"],
        "properties": {"user_id": {"type": "integer"}},
    }

    @invoke(SendWelcomeEmailService, async_=True, queue="mailers")
    def welcome_email(payload):
        return {"user_id": payload["user_id"]}

    @invoke(GrantRewardsService, if_=lambda p: p.get("premium"))
    def rewards(payload):
        return {"user_id": payload["user_id"]}
```

Invocations run in the order they are defined. The class method forms
(``handles``, ``invoke``, ``schema``) do the same thing for classes built
programmatically.

## Emitting

``UserCreatedHandler.emit({"user_id": 1})`` validates the payload against the
handler's payload schema and emits ``user_created`` on the bus. Use it from
places that are not services (controllers, scripts, jobs).
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from loguru import logger

from service_kit.services.registry import get_service_registry
from service_kit.settings import current_settings
from service_kit.validation import SchemaKind, get_schema_validator

from .bus import get_event_bus
from .core import (
    EventEmissionError,
    EventName,
    HandlerRegistrationError,
    OrphanedHandlerError,
    normalize_event_name,
)

Payload = Any
PayloadMapper = Callable[[Payload], Mapping[str, Any]]
Predicate = Callable[[Payload], Any]


@dataclass(frozen=True)
class InvocationOptions:
    """How an invocation runs.

    Attributes:
        async_: Enqueue through ``call_async`` instead of calling inline
        queue: Queue name for async invocations
        if_: Invoke only when this predicate is truthy
        unless: Invoke only when this predicate is falsy
    """

    async_: bool = False
    queue: str | None = None
    if_: Predicate | None = None
    unless: Predicate | None = None

    def allows(self, payload: Payload) -> bool:
        """Evaluate the ``if_``/``unless`` gates against a payload."""
        if self.if_ is not None and not self.if_(payload):
            return False
        if self.unless is not None and self.unless(payload):
            return False
        return True


@dataclass(frozen=True)
class Invocation:
    """A declared service invocation.

    Instances are callable: calling one applies the payload mapper, so an
    ``@invoke``-decorated function stays usable as a plain function.
    """

    service: Any
    mapper: PayloadMapper
    options: InvocationOptions = field(default_factory=InvocationOptions)

    def __call__(self, payload: Payload) -> Mapping[str, Any]:
        return self.mapper(payload)

    def run(self, payload: Payload) -> Any:
        """Map the payload and call the target service."""
        kwargs = dict(self.mapper(payload))
        service_name = getattr(self.service, "__name__", repr(self.service))

        if self.options.async_:
            if self.options.queue is not None:
                kwargs["queue"] = self.options.queue
            logger.debug(f"Enqueuing {service_name} with {kwargs}")
            return self.service.call_async(**kwargs)

        logger.debug(f"Invoking {service_name} with {kwargs}")
        return self.service.call(**kwargs)


def _build_invocation(
    service: Any,
    mapper: PayloadMapper | None,
    async_: bool,
    queue: str | None,
    if_: Predicate | None,
    unless: Predicate | None,
) -> Invocation:
    if mapper is None:
        raise HandlerRegistrationError("A payload mapper is required for every invocation")
    if not callable(mapper):
        raise HandlerRegistrationError(f"Payload mapper must be callable, got: {mapper!r}")
    if not callable(getattr(service, "call", None)):
        raise HandlerRegistrationError(f"Invoked service must expose a callable 'call': {service!r}")
    return Invocation(service, mapper, InvocationOptions(async_=async_, queue=queue, if_=if_, unless=unless))


def invoke(
    service: Any,
    *,
    async_: bool = False,
    queue: str | None = None,
    if_: Predicate | None = None,
    unless: Predicate | None = None,
) -> Callable[[PayloadMapper], Invocation]:
    """Decorate a payload mapper inside a handler body to declare an invocation.

    Example:
        ```python
        class OrderPaidHandler(EventHandler, handles="order_paid"):
            @invoke(ShipOrderService)
            def ship(payload):
                return {"order_id": payload["order_id"]}
        ```
    """

    def decorator(mapper: PayloadMapper) -> Invocation:
        return _build_invocation(service, mapper, async_, queue, if_, unless)

    return decorator


class EventHandler:
    """Base class for event handlers.

    Subclasses subscribe with the ``handles`` class keyword (or the
    ``handles`` class method) and declare invocations with ``@invoke``.
    """

    _event_name: ClassVar[str | None] = None
    _invocations: ClassVar[tuple[Invocation, ...]] = ()
    _declared_schemas: ClassVar[dict[SchemaKind, Any]] = {}

    def __init_subclass__(cls, handles: EventName | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # Each handler owns its subscription; subclasses must declare their own
        cls._event_name = None
        cls._declared_schemas = {}
        cls._invocations = tuple(value for value in cls.__dict__.values() if isinstance(value, Invocation))

        get_service_registry().register_handler(cls)
        if handles is not None:
            cls.handles(handles)

    @classmethod
    def handles(cls, event_name: EventName) -> None:
        """Subscribe this handler to ``event_name`` and register it on the bus.

        Raises:
            HandlerRegistrationError: If the handler already subscribes to an event
        """
        name = normalize_event_name(event_name)
        if cls._event_name is not None:
            raise HandlerRegistrationError(
                f"Handler already subscribed to :{cls._event_name}. Cannot subscribe to :{name}"
            )
        cls._event_name = name
        get_event_bus().register_handler(name, cls)

    @classmethod
    def event_name(cls) -> str | None:
        """Return the event this handler subscribes to, if any."""
        return cls._event_name

    @classmethod
    def invoke(
        cls,
        service: Any,
        mapper: PayloadMapper | None = None,
        *,
        async_: bool = False,
        queue: str | None = None,
        if_: Predicate | None = None,
        unless: Predicate | None = None,
    ) -> Invocation:
        """Append an invocation to this handler.

        Raises:
            HandlerRegistrationError: If ``mapper`` is missing
        """
        invocation = _build_invocation(service, mapper, async_, queue, if_, unless)
        cls._invocations = cls._invocations + (invocation,)
        return invocation

    @classmethod
    def invocations(cls) -> tuple[Invocation, ...]:
        """Return the declared invocations in declaration order."""
        return cls._invocations

    @classmethod
    def schema(cls, payload: Mapping[str, Any] | None = None) -> None:
        """Declare the JSON schema used to validate payloads passed to ``emit``."""
        if payload is None:
            cls._declared_schemas.pop(SchemaKind.PAYLOAD, None)
        else:
            cls._declared_schemas[SchemaKind.PAYLOAD] = payload

    @classmethod
    def declared_schemas(cls) -> dict[SchemaKind, Any]:
        return dict(cls._declared_schemas)

    @classmethod
    def payload_schema(cls) -> dict[str, Any] | None:
        """Return the resolved payload schema, if any."""
        return get_schema_validator().load_schema(cls, SchemaKind.PAYLOAD)

    @classmethod
    def emit(cls, payload: Payload) -> None:
        """Validate ``payload`` and emit this handler's event.

        Raises:
            EventEmissionError: If no event was configured with ``handles``
            ValidationError: If the payload violates the payload schema
        """
        if cls._event_name is None:
            raise EventEmissionError("No event configured. Call handles(event_name) first.")

        get_schema_validator().validate_event_payload(cls, payload)
        get_event_bus().emit(cls._event_name, payload)

    @classmethod
    def handle(cls, payload: Payload) -> list[Any]:
        """Run every invocation whose gates pass, in declaration order.

        Returns:
            Results of the invocations that ran (Responses for synchronous
            calls, enqueue acknowledgements for async ones)
        """
        results = []
        for invocation in cls._invocations:
            if not invocation.options.allows(payload):
                logger.trace(f"{cls.__name__}: skipped {invocation.service!r}")
                continue
            result = invocation.run(payload)
            if result is not None:
                results.append(result)
        return results

    @classmethod
    def validate_all_handlers(cls) -> None:
        """Fail when a handler subscribes to an event no service emits.

        Skipped entirely when ``strict_event_validation`` is disabled.

        Raises:
            OrphanedHandlerError: Listing every orphaned handler and its event
        """
        validate_all_handlers()


def find_orphaned_handlers() -> list[tuple[str, str]]:
    """Return ``(handler name, event name)`` pairs whose event nobody emits."""
    registry = get_service_registry()
    emitted: set[str] = set()
    for events in registry.emitted_events_by_service().values():
        emitted.update(events)

    orphaned = []
    for handler in registry.handlers():
        event_name = handler.event_name()
        if event_name is not None and event_name not in emitted:
            orphaned.append((handler.__qualname__, event_name))
    return orphaned


def validate_all_handlers() -> None:
    """Module-level form of :meth:`EventHandler.validate_all_handlers`."""
    if not current_settings().strict_event_validation:
        logger.debug("Strict event validation disabled, skipping orphaned handler check")
        return

    orphaned = find_orphaned_handlers()
    if not orphaned:
        logger.debug("All event handlers subscribe to emitted events")
        return

    lines = "\n".join(f"  - {handler} subscribes to :{event}" for handler, event in orphaned)
    raise OrphanedHandlerError(f"Handler(s) subscribe to non-existent events:\n{lines}")


__all__ = [
    "EventHandler",
    "Invocation",
    "InvocationOptions",
    "find_orphaned_handlers",
    "invoke",
    "validate_all_handlers",
]
