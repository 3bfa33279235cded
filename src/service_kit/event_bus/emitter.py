"""Event emission DSL for services.

Services declare the events they fire with ``emits``. Declarations are static:
they are attached to the class when it is created, inherited by subclasses and
never changed by a call.

## Declaring emissions

```python
from service_kit import Service, emits


@emits("user_created", on="success", with_="user_payload")
@emits("user_failed", on="failure")
class CreateUserService(Service):
    def __init__(self, email: str):
        self.email = email

    def call(self):
        return self.success({"user_id": 1, "email": self.email})

    def user_payload(self, response):
        return {"user_id": response.data["user_id"]}
```

Stacked decorators keep their top-to-bottom order. The class method form
(``CreateUserService.emits("user_created", on="success")``) appends after
everything declared so far.

## Payloads

- ``with_`` naming a method: ``instance.<method>(response)``
- ``with_`` being a callable: ``with_(response)``
- nothing: ``response.data`` on success, ``response.error`` otherwise

## Triggers

- ``success`` / ``failure``: fired after the result passed validation
- ``error!``: fired by ``Service.error()`` right before the error is raised
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Any, ClassVar

from loguru import logger

from service_kit.response import Response

from .bus import get_event_bus
from .core import EventName, normalize_event_name

PayloadBuilder = str | Callable[[Response], Any] | None


class Trigger(StrEnum):
    """When a declared event fires."""

    SUCCESS = "success"
    FAILURE = "failure"
    EXPLICIT_ERROR = "error!"


def parse_trigger(on: "Trigger | str") -> Trigger:
    """Validate a trigger value.

    Raises:
        ValueError: If ``on`` is not one of success, failure or error!
    """
    try:
        return Trigger(on)
    except ValueError:
        valid = ", ".join(t.value for t in Trigger)
        raise ValueError(f"Invalid trigger: {on}. Must be one of: {valid}") from None


@dataclass(frozen=True)
class Emission:
    """One declared emission: an event name plus its payload strategy."""

    event_name: str
    payload_builder: PayloadBuilder = None


def _empty_emissions() -> dict[Trigger, tuple[Emission, ...]]:
    return {trigger: () for trigger in Trigger}


class EmitsMixin:
    """Adds the ``emits`` DSL and the emission runtime to a class."""

    _event_emissions: ClassVar[dict[Trigger, tuple[Emission, ...]]] = _empty_emissions()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # Copy so subclass declarations never leak into the parent
        cls._event_emissions = dict(cls._event_emissions)

    @classmethod
    def emits(cls, event_name: EventName, on: Trigger | str, with_: PayloadBuilder = None) -> None:
        """Declare an event fired when the service ends with ``on``.

        Args:
            event_name: Event to emit
            on: ``"success"``, ``"failure"`` or ``"error!"``
            with_: Payload builder (method name or callable receiving the Response)

        Raises:
            ValueError: On an unknown trigger
        """
        cls._add_emission(parse_trigger(on), Emission(normalize_event_name(event_name), with_), prepend=False)

    @classmethod
    def _add_emission(cls, trigger: Trigger, emission: Emission, prepend: bool) -> None:
        if prepend:
            # Own declarations start after the inherited ones
            inherited = _inherited_count(cls, trigger)
            current = cls._event_emissions[trigger]
            cls._event_emissions[trigger] = current[:inherited] + (emission,) + current[inherited:]
        else:
            cls._event_emissions[trigger] = cls._event_emissions[trigger] + (emission,)
        logger.trace(f"{cls.__name__} emits '{emission.event_name}' on {trigger.value}")

    @classmethod
    def event_emissions(cls) -> MappingProxyType[Trigger, tuple[Emission, ...]]:
        """Return every declared emission grouped by trigger."""
        return MappingProxyType(cls._event_emissions)

    @classmethod
    def emissions_for(cls, trigger: Trigger | str) -> tuple[Emission, ...]:
        """Return the emissions declared for one trigger."""
        return cls._event_emissions.get(Trigger(trigger), ())

    @classmethod
    def emitted_event_names(cls) -> set[str]:
        """Return the names of every event this class may emit."""
        return {emission.event_name for emissions in cls._event_emissions.values() for emission in emissions}

    def emit_events_for(self, trigger: Trigger, response: Response) -> None:
        """Emit every event declared for ``trigger``, in declaration order."""
        bus = get_event_bus()
        for emission in self.emissions_for(trigger):
            payload = self.build_event_payload(emission, response)
            bus.emit(emission.event_name, payload)

    def emit_result_events(self, response: Response) -> None:
        """Emit the success or failure events matching ``response``."""
        self.emit_events_for(Trigger.SUCCESS if response.success else Trigger.FAILURE, response)

    def build_event_payload(self, emission: Emission, response: Response) -> Any:
        """Compute the payload of one emission."""
        builder = emission.payload_builder
        if isinstance(builder, str):
            return getattr(self, builder)(response)
        if callable(builder):
            return builder(response)
        if response.success:
            return response.data
        return response.error


def _inherited_count(cls: type, trigger: Trigger) -> int:
    for base in cls.__mro__[1:]:
        emissions = base.__dict__.get("_event_emissions")
        if emissions is not None:
            return len(emissions[trigger])
    return 0


def emits(event_name: EventName, on: Trigger | str, with_: PayloadBuilder = None):
    """Class decorator form of :meth:`EmitsMixin.emits`.

    Example:
        ```python
        @emits("user_created", on="success")
        class CreateUserService(Service): ...
        ```
    """
    trigger = parse_trigger(on)
    emission = Emission(normalize_event_name(event_name), with_)

    def decorator(cls):
        if not (isinstance(cls, type) and issubclass(cls, EmitsMixin)):
            raise TypeError(f"@emits can only decorate service classes, got: {cls!r}")
        cls._add_emission(trigger, emission, prepend=True)
        return cls

    return decorator


__all__ = ["Emission", "EmitsMixin", "PayloadBuilder", "Trigger", "emits", "parse_trigger"]
