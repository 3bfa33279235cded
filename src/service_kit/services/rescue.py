"""Declarative exception rescue for services.

``rescue_from`` turns selected exceptions raised by a service's ``call`` into
failure responses, so the service body does not need its own try/except blocks.
Configurations are checked in declaration order; the first one listing a
matching exception class wins.

## Usage

```python
@rescue_from(TimeoutError, ConnectionError, use=ServiceUnavailableError)
@rescue_from(KeyError, handler=lambda ctx, exc: ctx.failure(f"Missing key: {exc}", error_type=NotFoundError))
class FetchProfileService(Service):
    def call(self):
        ...
```

Without a handler the failure wraps the exception as
``use("[<ExceptionClass>]: <message>")``. A handler receives a
:class:`RescueContext` and the exception; it may answer with ``ctx.success()``
or ``ctx.failure()`` (or return a Response). A handler that produces nothing
lets the original exception propagate.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from service_kit.exceptions import ServiceError
from service_kit.response import Response

RescueHandler = Callable[["RescueContext", BaseException], Any]


class RescueContext:
    """Gives rescue handlers the ``success``/``failure`` helpers of a service."""

    def __init__(self) -> None:
        self.result: Response | None = None

    def success(self, data: Any = None) -> Response:
        self.result = Response(success=True, data=data)
        return self.result

    def failure(self, message: str | None = None, error_type: type[ServiceError] = ServiceError) -> Response:
        self.result = Response(success=False, error=error_type(message))
        return self.result


@dataclass(frozen=True)
class RescueConfig:
    """One ``rescue_from`` declaration."""

    errors: tuple[type[BaseException], ...]
    use: type[ServiceError] = ServiceError
    handler: RescueHandler | None = None

    def matches(self, exc: BaseException) -> bool:
        return isinstance(exc, self.errors)

    def apply(self, exc: BaseException) -> Response | None:
        """Convert ``exc`` into a response, or None to let it propagate."""
        if self.handler is None:
            return Response(success=False, error=self.use(f"[{type(exc).__name__}]: {exc}"))

        context = RescueContext()
        returned = self.handler(context, exc)
        if isinstance(returned, Response):
            return returned
        return context.result


def build_rescue_config(
    errors: tuple[type[BaseException], ...],
    use: type[ServiceError],
    handler: RescueHandler | None,
) -> RescueConfig:
    """Validate ``rescue_from`` arguments.

    Raises:
        ValueError: If no exception class is given
        TypeError: If an entry is not an exception class
    """
    if not errors:
        raise ValueError("rescue_from requires at least one exception class")
    for error in errors:
        if not (isinstance(error, type) and issubclass(error, BaseException)):
            raise TypeError(f"rescue_from expects exception classes, got: {error!r}")
    return RescueConfig(errors=tuple(errors), use=use, handler=handler)


def rescue(configs: tuple[RescueConfig, ...], exc: BaseException) -> Response | None:
    """Apply the first configuration matching ``exc``."""
    for config in configs:
        if config.matches(exc):
            return config.apply(exc)
    return None


__all__ = ["RescueConfig", "RescueContext", "RescueHandler", "build_rescue_config", "rescue"]
