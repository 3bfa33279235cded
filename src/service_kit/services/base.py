"""Service: base class for units of business logic.

A service is a class whose constructor takes the call arguments and whose
``call`` method returns a :class:`~service_kit.response.Response`. Callers
never instantiate services directly; they use the class-level ``call``,
which wraps every invocation in the same lifecycle (on an instance, ``call``
is the business logic itself):

1. log the call
2. validate the arguments against the ``arguments`` schema
3. instantiate and run ``call()`` (timed, with ``rescue_from`` applied)
4. validate the result against the ``result`` schema
5. emit the declared ``success`` or ``failure`` events
6. return the response

Validation errors and unexpected exceptions are logged and re-raised.

## Example

```python
from service_kit import NotFoundError, Service, emits


@emits("user_activated", on="success")
class ActivateUserService(Service):
    ARGUMENTS_SCHEMA = {
        "type": "object",
        "required": ["user_id"],
        "properties": {"user_id": {"type": "integer"}},
    }

    def __init__(self, user_id: int):
        self.user_id = user_id

    def call(self):
        user = USERS.get(self.user_id)
        if user is None:
            return self.failure("User not found", error_type=NotFoundError)
        user.active = True
        return self.success({"user_id": user.id})


response = ActivateUserService.call(user_id=42)
```
"""

from collections.abc import Callable, Mapping
from types import MethodType
from typing import Any, ClassVar, NoReturn

import arrow

from service_kit.event_bus.emitter import EmitsMixin, Trigger
from service_kit.exceptions import ServiceError, ValidationError
from service_kit.jobs.call import enqueue_service_call
from service_kit.response import Response
from service_kit.validation import SchemaKind, get_schema_validator

from .logger import ServiceLogger
from .registry import get_service_registry
from .rescue import RescueConfig, RescueHandler, build_rescue_config, rescue


class _CallDispatcher:
    """``Service.call(**kwargs)`` runs the lifecycle, ``instance.call()`` the business logic."""

    def __get__(self, instance: "Service | None", owner: type["Service"]) -> Callable[..., Response]:
        if instance is None:
            return owner._call_with_lifecycle
        return MethodType(owner._call_impl, instance)


_CALL = _CallDispatcher()


class Service(EmitsMixin):
    """Base class for services.

    Subclasses are registered in the service registry when they are created.
    Pass ``abstract=True`` in the class statement for intermediate base
    classes that must not be registered.
    """

    _declared_schemas: ClassVar[dict[SchemaKind, Any]] = {}
    _rescue_configs: ClassVar[tuple[RescueConfig, ...]] = ()

    def __init_subclass__(cls, abstract: bool = False, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._declared_schemas = dict(cls._declared_schemas)

        impl = cls.__dict__.get("call")
        if impl is not None and impl is not _CALL:
            cls._call_impl = impl
            cls.call = _CALL

        if not abstract:
            get_service_registry().register_service(cls)

    call = _CALL

    def _call_impl(self) -> Response:
        raise NotImplementedError(f"{type(self).__name__} must implement call()")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def _call_with_lifecycle(cls, **kwargs: Any) -> Response:
        """Run the service with full lifecycle handling.

        Returns:
            The service response

        Raises:
            ValidationError: If arguments or result violate their schemas
            Exception: Anything raised by the service and not rescued
        """
        ServiceLogger.log_call(cls, kwargs)
        validator = get_schema_validator()

        try:
            validator.validate_arguments(cls, kwargs)
            instance = cls(**kwargs)
            response = cls._benchmark(instance)
            validator.validate_result(cls, response)
            instance.emit_result_events(response)
            return response
        except ValidationError as e:
            ServiceLogger.log_validation_error(cls, e)
            raise
        except Exception as e:
            ServiceLogger.log_exception(cls, e)
            raise

    @classmethod
    def call_async(cls, **kwargs: Any) -> Any:
        """Enqueue the service to run in the background.

        Job options (``queue``, ``priority``, ``wait``, ``wait_until``,
        ``job_options``) are stripped from ``kwargs``; the rest become the
        service arguments.

        Returns:
            The queue adapter's acknowledgement

        Raises:
            JobEnqueueError: If the job could not be enqueued
        """
        return enqueue_service_call(cls, kwargs)

    @classmethod
    def _benchmark(cls, instance: "Service") -> Response:
        started_at = arrow.utcnow()
        response = cls._run(instance)
        duration = (arrow.utcnow() - started_at).total_seconds()

        ServiceLogger.log_result(cls, response, duration)
        return response

    @classmethod
    def _run(cls, instance: "Service") -> Response:
        try:
            response = instance.call()
        except Exception as e:
            rescued = rescue(cls._rescue_configs, e)
            if rescued is None:
                raise
            response = rescued

        if not isinstance(response, Response):
            raise TypeError(f"{cls.__name__}.call must return a Response, got: {type(response).__name__}")
        return response

    # ------------------------------------------------------------------
    # Helpers for the service body
    # ------------------------------------------------------------------

    def success(self, data: Any = None) -> Response:
        """Return a success response carrying ``data``."""
        return Response(success=True, data=data)

    def failure(self, message: str | None = None, error_type: type[ServiceError] = ServiceError) -> Response:
        """Return a failure response carrying ``error_type(message)``."""
        return Response(success=False, error=error_type(message))

    def error(self, message: str | None = None, error_type: type[ServiceError] = ServiceError) -> NoReturn:
        """Abort the call by raising ``error_type(message)``.

        Events declared with ``on="error!"`` are emitted (with the error as
        default payload) before the exception is raised.
        """
        exc = error_type(message)
        ServiceLogger.log_exception(type(self), exc)
        self.emit_events_for(Trigger.EXPLICIT_ERROR, Response(success=False, error=exc))
        raise exc

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    @classmethod
    def schema(cls, arguments: Mapping[str, Any] | None = None, result: Mapping[str, Any] | None = None) -> None:
        """Declare argument and/or result schemas.

        Declared schemas take precedence over ``ARGUMENTS_SCHEMA`` /
        ``RESULT_SCHEMA`` constants and over schema files.
        """
        for kind, schema in ((SchemaKind.ARGUMENTS, arguments), (SchemaKind.RESULT, result)):
            if schema is not None:
                cls._declared_schemas[kind] = schema

    @classmethod
    def declared_schemas(cls) -> dict[SchemaKind, Any]:
        return dict(cls._declared_schemas)

    @classmethod
    def rescue_from(
        cls,
        *errors: type[BaseException],
        use: type[ServiceError] = ServiceError,
        handler: RescueHandler | None = None,
    ) -> None:
        """Convert the given exceptions raised by ``call`` into failure responses.

        Args:
            errors: Exception classes to rescue
            use: ServiceError subclass wrapping the exception (no handler given)
            handler: ``handler(context, exc)`` building the response itself
        """
        cls._rescue_configs = cls._rescue_configs + (build_rescue_config(errors, use, handler),)

    @classmethod
    def rescue_configs(cls) -> tuple[RescueConfig, ...]:
        return cls._rescue_configs


def rescue_from(
    *errors: type[BaseException],
    use: type[ServiceError] = ServiceError,
    handler: RescueHandler | None = None,
):
    """Class decorator form of :meth:`Service.rescue_from`.

    Stacked decorators keep their top-to-bottom order.
    """
    config = build_rescue_config(errors, use, handler)

    def decorator(cls):
        if not (isinstance(cls, type) and issubclass(cls, Service)):
            raise TypeError(f"@rescue_from can only decorate Service subclasses, got: {cls!r}")
        inherited = next(
            (len(base.__dict__["_rescue_configs"]) for base in cls.__mro__[1:] if "_rescue_configs" in base.__dict__),
            0,
        )
        own = cls._rescue_configs[inherited:] if "_rescue_configs" in cls.__dict__ else ()
        cls._rescue_configs = cls._rescue_configs[:inherited] + (config,) + own
        return cls

    return decorator
