"""Service objects with schema validation and declarative events."""

from .exceptions import (
    AuthenticationError,
    BadRequestError,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
    ServiceError,
    ServiceUnavailableError,
    UnauthorizedError,
    UnprocessableEntityError,
    ValidationError,
)
from .response import Response
from .settings import Settings, configure, get_settings
from .services import Service, get_service_registry, rescue_from
from .event_bus import (
    EventBus,
    EventHandler,
    HandlerRegistrationError,
    OrphanedHandlerError,
    Trigger,
    emits,
    get_event_bus,
    invoke,
)
from .jobs import JobEnqueueError, ServiceNotFoundError, set_queue_adapter
from .bootstrap import autodiscover, boot, reload

__all__ = [
    "AuthenticationError",
    "BadRequestError",
    "EventBus",
    "EventHandler",
    "ForbiddenError",
    "HandlerRegistrationError",
    "InternalServerError",
    "JobEnqueueError",
    "NotFoundError",
    "OrphanedHandlerError",
    "Response",
    "Service",
    "ServiceError",
    "ServiceNotFoundError",
    "ServiceUnavailableError",
    "Settings",
    "Trigger",
    "UnauthorizedError",
    "UnprocessableEntityError",
    "ValidationError",
    "autodiscover",
    "boot",
    "configure",
    "emits",
    "get_event_bus",
    "get_service_registry",
    "get_settings",
    "invoke",
    "reload",
    "rescue_from",
    "set_queue_adapter",
]
