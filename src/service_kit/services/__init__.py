"""Service objects: schema-validated, logged, event-emitting units of work."""

from .registry import ServiceRegistry, get_service_registry
from .base import Service, rescue_from
from .logger import ServiceLogger
from .rescue import RescueConfig, RescueContext

__all__ = [
    "RescueConfig",
    "RescueContext",
    "Service",
    "ServiceLogger",
    "ServiceRegistry",
    "get_service_registry",
    "rescue_from",
]
