"""Service registry: the explicit directory of known services and handlers.

Service and handler classes register themselves here when they are created.
The registry answers the whole-system questions the framework needs without
scanning memory for classes:

- resolve a service by name (async jobs only carry the name)
- which events does each service emit (orphaned handler validation)
- which handlers listen to each event
"""

import threading
from functools import lru_cache
from typing import Any

from loguru import logger

from service_kit.jobs.errors import ServiceNotFoundError
from service_kit.utils.naming import qualified_name


class ServiceRegistry:
    """Registry for service and event handler classes."""

    def __init__(self):
        """Initialize an empty registry."""
        self._services: dict[str, type] = {}
        self._handlers: dict[str, type] = {}
        self._lock = threading.RLock()

    def register_service(self, service_class: type, name: str | None = None) -> str:
        """Register a service class.

        Args:
            service_class: The service class
            name: Lookup name, defaults to the dotted import path of the class

        Returns:
            The name the class was registered under
        """
        name = name or qualified_name(service_class)
        with self._lock:
            previous = self._services.get(name)
            self._services[name] = service_class
        if previous is not None and previous is not service_class:
            logger.debug(f"Service {name} re-registered (module reloaded?)")
        logger.trace(f"Registered service {name}")
        return name

    def register_handler(self, handler_class: type) -> str:
        """Register an event handler class under its dotted import path."""
        name = qualified_name(handler_class)
        with self._lock:
            self._handlers[name] = handler_class
        logger.trace(f"Registered handler {name}")
        return name

    def get_service(self, name: str) -> Any:
        """Get a service class by name.

        Raises:
            ServiceNotFoundError: If no service is registered under ``name``
        """
        with self._lock:
            service_class = self._services.get(name)
        if service_class is None:
            raise ServiceNotFoundError(f"Service class '{name}' not found.")
        return service_class

    def name_of(self, service_class: type) -> str:
        """Return the name a service class is registered under."""
        with self._lock:
            for name, registered in self._services.items():
                if registered is service_class:
                    return name
        return qualified_name(service_class)

    def services(self) -> list[type]:
        with self._lock:
            return list(self._services.values())

    def handlers(self) -> list[type]:
        with self._lock:
            return list(self._handlers.values())

    def emitted_events_by_service(self) -> dict[str, set[str]]:
        """Map each registered service name to the events it may emit."""
        with self._lock:
            services = dict(self._services)
        return {name: service_class.emitted_event_names() for name, service_class in services.items()}

    def handlers_by_event(self) -> dict[str, list[type]]:
        """Map each subscribed event name to its handler classes."""
        result: dict[str, list[type]] = {}
        for handler_class in self.handlers():
            event_name = handler_class.event_name()
            if event_name is not None:
                result.setdefault(event_name, []).append(handler_class)
        return result

    def clear(self) -> None:
        """Forget every registered class."""
        with self._lock:
            self._services.clear()
            self._handlers.clear()
        logger.debug("Service registry cleared")


@lru_cache
def get_service_registry() -> ServiceRegistry:
    """Get the singleton service registry instance.

    Returns:
        The global service registry instance
    """
    return ServiceRegistry()
