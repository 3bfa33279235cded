"""Job entry points executed by queue adapters.

Adapters only move ``(task_name, args)`` pairs around; ``run_task`` maps the
task name back to the function that performs it.
"""

from collections.abc import Callable, Mapping
from typing import Any

from loguru import logger

from service_kit.constants import SERVICE_JOB_TASK


class ServiceJob:
    """Runs a service call that was enqueued with ``Service.call_async``."""

    TASK_NAME = SERVICE_JOB_TASK

    @staticmethod
    def perform(name: str, args: Mapping[str, Any] | None = None) -> Any:
        """Resolve the service by name and call it.

        Args:
            name: Registry name of the service (its dotted import path)
            args: Keyword arguments for the service

        Returns:
            The service Response

        Raises:
            ServiceNotFoundError: If no service is registered under ``name``
        """
        from service_kit.services.registry import get_service_registry

        service_class = get_service_registry().get_service(name)
        logger.debug(f"Performing async call of {name}")
        return service_class.call(**dict(args or {}))


_TASKS: dict[str, Callable[..., Any]] = {
    ServiceJob.TASK_NAME: ServiceJob.perform,
}


def run_task(task_name: str, args: Mapping[str, Any]) -> Any:
    """Execute a task by name with keyword arguments.

    Raises:
        KeyError: If the task name is unknown
    """
    try:
        task = _TASKS[task_name]
    except KeyError:
        raise KeyError(f"Unknown task: {task_name}") from None
    return task(**args)
