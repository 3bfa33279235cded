"""Enqueue service calls as background jobs.

Job options mixed into the keyword arguments of ``call_async`` are stripped
before the remaining arguments are handed to the service:

- ``queue``: queue name (defaults to ``Settings.default_queue``)
- ``priority``: backend-specific priority
- ``wait``: delay, in seconds or as a ``timedelta``
- ``wait_until``: ``datetime`` before which the job must not run
- ``job_options``: dict of extra backend options, merged in as-is

Example:
    ```python
    SendEmailService.call_async(user_id=1, queue="mailers", wait=timedelta(minutes=5))
    ```
"""

from datetime import timedelta
from typing import Any

from loguru import logger

from service_kit.constants import JOB_OPTION_KEYS
from service_kit.settings import current_settings

from .adapters import JobOptions, get_queue_adapter
from .errors import JobEnqueueError
from .job import ServiceJob


def split_job_options(kwargs: dict[str, Any]) -> tuple[JobOptions, dict[str, Any]]:
    """Separate job options from service arguments."""
    service_args = {k: v for k, v in kwargs.items() if k not in JOB_OPTION_KEYS and k != "job_options"}

    wait = kwargs.get("wait")
    if isinstance(wait, timedelta):
        wait = wait.total_seconds()

    options = JobOptions(
        queue=kwargs.get("queue") or current_settings().default_queue,
        priority=kwargs.get("priority"),
        delay=wait,
        scheduled_at=kwargs.get("wait_until"),
        extra=dict(kwargs.get("job_options") or {}),
    )
    return options, service_args


def enqueue_service_call(service_class: type, kwargs: dict[str, Any]) -> Any:
    """Enqueue an asynchronous call of ``service_class``.

    Returns:
        The adapter's acknowledgement

    Raises:
        JobEnqueueError: If the adapter rejects the job
    """
    from service_kit.services.registry import get_service_registry

    try:
        options, service_args = split_job_options(kwargs)
        name = get_service_registry().name_of(service_class)
        ack = get_queue_adapter().enqueue(ServiceJob.TASK_NAME, {"name": name, "args": service_args}, options)
    except Exception as e:
        raise JobEnqueueError(f"Failed to enqueue async job for {service_class.__name__}: {e}") from e

    logger.debug(f"Enqueued {service_class.__name__} on '{options.queue}'")
    return ack
