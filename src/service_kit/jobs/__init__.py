"""Asynchronous service execution.

``Service.call_async`` hands a service call to the configured queue adapter;
the adapter later runs ``ServiceJob.perform`` which resolves the service by
name and calls it. The enqueuing code never observes the result.
"""

from .adapters import (
    EnqueueAck,
    EnqueuedJob,
    InlineQueueAdapter,
    InMemoryQueueAdapter,
    JobOptions,
    QueueAdapter,
    ThreadPoolQueueAdapter,
    get_queue_adapter,
    reset_queue_adapter,
    set_queue_adapter,
)
from .errors import AsyncError, JobEnqueueError, ServiceNotFoundError
from .job import ServiceJob, run_task

__all__ = [
    "AsyncError",
    "EnqueueAck",
    "EnqueuedJob",
    "InMemoryQueueAdapter",
    "InlineQueueAdapter",
    "JobEnqueueError",
    "JobOptions",
    "QueueAdapter",
    "ServiceJob",
    "ServiceNotFoundError",
    "ThreadPoolQueueAdapter",
    "get_queue_adapter",
    "reset_queue_adapter",
    "run_task",
    "set_queue_adapter",
]
