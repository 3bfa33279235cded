"""Error classes for asynchronous service execution.

These errors are raised when async operations fail, such as job enqueueing
failures or unknown service names during job execution.
"""


class AsyncError(Exception):
    """Base error class for all async execution errors."""


class JobEnqueueError(AsyncError):
    """Raised when handing a job to the queue adapter fails.

    Wraps whatever the adapter raised (broker down, bad options, ...).
    """


class ServiceNotFoundError(AsyncError):
    """Raised when a job names a service that is not registered."""
