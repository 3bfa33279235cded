"""Queue adapters: the boundary to whatever runs background work.

The framework only needs one capability from a job backend::

    enqueue(task_name, args, options) -> acknowledgement

raising when the job cannot be handed over. Hosts plug their backend in with
``set_queue_adapter``. Three adapters ship with the framework:

- :class:`ThreadPoolQueueAdapter`: default, runs jobs on a local thread pool
- :class:`InlineQueueAdapter`: runs jobs immediately on the calling thread
- :class:`InMemoryQueueAdapter`: only records jobs (tests), ``perform_all`` drains them
"""

import concurrent.futures
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

import arrow
from loguru import logger

from .job import run_task


@dataclass(frozen=True)
class JobOptions:
    """Routing and scheduling options of one job.

    Attributes:
        queue: Queue name
        priority: Backend-specific priority
        delay: Seconds to wait before running
        scheduled_at: Earliest time to run
        extra: Additional backend-specific options
    """

    queue: str = "default"
    priority: int | None = None
    delay: float | None = None
    scheduled_at: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def seconds_until_due(self) -> float:
        """Seconds to wait before the job may run (never negative)."""
        if self.scheduled_at is not None:
            return max((arrow.get(self.scheduled_at) - arrow.utcnow()).total_seconds(), 0.0)
        return max(self.delay or 0.0, 0.0)


@dataclass(frozen=True)
class EnqueueAck:
    """Acknowledgement returned to the code that enqueued a job."""

    job_id: str
    task_name: str
    queue: str
    enqueued_at: arrow.Arrow


@runtime_checkable
class QueueAdapter(Protocol):
    """Anything able to accept a job."""

    def enqueue(self, task_name: str, args: dict[str, Any], options: JobOptions) -> Any: ...


def _ack(task_name: str, options: JobOptions) -> EnqueueAck:
    return EnqueueAck(job_id=uuid.uuid4().hex, task_name=task_name, queue=options.queue, enqueued_at=arrow.utcnow())


class InlineQueueAdapter:
    """Performs jobs synchronously at enqueue time. Delays are ignored."""

    def enqueue(self, task_name: str, args: dict[str, Any], options: JobOptions) -> EnqueueAck:
        ack = _ack(task_name, options)
        logger.debug(f"Running job {ack.job_id} ({task_name}) inline")
        run_task(task_name, args)
        return ack


class ThreadPoolQueueAdapter:
    """Runs jobs on a local ``ThreadPoolExecutor``.

    Delayed and scheduled jobs are submitted by a timer once they are due.
    Job failures are logged; nobody waits on the result.
    """

    def __init__(self, max_workers: int = 4) -> None:
        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="service-kit-job")
        self._timers: set[threading.Timer] = set()
        self._lock = threading.Lock()

    def enqueue(self, task_name: str, args: dict[str, Any], options: JobOptions) -> EnqueueAck:
        ack = _ack(task_name, options)
        delay = options.seconds_until_due()

        if delay > 0:
            timer = threading.Timer(delay, self._fire, args=(ack, args))
            timer.daemon = True
            with self._lock:
                self._timers.add(timer)
            timer.start()
            logger.debug(f"Scheduled job {ack.job_id} ({task_name}) on '{options.queue}' in {delay:.1f}s")
        else:
            self._submit(ack, args)
        return ack

    def _fire(self, ack: EnqueueAck, args: dict[str, Any]) -> None:
        with self._lock:
            self._timers = {t for t in self._timers if t.is_alive() and t is not threading.current_thread()}
        self._submit(ack, args)

    def _submit(self, ack: EnqueueAck, args: dict[str, Any]) -> None:
        future = self._executor.submit(run_task, ack.task_name, args)
        future.add_done_callback(lambda f: self._log_outcome(ack, f))
        logger.debug(f"Submitted job {ack.job_id} ({ack.task_name}) on '{ack.queue}'")

    @staticmethod
    def _log_outcome(ack: EnqueueAck, future: concurrent.futures.Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.opt(exception=exc).error(f"Job {ack.job_id} ({ack.task_name}) failed: {exc}")
        else:
            logger.debug(f"Job {ack.job_id} ({ack.task_name}) finished")

    def shutdown(self, wait: bool = True) -> None:
        """Cancel pending timers and stop the worker pool."""
        with self._lock:
            timers, self._timers = self._timers, set()
        for timer in timers:
            timer.cancel()
        self._executor.shutdown(wait=wait)
        logger.debug("ThreadPoolQueueAdapter shut down")


@dataclass
class EnqueuedJob:
    """A job recorded by :class:`InMemoryQueueAdapter`."""

    task_name: str
    args: dict[str, Any]
    options: JobOptions
    ack: EnqueueAck


class InMemoryQueueAdapter:
    """Records jobs without running them.

    Example:
        ```python
        adapter = InMemoryQueueAdapter()
        set_queue_adapter(adapter)
        SendEmailService.call_async(user_id=1, queue="mailers")
        assert adapter.jobs[0].options.queue == "mailers"
        adapter.perform_all()
        ```
    """

    def __init__(self) -> None:
        self.jobs: list[EnqueuedJob] = []
        self._lock = threading.Lock()

    def enqueue(self, task_name: str, args: dict[str, Any], options: JobOptions) -> EnqueueAck:
        ack = _ack(task_name, options)
        with self._lock:
            self.jobs.append(EnqueuedJob(task_name=task_name, args=args, options=options, ack=ack))
        return ack

    def perform_all(self) -> list[Any]:
        """Run and remove every recorded job, returning their results in order."""
        with self._lock:
            jobs, self.jobs = self.jobs, []
        return [run_task(job.task_name, job.args) for job in jobs]

    def clear(self) -> None:
        with self._lock:
            self.jobs.clear()


_adapter: QueueAdapter | None = None
_adapter_lock = threading.Lock()


def get_queue_adapter() -> QueueAdapter:
    """Return the configured adapter, creating the thread pool default on first use."""
    global _adapter

    with _adapter_lock:
        if _adapter is None:
            _adapter = ThreadPoolQueueAdapter()
        return _adapter


def set_queue_adapter(adapter: QueueAdapter) -> QueueAdapter:
    """Install the adapter used by ``Service.call_async``."""
    global _adapter

    if not isinstance(adapter, QueueAdapter):
        raise TypeError(f"Queue adapter must implement enqueue(task_name, args, options): {adapter!r}")
    with _adapter_lock:
        _adapter = adapter
    logger.debug(f"Queue adapter set to {type(adapter).__name__}")
    return adapter


def reset_queue_adapter() -> None:
    """Drop the configured adapter, shutting the default pool down if it was in use."""
    global _adapter

    with _adapter_lock:
        adapter, _adapter = _adapter, None
    if isinstance(adapter, ThreadPoolQueueAdapter):
        adapter.shutdown(wait=False)
