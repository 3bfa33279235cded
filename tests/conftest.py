"""Shared fixtures: every test starts from fresh process-wide singletons."""

import threading
from collections.abc import Callable

import pytest
from loguru import logger

from service_kit.event_bus.bus import get_event_bus
from service_kit.event_bus.notifications import get_notifier
from service_kit.jobs.adapters import InMemoryQueueAdapter, reset_queue_adapter, set_queue_adapter
from service_kit.services.registry import get_service_registry
from service_kit.settings import configure, reset_settings
from service_kit.validation import get_schema_validator


@pytest.fixture(autouse=True)
def fresh_framework(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Reset bus, notifier, registry, schema cache, queue adapter and settings.

    Settings point ``root_path`` at an empty temporary directory so no schema
    file from the working tree leaks into a test.
    """
    for var in (
        "SERVICE_KIT_STRICT_EVENT_VALIDATION",
        "SERVICE_KIT_SCHEMAS_DIR",
        "SERVICE_KIT_SERVICES_DIR",
        "SERVICE_KIT_EVENTS_DIR",
        "SERVICE_KIT_SERVICES_PACKAGE",
        "SERVICE_KIT_EVENTS_PACKAGE",
        "SERVICE_KIT_DEFAULT_QUEUE",
    ):
        monkeypatch.delenv(var, raising=False)

    get_notifier.cache_clear()
    get_event_bus.cache_clear()
    get_service_registry.cache_clear()
    get_schema_validator.cache_clear()
    reset_settings()
    configure(root_path=tmp_path)
    set_queue_adapter(InMemoryQueueAdapter())

    yield

    reset_queue_adapter()
    reset_settings()


@pytest.fixture
def log_records() -> list[dict]:
    """Loguru records emitted while the test runs."""
    records: list[dict] = []
    sink_id = logger.add(lambda message: records.append(message.record), level="TRACE", format="{message}")
    yield records
    logger.remove(sink_id)


@pytest.fixture
def queue() -> InMemoryQueueAdapter:
    """The in-memory queue adapter installed for the current test."""
    adapter = InMemoryQueueAdapter()
    set_queue_adapter(adapter)
    return adapter


@pytest.fixture
def run_in_threads() -> Callable[..., None]:
    """Run ``target(index)`` on several threads released at the same moment.

    Exceptions raised by a thread are re-raised in the test.
    """

    def _run(target: Callable[[int], None], threads: int = 8) -> None:
        barrier = threading.Barrier(threads)
        errors: list[Exception] = []

        def worker(index: int) -> None:
            try:
                barrier.wait()
                target(index)
            except Exception as e:
                errors.append(e)

        workers = [threading.Thread(target=worker, args=(i,)) for i in range(threads)]
        for thread in workers:
            thread.start()
        for thread in workers:
            thread.join(timeout=30)
        if errors:
            raise errors[0]

    return _run
