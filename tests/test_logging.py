"""Tests for logging setup."""

import logging
import sys

import pytest
from loguru import logger

from service_kit.logging import InterceptHandler, setup_logging
from service_kit.settings import configure


@pytest.fixture
def restore_loguru():
    """Put the default loguru sink and stdlib root handlers back after the test."""
    root_handlers = logging.getLogger().handlers[:]
    yield
    logger.remove()
    logger.add(sys.stderr)
    logging.getLogger().handlers = root_handlers
    for name in ("asyncio", "concurrent.futures", "service_kit"):
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_setup_logging_redirects_stdlib(restore_loguru):
    """Standard library records end up in loguru."""
    setup_logging("debug")
    records: list[dict] = []
    logger.add(lambda message: records.append(message.record), level="DEBUG")

    logging.getLogger("some.library").warning("from stdlib")

    assert any(isinstance(h, InterceptHandler) for h in logging.getLogger().handlers)
    assert any(r["message"] == "from stdlib" and r["level"].name == "WARNING" for r in records)


def test_setup_logging_level(restore_loguru):
    """Framework and executor stdlib loggers follow the configured level."""
    setup_logging("error")

    assert logging.getLogger("service_kit").level == logging.ERROR
    assert logging.getLogger("concurrent.futures").level == logging.ERROR


def test_setup_logging_defaults_to_settings_level(restore_loguru):
    """Without an explicit level the configured Settings.log_level applies."""
    configure(log_level="warning")

    assert setup_logging() == "WARNING"
    assert logging.getLogger("service_kit").level == logging.WARNING


def test_compact_format_drops_location(restore_loguru, capsys: pytest.CaptureFixture[str]):
    """The compact CLI format prints level and message without time or caller."""
    setup_logging("info", compact=True)
    logger.info("compact line")
    compact = capsys.readouterr().err

    setup_logging("info")
    logger.info("full line")
    full = capsys.readouterr().err

    assert "compact line" in compact
    assert "test_compact_format_drops_location" not in compact
    assert "test_compact_format_drops_location" in full


def test_setup_logging_without_intercept(restore_loguru):
    """intercept=False leaves the standard library handlers alone."""
    sentinel = logging.NullHandler()
    logging.getLogger().handlers = [sentinel]

    setup_logging("debug", intercept=False)

    assert logging.getLogger().handlers == [sentinel]
