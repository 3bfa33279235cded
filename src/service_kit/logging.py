"""Logging configuration for service_kit.

The framework logs through loguru. Hosts call ``setup_logging`` once at
startup; the level defaults to ``Settings.log_level``. Records written with
the standard library ``logging`` module (the host's own, and those of
``concurrent.futures`` behind the job thread pool) are routed into the same
loguru sink.
"""

import logging
import sys

from loguru import logger

from service_kit.settings import current_settings

FULL_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)

# CLI output: level and message only
COMPACT_FORMAT = "<level>{level: <8}</level> | <level>{message}</level>"

# Standard library loggers held at the framework level
FRAMEWORK_LOGGERS = ("service_kit", "concurrent.futures", "asyncio")


class InterceptHandler(logging.Handler):
    """Forward standard library records to loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip the logging module's own frames
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def intercept_stdlib_logging(log_level: str) -> None:
    """Route the root logger and every existing standard library logger into loguru."""
    handler = InterceptHandler()
    logging.basicConfig(handlers=[handler], level=0, force=True)

    for name in list(logging.Logger.manager.loggerDict):
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [handler]
        stdlib_logger.propagate = False

    for name in FRAMEWORK_LOGGERS:
        logging.getLogger(name).setLevel(log_level)


def setup_logging(log_level: str | None = None, compact: bool = False, intercept: bool = True) -> str:
    """Configure loguru for the host application.

    Args:
        log_level: Level name, defaults to ``Settings.log_level``
        compact: Print level and message only (CLI output)
        intercept: Also route the standard library ``logging`` module into loguru

    Returns:
        The level in effect
    """
    level = (log_level or current_settings().log_level).upper()

    logger.remove()
    logger.add(sys.stderr, format=COMPACT_FORMAT if compact else FULL_FORMAT, level=level, colorize=True)
    logger.enable("service_kit")

    if intercept:
        intercept_stdlib_logging(level)

    logger.debug(f"Log level set to: {level}")
    return level


__all__ = ["InterceptHandler", "intercept_stdlib_logging", "setup_logging"]
