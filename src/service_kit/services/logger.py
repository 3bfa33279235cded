"""Lifecycle log lines for service calls."""

from typing import Any

from loguru import logger

from service_kit.response import Response


class ServiceLogger:
    """Logs service calls, results and errors."""

    @staticmethod
    def log_call(service_class: type, args: dict[str, Any]) -> None:
        logger.debug(f"Calling {service_class.__name__} with args: {args!r}")

    @staticmethod
    def log_result(service_class: type, response: Response, duration: float) -> None:
        """Log the outcome of a call.

        Args:
            service_class: The service class
            response: The response produced by the call
            duration: Wall-clock duration of the call in seconds
        """
        if response.success:
            logger.info(f"{service_class.__name__} succeeded in {duration:.3f}s")
        else:
            logger.warning(f"{service_class.__name__} failed in {duration:.3f}s with error: {response.error}")

    @staticmethod
    def log_validation_error(service_class: type, error: Exception) -> None:
        logger.error(f"{service_class.__name__} validation error: {getattr(error, 'message', error)}")

    @staticmethod
    def log_exception(service_class: type, exception: BaseException) -> None:
        logger.error(f"{service_class.__name__} uncaught exception: {type(exception).__name__} - {exception}")
