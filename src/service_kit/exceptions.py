"""Service error taxonomy.

Every error a service can fail with derives from :class:`ServiceError`. Errors
are ordinary exceptions so they can be raised (``Service.error``) but they are
usually carried as data inside a failure :class:`~service_kit.response.Response`.

Each variant provides:

- a default message used when none (or ``None``) is given
- a fixed symbolic ``CODE`` returned by :meth:`ServiceError.api_error`
- an HTTP-style ``STATUS_CODE`` for hosts that translate failures into responses

Example:
    ```python
    class PaymentDeclinedError(ServiceError):
        DEFAULT_MESSAGE = "Payment declined"
        CODE = "payment_declined"
        STATUS_CODE = 402


    def call(self):
        return self.failure("Card expired", error_type=PaymentDeclinedError)
    ```
"""

from typing import Any, ClassVar


class ServiceError(Exception):
    """Base class for all service errors."""

    DEFAULT_MESSAGE: ClassVar[str] = "An error occurred"
    CODE: ClassVar[str] = "bad_request"
    STATUS_CODE: ClassVar[int] = 400

    def __init__(self, message: str | None = None):
        self._message = message if message is not None else self.DEFAULT_MESSAGE
        super().__init__(f"{type(self).__name__}: {self._message}")

    @property
    def message(self) -> str:
        """The human-readable error message."""
        return self._message

    def api_error(self) -> dict[str, Any]:
        """Return an API-friendly ``{"code", "message"}`` mapping.

        Override in subclasses to customize the code for domain-specific errors.
        """
        return {"code": self.CODE, "message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._message!r})"


class BadRequestError(ServiceError):
    """400: the caller sent malformed or invalid data."""

    DEFAULT_MESSAGE = "Bad request"
    CODE = "bad_request"
    STATUS_CODE = 400


class AuthenticationError(ServiceError):
    """401: credentials are missing, invalid or expired."""

    DEFAULT_MESSAGE = "Authentication failed"
    CODE = "unauthorized"
    STATUS_CODE = 401


class UnauthorizedError(AuthenticationError):
    """401: credentials are valid but insufficient."""

    DEFAULT_MESSAGE = "Unauthorized"


class ForbiddenError(ServiceError):
    """403: authenticated but not allowed to perform the action."""

    DEFAULT_MESSAGE = "Forbidden"
    CODE = "forbidden"
    STATUS_CODE = 403


class NotFoundError(ServiceError):
    """404: the requested resource does not exist."""

    DEFAULT_MESSAGE = "Not found"
    CODE = "not_found"
    STATUS_CODE = 404


class UnprocessableEntityError(ServiceError):
    """422: well-formed input that violates business rules."""

    DEFAULT_MESSAGE = "Unprocessable entity"
    CODE = "unprocessable_entity"
    STATUS_CODE = 422


class ValidationError(UnprocessableEntityError):
    """422: raised by the framework when schema validation fails."""

    DEFAULT_MESSAGE = "Validation failed"


class InternalServerError(ServiceError):
    """500: unexpected server-side failure."""

    DEFAULT_MESSAGE = "Internal server error"
    CODE = "internal_server_error"
    STATUS_CODE = 500


class ServiceUnavailableError(ServiceError):
    """503: a dependency is temporarily unavailable."""

    DEFAULT_MESSAGE = "Service unavailable"
    CODE = "service_unavailable"
    STATUS_CODE = 503


__all__ = [
    "AuthenticationError",
    "BadRequestError",
    "ForbiddenError",
    "InternalServerError",
    "NotFoundError",
    "ServiceError",
    "ServiceUnavailableError",
    "UnauthorizedError",
    "UnprocessableEntityError",
    "ValidationError",
]
