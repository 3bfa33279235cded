"""Response: the immutable outcome of a service call.

INVARIANT: exactly one of ``data`` / ``error`` is meaningful; the inactive one
is ``None``. Consistency is the caller's responsibility and is not validated.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

from service_kit.exceptions import ServiceError


class Response(BaseModel):
    """Outcome of a service call.

    Attributes:
        success: Whether the call succeeded.
        data: Payload of a successful call.
        error: The :class:`ServiceError` of a failed call.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: bool
    data: Any = None
    error: ServiceError | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "Response":
        """Build a success response."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ServiceError) -> "Response":
        """Build a failure response."""
        return cls(success=False, error=error)


__all__ = ["Response"]
