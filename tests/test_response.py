"""Tests for the Response value object."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from service_kit.exceptions import NotFoundError
from service_kit.response import Response


def test_success_response():
    """A success response carries data and no error."""
    response = Response(success=True, data={"id": 1})
    assert response.success is True
    assert response.data == {"id": 1}
    assert response.error is None


def test_failure_response():
    """A failure response carries the error."""
    error = NotFoundError("User not found")
    response = Response(success=False, error=error)
    assert response.success is False
    assert response.data is None
    assert response.error is error


def test_convenience_constructors():
    """ok() and fail() build the two shapes."""
    assert Response.ok(5) == Response(success=True, data=5)
    error = NotFoundError()
    assert Response.fail(error).error is error
    assert Response.fail(error).success is False


def test_response_is_immutable():
    """Responses cannot be mutated after construction."""
    response = Response.ok({"id": 1})
    with pytest.raises(PydanticValidationError):
        response.success = False


def test_no_consistency_validation():
    """Inconsistent combinations are accepted; callers are responsible."""
    response = Response(success=True, data=1, error=NotFoundError())
    assert response.success is True
    assert response.error is not None


def test_error_must_be_service_error():
    """The error field only accepts ServiceError instances."""
    with pytest.raises(PydanticValidationError):
        Response(success=False, error=ValueError("nope"))
