"""Tests for declarative exception rescue."""

import pytest

from service_kit import Response, Service, emits, rescue_from
from service_kit.exceptions import NotFoundError, ServiceError, ServiceUnavailableError, ValidationError
from service_kit.services.rescue import RescueContext, build_rescue_config
from service_kit.testing import capture_events


@rescue_from(TimeoutError, ConnectionError, use=ServiceUnavailableError)
@rescue_from(KeyError, handler=lambda ctx, exc: ctx.failure(f"Missing key: {exc}", error_type=NotFoundError))
class FetchProfileService(Service):
    """Raises whatever it is told to."""

    def __init__(self, raises: BaseException | None = None):
        self.raises = raises

    def call(self):
        if self.raises is not None:
            raise self.raises
        return self.success({"profile": "ok"})


class TestRescueFrom:
    """Exceptions converted into failures."""

    def test_no_exception(self):
        """Rescue configuration does not affect normal calls."""
        assert FetchProfileService.call().data == {"profile": "ok"}

    def test_rescue_with_use(self):
        """Without handler the exception is wrapped in the `use` error class."""
        response = FetchProfileService.call(raises=TimeoutError("upstream slow"))

        assert not response.success
        assert isinstance(response.error, ServiceUnavailableError)
        assert response.error.message == "[TimeoutError]: upstream slow"

    def test_rescue_with_handler(self):
        """A handler builds the failure itself."""
        response = FetchProfileService.call(raises=KeyError("email"))

        assert isinstance(response.error, NotFoundError)
        assert response.error.message == "Missing key: 'email'"

    def test_unmatched_exception_propagates(self):
        """Exceptions no configuration lists are re-raised."""
        with pytest.raises(ZeroDivisionError):
            FetchProfileService.call(raises=ZeroDivisionError("math"))

    def test_first_matching_configuration_wins(self):
        """Configurations are checked in declaration order."""

        class LookupService(Service):
            def call(self):
                raise KeyError("k")

        LookupService.rescue_from(KeyError, use=NotFoundError)
        LookupService.rescue_from(LookupError, use=ServiceUnavailableError)

        assert isinstance(LookupService.call().error, NotFoundError)

    def test_decorators_keep_top_to_bottom_order(self):
        """Stacked decorators are stored in source order."""
        configs = FetchProfileService.rescue_configs()
        assert configs[0].errors == (TimeoutError, ConnectionError)
        assert configs[1].errors == (KeyError,)

    def test_handler_can_succeed(self):
        """A handler may turn the exception into a success."""

        @rescue_from(LookupError, handler=lambda ctx, exc: ctx.success({"cached": True}))
        class CachedService(Service):
            def call(self):
                raise LookupError("miss")

        assert CachedService.call().data == {"cached": True}

    def test_handler_returning_response(self):
        """A Response returned by the handler is used directly."""

        @rescue_from(LookupError, handler=lambda ctx, exc: Response.ok("fallback"))
        class FallbackService(Service):
            def call(self):
                raise LookupError("miss")

        assert FallbackService.call().data == "fallback"

    def test_handler_without_result_reraises(self):
        """A handler that produces nothing lets the original exception through."""
        seen = []

        @rescue_from(LookupError, handler=lambda ctx, exc: seen.append(exc))
        class ObservedService(Service):
            def call(self):
                raise LookupError("miss")

        with pytest.raises(LookupError, match="miss"):
            ObservedService.call()
        assert len(seen) == 1

    def test_rescued_response_emits_failure_events(self):
        """Rescued failures go through the rest of the lifecycle."""

        @emits("profile_unavailable", on="failure")
        @rescue_from(ConnectionError)
        class FlakyService(Service):
            def call(self):
                raise ConnectionError("reset")

        with capture_events() as events:
            response = FlakyService.call()

        assert type(response.error) is ServiceError
        assert [e.name for e in events] == ["profile_unavailable"]

    def test_rescued_success_is_result_validated(self):
        """Rescued successes are validated against the result schema."""

        @rescue_from(LookupError, handler=lambda ctx, exc: ctx.success({"wrong": True}))
        class StrictService(Service):
            RESULT_SCHEMA = {"type": "object", "required": ["id"]}

            def call(self):
                raise LookupError("miss")

        with pytest.raises(ValidationError):
            StrictService.call()

    def test_subclass_extends_parent_configuration(self):
        """Subclass declarations come after inherited ones and leave the parent untouched."""

        @rescue_from(ValueError)
        class StrictProfileService(FetchProfileService):
            pass

        assert len(StrictProfileService.rescue_configs()) == 3
        assert StrictProfileService.rescue_configs()[2].errors == (ValueError,)
        assert len(FetchProfileService.rescue_configs()) == 2


class TestDeclarationErrors:
    """Invalid rescue declarations."""

    def test_requires_an_exception_class(self):
        """At least one exception class is needed."""
        with pytest.raises(ValueError):
            build_rescue_config((), ServiceError, None)

    def test_rejects_non_exception_entries(self):
        """Only exception classes are accepted."""
        with pytest.raises(TypeError):
            rescue_from("KeyError")

    def test_decorator_requires_service(self):
        """The decorator only applies to services."""
        with pytest.raises(TypeError):
            rescue_from(KeyError)(object)


def test_rescue_context_helpers():
    """RescueContext mirrors the success/failure helpers of a service."""
    ctx = RescueContext()
    assert ctx.result is None
    response = ctx.failure("gone", error_type=NotFoundError)
    assert ctx.result is response
    assert response.error.message == "gone"
