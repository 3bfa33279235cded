"""Tests for schema resolution, caching and validation."""

import json
from pathlib import Path

import pytest

from service_kit.exceptions import ServiceError, ValidationError
from service_kit.response import Response
from service_kit.validation import SchemaKind, SchemaValidator, get_schema_validator
from service_kit.validation.validator import ABSENT, normalize_schema

AGE_SCHEMA = {
    "type": "object",
    "required": ["name", "age"],
    "properties": {"name": {"type": "string"}, "age": {"type": "integer", "minimum": 18}},
}


def write_schema(root: Path, namespace: str, kind: str, schema: dict) -> Path:
    """Write a schema file under the default schemas directory."""
    path = root / "app" / "schemas" / namespace / f"{kind}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(schema), encoding="utf-8")
    return path


class RegisterUser:
    """Plain owner class; only the attributes the validator reads matter."""

    ARGUMENTS_SCHEMA = AGE_SCHEMA


class Anonymous:
    """Owner without any schema."""


class TestValidateArguments:
    """Argument validation."""

    def test_valid_arguments(self):
        """Valid arguments return True."""
        assert SchemaValidator().validate_arguments(RegisterUser, {"name": "John", "age": 25}) is True

    def test_minimum_violation(self):
        """A value below the minimum raises a ValidationError naming owner, property and bound."""
        with pytest.raises(ValidationError) as exc_info:
            SchemaValidator().validate_arguments(RegisterUser, {"name": "John", "age": 16})

        message = exc_info.value.message
        assert message.startswith("Invalid arguments for RegisterUser: ")
        assert "#/age" in message
        assert "minimum value of 18" in message

    def test_every_violation_in_message(self):
        """All violations are joined into one message."""
        with pytest.raises(ValidationError) as exc_info:
            SchemaValidator().validate_arguments(RegisterUser, {"name": 123})

        message = exc_info.value.message
        assert "did not contain a required property of 'age'" in message
        assert "did not match the following type: string" in message
        assert ", " in message

    def test_no_schema_skips_validation(self):
        """Owners without a schema are not validated."""
        assert SchemaValidator().validate_arguments(Anonymous, {"anything": object()}) is True

    def test_arguments_are_serialized(self):
        """Non-JSON values are serialized before validation."""

        class Stamp:
            ARGUMENTS_SCHEMA = {"type": "object", "properties": {"at": {"type": "string"}, "ids": {"type": "array"}}}

        from datetime import datetime

        assert SchemaValidator().validate_arguments(Stamp, {"at": datetime(2024, 1, 1), "ids": (1, 2)}) is True


class TestValidateResult:
    """Result validation."""

    class SummarizeOrder:
        RESULT_SCHEMA = {"type": "object", "required": ["total"]}

    def test_success_validated(self):
        """Success data is validated against the result schema."""
        validator = SchemaValidator()
        response = Response.ok({"total": 3})
        assert validator.validate_result(self.SummarizeOrder, response) is response

        with pytest.raises(ValidationError, match="Invalid result structure from SummarizeOrder"):
            validator.validate_result(self.SummarizeOrder, Response.ok({"count": 3}))

    def test_failure_passes_through(self):
        """Failure responses are never validated."""
        response = Response.fail(ServiceError("nope"))
        assert SchemaValidator().validate_result(self.SummarizeOrder, response) is response


class TestValidateEventPayload:
    """Payload validation."""

    def test_invalid_payload(self):
        """Payload violations name the handler."""

        class UserCreatedHandler:
            PAYLOAD_SCHEMA = {"type": "object", "required": ["user_id"]}

        validator = SchemaValidator()
        assert validator.validate_event_payload(UserCreatedHandler, {"user_id": 1}) is True
        with pytest.raises(ValidationError, match="Invalid payload for UserCreatedHandler"):
            validator.validate_event_payload(UserCreatedHandler, {})


class TestLoadSchema:
    """Schema resolution precedence and caching."""

    def test_declared_schema_wins_over_constant_and_file(self, tmp_path: Path):
        """DSL declarations take precedence over constants and files."""

        class ChargeCard:
            schema_namespace = "charge_card"
            ARGUMENTS_SCHEMA = {"type": "object", "required": ["from_constant"]}

            @classmethod
            def declared_schemas(cls):
                return {SchemaKind.ARGUMENTS: {"type": "object", "required": ["from_dsl"]}}

        write_schema(tmp_path, "charge_card", "arguments", {"type": "object", "required": ["from_file"]})

        schema = SchemaValidator().load_schema(ChargeCard, SchemaKind.ARGUMENTS)
        assert schema["required"] == ["from_dsl"]

    def test_constant_wins_over_file(self, tmp_path: Path):
        """Inline constants take precedence over files."""

        class RefundCard:
            schema_namespace = "refund_card"
            ARGUMENTS_SCHEMA = {"type": "object", "required": ["from_constant"]}

        write_schema(tmp_path, "refund_card", "arguments", {"type": "object", "required": ["from_file"]})

        schema = SchemaValidator().load_schema(RefundCard, "arguments")
        assert schema["required"] == ["from_constant"]

    def test_file_schema(self, tmp_path: Path):
        """Schema files are found under {root}/{schemas_dir}/{namespace}/{kind}.json."""

        class ProcessPaymentService:
            schema_namespace = "process_payment"

        write_schema(tmp_path, "process_payment", "arguments", AGE_SCHEMA)
        validator = SchemaValidator()

        assert validator.load_schema(ProcessPaymentService, SchemaKind.ARGUMENTS) == AGE_SCHEMA
        with pytest.raises(ValidationError, match="minimum value of 18"):
            validator.validate_arguments(ProcessPaymentService, {"name": "John", "age": 16})

    def test_absence_is_cached(self, tmp_path: Path):
        """A missing schema is remembered; a file added later is ignored until the cache is cleared."""

        class LateSchema:
            schema_namespace = "late_schema"

        validator = SchemaValidator()
        assert validator.load_schema(LateSchema, SchemaKind.RESULT) is None
        assert validator.cache[(LateSchema, SchemaKind.RESULT)] is ABSENT

        write_schema(tmp_path, "late_schema", "result", {"type": "object"})
        assert validator.load_schema(LateSchema, SchemaKind.RESULT) is None

        validator.clear_cache()
        assert validator.load_schema(LateSchema, SchemaKind.RESULT) == {"type": "object"}

    def test_resolved_schema_is_cached(self):
        """The first resolution sticks for the key."""

        class Mutating:
            PAYLOAD_SCHEMA = {"type": "object"}

        validator = SchemaValidator()
        first = validator.load_schema(Mutating, SchemaKind.PAYLOAD)
        Mutating.PAYLOAD_SCHEMA = {"type": "array"}
        assert validator.load_schema(Mutating, SchemaKind.PAYLOAD) is first

    def test_unknown_kind_rejected(self):
        """Only arguments, result and payload are schema kinds."""
        with pytest.raises(ValueError):
            SchemaValidator().load_schema(Anonymous, "headers")


def test_normalize_schema_stringifies_keys():
    """Schema keys are converted to strings, enum keys to their values."""
    assert normalize_schema({SchemaKind.RESULT: {1: [{"a": True}]}}) == {"result": {"1": [{"a": True}]}}


def test_get_schema_validator_singleton():
    """get_schema_validator returns one shared instance."""
    assert get_schema_validator() is get_schema_validator()


def test_concurrent_load_schema_resolves_each_key_once(run_in_threads):
    """Concurrent lookups resolve every (owner, kind) once and all see the same schema."""
    resolutions: list[str] = []

    def make_owner(name: str) -> type:
        def declared_schemas(cls):
            resolutions.append(cls.__name__)
            return {SchemaKind.ARGUMENTS: {"type": "object", "title": cls.__name__}}

        return type(name, (), {"declared_schemas": classmethod(declared_schemas)})

    owners = [make_owner(f"Owner{i}") for i in range(5)]
    validator = SchemaValidator()
    seen: list[tuple[type, SchemaKind, int]] = []

    def load(index: int) -> None:
        for owner in owners:
            for kind in (SchemaKind.ARGUMENTS, SchemaKind.RESULT):
                schema = validator.load_schema(owner, kind)
                seen.append((owner, kind, id(schema)))

    run_in_threads(load, threads=8)

    # One resolution per owner and kind; each resolution consults the declaration once
    assert len(resolutions) == len(owners) * 2
    assert len(validator.cache) == len(owners) * 2
    for owner in owners:
        schema = validator.load_schema(owner, SchemaKind.ARGUMENTS)
        assert schema["title"] == owner.__name__
        assert {i for o, k, i in seen if o is owner and k is SchemaKind.ARGUMENTS} == {id(schema)}
