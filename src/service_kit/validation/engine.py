"""JSON Schema engine adapter.

Thin wrapper around ``jsonschema`` that returns *every* violation found in a
document as a readable sentence. Each sentence names the offending property
path (``#/`` for the root, ``#/address/zip`` for nested values) and the
violated constraint, so callers can assert on substrings such as
``"required property"``, ``"did not match the following type"`` or
``"minimum value of 18"``.
"""

import json
import re
from collections.abc import Callable
from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError as SchemaViolation
from jsonschema.validators import validator_for

_REQUIRED_PATTERN = re.compile(r"^'?(?P<name>.*?)'? is a required property$")


def json_type_name(value: Any) -> str:
    """Return the JSON type name of a Python value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list | tuple):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def property_path(violation: SchemaViolation) -> str:
    """Render the absolute path of a violation as ``#/a/b``."""
    return "#/" + "/".join(str(part) for part in violation.absolute_path)


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list | tuple) else [value]


def _required(v: SchemaViolation) -> str:
    match = _REQUIRED_PATTERN.match(v.message)
    name = match.group("name") if match else v.message
    return f"did not contain a required property of '{name}'"


def _type(v: SchemaViolation) -> str:
    expected = _as_list(v.validator_value)
    actual = json_type_name(v.instance)
    if len(expected) == 1:
        return f"of type {actual} did not match the following type: {expected[0]}"
    return f"of type {actual} did not match one or more of the following types: {', '.join(expected)}"


def _minimum(v: SchemaViolation) -> str:
    return f"did not have a minimum value of {v.validator_value}, inclusively"


def _exclusive_minimum(v: SchemaViolation) -> str:
    return f"did not have a minimum value of {v.validator_value}, exclusively"


def _maximum(v: SchemaViolation) -> str:
    return f"did not have a maximum value of {v.validator_value}, inclusively"


def _exclusive_maximum(v: SchemaViolation) -> str:
    return f"did not have a maximum value of {v.validator_value}, exclusively"


def _enum(v: SchemaViolation) -> str:
    allowed = ", ".join(json.dumps(item) for item in v.validator_value)
    return f"value {json.dumps(v.instance, default=str)} did not match one of the following values: {allowed}"


def _min_length(v: SchemaViolation) -> str:
    return f"was not of a minimum string length of {v.validator_value}"


def _max_length(v: SchemaViolation) -> str:
    return f"was not of a maximum string length of {v.validator_value}"


def _pattern(v: SchemaViolation) -> str:
    return f"value {json.dumps(v.instance, default=str)} did not match the regex '{v.validator_value}'"


def _min_items(v: SchemaViolation) -> str:
    return f"did not contain a minimum number of items {v.validator_value}"


def _max_items(v: SchemaViolation) -> str:
    return f"had more items than the allowed {v.validator_value}"


_FORMATTERS: dict[str, Callable[[SchemaViolation], str]] = {
    "required": _required,
    "type": _type,
    "minimum": _minimum,
    "exclusiveMinimum": _exclusive_minimum,
    "maximum": _maximum,
    "exclusiveMaximum": _exclusive_maximum,
    "enum": _enum,
    "minLength": _min_length,
    "maxLength": _max_length,
    "pattern": _pattern,
    "minItems": _min_items,
    "maxItems": _max_items,
}


def describe(violation: SchemaViolation) -> str:
    """Render one violation as a sentence."""
    formatter = _FORMATTERS.get(str(violation.validator))
    detail = formatter(violation) if formatter else f"failed '{violation.validator}' validation: {violation.message}"
    return f"The property '{property_path(violation)}' {detail}"


def validate(schema: dict[str, Any], data: Any) -> list[str]:
    """Validate ``data`` against ``schema`` and describe every violation.

    The draft is picked from the schema's ``$schema`` keyword, defaulting to
    Draft 7.

    Args:
        schema: JSON schema document
        data: JSON-compatible value to validate

    Returns:
        One description per violation, empty when ``data`` is valid

    Raises:
        jsonschema.exceptions.SchemaError: If the schema itself is invalid
    """
    validator_class = validator_for(schema, default=Draft7Validator)
    validator_class.check_schema(schema)
    return [describe(violation) for violation in validator_class(schema).iter_errors(data)]


__all__ = ["describe", "json_type_name", "property_path", "validate"]
