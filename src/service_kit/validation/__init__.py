"""Schema validation for service arguments, results and event payloads.

Validation is opt-in: an owner without a schema for a given kind is never
validated. See ``validator.py`` for the resolution rules and ``engine.py`` for
how violations are rendered.
"""

from .enums import SchemaKind
from .validator import SchemaValidator, get_schema_validator

__all__ = [
    "SchemaKind",
    "SchemaValidator",
    "get_schema_validator",
]
