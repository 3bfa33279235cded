"""Enums for the validation layer.

This module contains basic enums to avoid circular dependencies.
"""

from enum import StrEnum


class SchemaKind(StrEnum):
    """Which part of a call a schema describes."""

    ARGUMENTS = "arguments"
    RESULT = "result"
    PAYLOAD = "payload"
