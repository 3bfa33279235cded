"""Utility functions for service_kit."""

from service_kit.utils.naming import qualified_name, schema_namespace, snake_case

__all__ = [
    "qualified_name",
    "schema_namespace",
    "snake_case",
]
