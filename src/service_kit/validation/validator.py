"""Schema resolution, caching and validation.

Schemas are resolved per ``(owner class, kind)`` from three sources, in
order of precedence:

1. a schema declared through the class DSL (``Service.schema(arguments=...)``
   or ``EventHandler.schema(payload=...)``)
2. an inline class constant named ``<KIND>_SCHEMA`` (``ARGUMENTS_SCHEMA``,
   ``RESULT_SCHEMA``, ``PAYLOAD_SCHEMA``)
3. a JSON file at ``Settings.schema_path_for(namespace, kind)``, where the
   namespace is derived from the owner's module and class name (see
   :func:`~service_kit.utils.naming.schema_namespace`)

The first two sources belong to the class itself, so the cache is keyed by
class: two classes never share an entry, even when their namespaces coincide.
A key is resolved once; absence is cached too, so the file system is checked
at most once per key until :meth:`SchemaValidator.clear_cache` is called.

## Usage

```python
from service_kit.validation import get_schema_validator

validator = get_schema_validator()
validator.validate_arguments(CreateUserService, {"name": "John", "age": 25})
```
"""

import json
import threading
from collections.abc import Mapping
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic_core import to_jsonable_python

from service_kit.constants import SCHEMA_CONSTANT_SUFFIX
from service_kit.exceptions import ValidationError
from service_kit.response import Response
from service_kit.settings import current_settings
from service_kit.utils.naming import schema_namespace
from service_kit.validation import engine
from service_kit.validation.enums import SchemaKind

Schema = dict[str, Any]


class _Absent:
    """Cache marker for keys resolved to "no schema"."""

    def __repr__(self) -> str:
        return "<no schema>"


ABSENT = _Absent()


def normalize_schema(schema: Mapping[Any, Any]) -> Schema:
    """Return a copy of ``schema`` with every mapping key converted to ``str``."""

    def _convert(value: Any) -> Any:
        if isinstance(value, Mapping):
            return {_key(k): _convert(v) for k, v in value.items()}
        if isinstance(value, list | tuple):
            return [_convert(item) for item in value]
        return value

    def _key(key: Any) -> str:
        return key.value if isinstance(key, Enum) else str(key)

    return _convert(schema)


def serialize(value: Any) -> Any:
    """Convert ``value`` into a plain JSON-compatible structure."""
    return to_jsonable_python(value, fallback=str)


class SchemaValidator:
    """Resolves, caches and applies JSON schemas for services and handlers."""

    def __init__(self) -> None:
        self._cache: dict[tuple[type, SchemaKind], Schema | _Absent] = {}
        self._lock = threading.RLock()

    @property
    def cache(self) -> dict[tuple[type, SchemaKind], Schema | _Absent]:
        """Snapshot of the cache (resolved schemas and absent markers)."""
        with self._lock:
            return dict(self._cache)

    def clear_cache(self) -> None:
        """Forget every resolved schema."""
        with self._lock:
            self._cache.clear()
        logger.debug("Schema cache cleared")

    def load_schema(self, owner: type, kind: SchemaKind | str) -> Schema | None:
        """Resolve the schema of ``kind`` for ``owner``.

        Args:
            owner: Service or handler class
            kind: Schema kind

        Returns:
            The normalized schema, or None when no source provides one
        """
        kind = SchemaKind(kind)
        key = (owner, kind)

        with self._lock:
            cached = self._cache.get(key)
            if cached is None:
                cached = self._resolve(owner, kind)
                self._cache[key] = cached

        return None if cached is ABSENT else cached

    def validate_arguments(self, owner: type, arguments: Mapping[str, Any]) -> bool:
        """Validate call arguments against the owner's ``arguments`` schema.

        Returns:
            True when valid or when no schema is declared

        Raises:
            ValidationError: Listing every violation
        """
        schema = self.load_schema(owner, SchemaKind.ARGUMENTS)
        if schema is None:
            return True

        self._check(schema, arguments, f"Invalid arguments for {owner.__name__}")
        return True

    def validate_result(self, owner: type, response: Response) -> Response:
        """Validate the data of a successful response against the ``result`` schema.

        Failure responses and owners without a result schema pass through untouched.

        Raises:
            ValidationError: Listing every violation
        """
        if not response.success:
            return response

        schema = self.load_schema(owner, SchemaKind.RESULT)
        if schema is None:
            return response

        self._check(schema, response.data, f"Invalid result structure from {owner.__name__}")
        return response

    def validate_event_payload(self, handler: type, payload: Any) -> bool:
        """Validate an event payload against the handler's ``payload`` schema.

        Raises:
            ValidationError: Listing every violation
        """
        schema = self.load_schema(handler, SchemaKind.PAYLOAD)
        if schema is None:
            return True

        self._check(schema, payload, f"Invalid payload for {handler.__name__}")
        return True

    def _check(self, schema: Schema, data: Any, prefix: str) -> None:
        violations = engine.validate(schema, serialize(data))
        if violations:
            logger.debug(f"{prefix}: {len(violations)} violation(s)")
            raise ValidationError(f"{prefix}: {', '.join(violations)}")

    def _resolve(self, owner: type, kind: SchemaKind) -> Schema | _Absent:
        declared = self._declared_schema(owner, kind)
        if declared is not None:
            logger.trace(f"{owner.__name__} {kind} schema resolved from class declaration")
            return normalize_schema(declared)

        constant = getattr(owner, f"{kind.value.upper()}{SCHEMA_CONSTANT_SUFFIX}", None)
        if constant is not None:
            logger.trace(f"{owner.__name__} {kind} schema resolved from inline constant")
            return normalize_schema(constant)

        settings = current_settings()
        namespace = schema_namespace(owner, settings.namespace_roots())
        path = settings.schema_path_for(namespace, kind.value)
        if path.is_file():
            logger.trace(f"Schema {namespace}/{kind} loaded from {path}")
            return normalize_schema(self._read_schema_file(path))

        logger.trace(f"No {kind} schema for {namespace}")
        return ABSENT

    @staticmethod
    def _declared_schema(owner: type, kind: SchemaKind) -> Mapping[str, Any] | None:
        declared = getattr(owner, "declared_schemas", None)
        if not callable(declared):
            return None
        return declared().get(kind)

    @staticmethod
    def _read_schema_file(path: Path) -> Schema:
        return json.loads(path.read_text(encoding="utf-8"))


@lru_cache
def get_schema_validator() -> SchemaValidator:
    """Get or create the process-wide SchemaValidator."""
    return SchemaValidator()


__all__ = ["ABSENT", "Schema", "SchemaValidator", "get_schema_validator", "normalize_schema", "serialize"]
