"""Naming helpers shared by registries and the schema validator."""

import re
from collections.abc import Iterable

from service_kit.constants import NAMESPACE_STRIPPED_SUFFIXES

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """Convert a CamelCase identifier to snake_case.

    Examples:
        >>> snake_case("ProcessPayment")
        'process_payment'
        >>> snake_case("HTTPClient")
        'http_client'
    """
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def qualified_name(cls: type) -> str:
    """Return the dotted import path of a class (``module.QualName``)."""
    return f"{cls.__module__}.{cls.__qualname__}"


def schema_namespace(cls: type, roots: Iterable[str] = ()) -> str:
    """Return the schema namespace of a service or handler class.

    A ``schema_namespace`` attribute defined on the class itself wins (it is
    not inherited). Otherwise the namespace is the module path followed by the
    class name, one snake_cased segment each, with a trailing
    ``Service``/``Handler`` suffix dropped from the class name. The first of
    ``roots`` that prefixes the module path is cut off, and a module named
    after its class does not repeat the name.

    Examples:
        >>> CreateService = type("CreateService", (), {"__module__": "app.services.users"})
        >>> schema_namespace(CreateService, roots=["app.services"])
        'users/create'
        >>> ChargeService = type("ChargeService", (), {"__module__": "app.services.charge"})
        >>> schema_namespace(ChargeService, roots=["app.services"])
        'charge'
    """
    explicit = cls.__dict__.get("schema_namespace")
    if isinstance(explicit, str) and explicit:
        return explicit

    class_parts = [part for part in cls.__qualname__.split(".") if part != "<locals>"]
    last = class_parts[-1]
    for suffix in NAMESPACE_STRIPPED_SUFFIXES:
        if last.endswith(suffix) and len(last) > len(suffix):
            last = last[: -len(suffix)]
            break
    class_parts[-1] = last
    class_parts = [snake_case(part) for part in class_parts]

    module_parts = _module_parts(cls.__module__, roots)
    if module_parts and module_parts[-1] == class_parts[0]:
        module_parts.pop()
    return "/".join(module_parts + class_parts)


def _module_parts(module: str, roots: Iterable[str]) -> list[str]:
    for root in roots:
        if not root:
            continue
        if module == root:
            return []
        if module.startswith(f"{root}."):
            module = module[len(root) + 1 :]
            break
    return [snake_case(part) for part in module.split(".") if part and part != "__main__"]
