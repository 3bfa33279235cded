"""Framework configuration using Pydantic Settings.

This module centralizes runtime configuration for service_kit. Values can be
provided via environment variables (preferred) or fall back to the defaults
below. A ``Settings`` instance is intended to be retrieved via ``get_settings``
which caches the object for reuse across the process.

Environment variable prefix: ``SERVICE_KIT_`` (e.g. ``SERVICE_KIT_SCHEMAS_DIR``).
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime framework settings.

    Attributes map directly to environment variables using the ``SERVICE_KIT_``
    prefix (case-insensitive). For example, ``schemas_dir`` <- ``SERVICE_KIT_SCHEMAS_DIR``.
    """

    # Directory layout
    # Relative directories are resolved against ``root_path``.
    root_path: Path = Field(
        default_factory=Path.cwd,
        description="Application root used to resolve the relative directories below",
    )
    schemas_dir: str = Field(
        default="app/schemas",
        description="Directory holding <namespace>/<kind>.json schema files",
    )  # fmt: skip
    services_dir: str = Field(
        default="app/services",
        description="Directory where services are located",
    )  # fmt: skip
    events_dir: str = Field(
        default="app/events",
        description="Directory where event handlers are located",
    )  # fmt: skip

    # Bootstrap
    services_package: str | None = Field(
        default=None,
        description="Dotted package imported at boot so every service registers itself",
    )  # fmt: skip
    events_package: str | None = Field(
        default=None,
        description="Dotted package imported at boot so every event handler registers itself",
    )  # fmt: skip

    # Behaviour
    strict_event_validation: bool = Field(
        default=True,
        description="Fail boot when a handler subscribes to an event no service emits",
    )  # fmt: skip
    default_queue: str = Field(
        default="default",
        description="Queue used for async service calls that do not name one",
    )  # fmt: skip
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Framework log level",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | None) -> str:
        """Normalize and validate log level."""
        if v is None:
            return "INFO"

        v_upper = str(v).upper()

        allowed = {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR"}
        if v_upper not in allowed:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {', '.join(sorted(allowed))}")

        return v_upper

    model_config = SettingsConfigDict(
        env_prefix="SERVICE_KIT_",  # Prefix for env vars
        case_sensitive=False,
        extra="ignore",  # Ignore unexpected env vars
        env_file=".env",  # Optional .env loading (if present)
        env_file_encoding="utf-8",
    )

    def schema_dir_for(self, namespace: str) -> Path:
        """Return the directory containing the schema files of one owner.

        Example:
            >>> Settings(root_path="/srv/app").schema_dir_for("process_payment")
            PosixPath('/srv/app/app/schemas/process_payment')
        """
        return self.root_path / self.schemas_dir / namespace

    def schema_path_for(self, namespace: str, kind: str) -> Path:
        """Return the full path of a schema file.

        Args:
            namespace: Owner namespace (e.g. ``"process_payment"``)
            kind: Schema kind (``"arguments"``, ``"result"`` or ``"payload"``)

        Returns:
            ``{root_path}/{schemas_dir}/{namespace}/{kind}.json``
        """
        return self.schema_dir_for(namespace) / f"{kind}.json"

    def namespace_roots(self) -> list[str]:
        """Return the module prefixes cut off when deriving schema namespaces.

        These are the configured packages followed by the dotted forms of the
        service and handler directories, so ``app.services.users.CreateService``
        maps to the ``users/create`` namespace.
        """
        roots = [self.services_package, self.events_package]
        for directory in (self.services_dir, self.events_dir):
            roots.append(Path(directory).as_posix().strip("/").replace("/", "."))
        return [root for root in roots if root]


@lru_cache
def get_settings() -> Settings:
    """Return the cached ``Settings`` instance.

    The first invocation reads environment variables / .env file; subsequent
    calls reuse the same object to ensure consistent config.
    """

    return Settings()


_override: Settings | None = None


def current_settings() -> Settings:
    """Return the settings installed with ``configure`` or the cached defaults."""
    return _override if _override is not None else get_settings()


def configure(settings: Settings | None = None, **overrides: Any) -> Settings:
    """Install process-wide settings.

    Either pass a ready ``Settings`` instance or keyword overrides applied on
    top of the current values.

    Example:
        ```python
        configure(strict_event_validation=False, schemas_dir="lib/schemas")
        ```
    """
    global _override

    if settings is None:
        settings = Settings.model_validate({**current_settings().model_dump(), **overrides})
    _override = settings
    return settings


def reset_settings() -> None:
    """Drop configured overrides and the cached environment settings."""
    global _override

    _override = None
    get_settings.cache_clear()


__all__ = ["Settings", "configure", "current_settings", "get_settings", "reset_settings"]
