"""Application bootstrap: load services and handlers, then validate the wiring.

Service and handler classes register themselves when their modules are
imported, so booting an application amounts to importing its service and
handler modules and checking that every handler listens to an event some
service emits.

Modules are found either by package (``services_package``/``events_package``
settings) or, when no package is configured, by directory (``services_dir``/
``events_dir`` relative to ``root_path``).
"""

import importlib
import importlib.util
import pkgutil
import sys
from pathlib import Path
from types import ModuleType

from loguru import logger

from service_kit.event_bus import get_event_bus, validate_all_handlers
from service_kit.services.registry import get_service_registry
from service_kit.settings import Settings, configure, current_settings
from service_kit.validation import get_schema_validator


def autodiscover(package: str | ModuleType, reload: bool = False) -> list[str]:
    """Import a package and every module below it.

    Args:
        package: Dotted package name or an imported package
        reload: Re-execute modules that were already imported

    Returns:
        Names of the imported modules, package first
    """
    if isinstance(package, str):
        package = importlib.import_module(package)
    if reload:
        package = importlib.reload(package)

    names = [package.__name__]
    search_path = getattr(package, "__path__", None)
    if search_path is None:
        return names

    for module_info in pkgutil.walk_packages(search_path, prefix=f"{package.__name__}."):
        module = sys.modules.get(module_info.name)
        if module is not None and reload:
            importlib.reload(module)
        elif module is None:
            importlib.import_module(module_info.name)
        names.append(module_info.name)

    logger.debug(f"Autodiscovered {len(names)} module(s) in {package.__name__}")
    return names


def autodiscover_path(directory: Path, root: Path, reload: bool = False) -> list[str]:
    """Import every ``*.py`` file below ``directory`` as a module.

    Module names are derived from the file path relative to ``root``
    (``app/services/create_user.py`` -> ``app.services.create_user``).
    """
    if not directory.is_dir():
        logger.debug(f"Nothing to discover, {directory} is not a directory")
        return []

    names = []
    for path in sorted(directory.rglob("*.py")):
        relative = path.relative_to(root).with_suffix("")
        parts = relative.parts[:-1] if relative.name == "__init__" else relative.parts
        name = ".".join(parts)
        if name in sys.modules and not reload:
            names.append(name)
            continue

        spec = importlib.util.spec_from_file_location(name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load module from {path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            del sys.modules[name]
            raise
        names.append(name)

    logger.debug(f"Autodiscovered {len(names)} module(s) in {directory}")
    return names


def _load(package: str | None, directory: str, settings: Settings, reload: bool) -> list[str]:
    if package:
        return autodiscover(package, reload=reload)
    return autodiscover_path(settings.root_path / directory, settings.root_path, reload=reload)


def load_application(settings: Settings | None = None, reload: bool = False) -> tuple[list[str], list[str]]:
    """Import the service and handler modules named by the settings.

    Returns:
        ``(service module names, handler module names)``
    """
    settings = settings or current_settings()
    services = _load(settings.services_package, settings.services_dir, settings, reload)
    handlers = _load(settings.events_package, settings.events_dir, settings, reload)
    logger.debug(f"Loaded {len(services)} service module(s) and {len(handlers)} handler module(s)")
    return services, handlers


def boot(settings: Settings | None = None, reload: bool = False) -> None:
    """Load every service and handler, then validate handler subscriptions.

    Args:
        settings: Settings to install before booting (default: current settings)
        reload: Re-execute already imported modules

    Raises:
        OrphanedHandlerError: If a handler subscribes to an event no service emits
    """
    if settings is not None:
        configure(settings)
    settings = current_settings()

    logger.info("Booting service kit")
    load_application(settings, reload=reload)
    validate_all_handlers()

    registry = get_service_registry()
    logger.info(f"Service kit ready: {len(registry.services())} service(s), {len(registry.handlers())} handler(s)")


def reload(settings: Settings | None = None) -> None:
    """Drop every subscription and cached schema, then boot again.

    Used after code changes during development: re-imported handler classes
    subscribe afresh instead of piling up next to their stale versions.
    """
    logger.info("Reloading service kit")
    get_event_bus().clear()
    get_schema_validator().clear_cache()
    get_service_registry().clear()
    boot(settings, reload=True)


__all__ = ["autodiscover", "autodiscover_path", "boot", "load_application", "reload"]
