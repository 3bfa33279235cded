"""CLI module for service-kit.

Provides command-line tools to inspect how services and event handlers are wired.
"""

from service_kit.cli.app import app

__all__ = ["app"]
