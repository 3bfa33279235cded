"""CLI entry point.

Usage:
    python -m service_kit.cli check-handlers --services app.services --events app.events
    service-kit check-handlers
    service-kit list-events
"""

from service_kit.cli.app import app
from service_kit.logging import setup_logging


def main() -> None:
    """CLI entry point: compact warnings on stderr unless ``--log-level`` asks for more."""
    setup_logging("WARNING", compact=True, intercept=False)
    app()


if __name__ == "__main__":
    main()
