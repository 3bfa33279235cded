"""Main CLI application."""

import typer

from service_kit.cli.commands import events
from service_kit.logging import setup_logging

app = typer.Typer(
    name="service-kit",
    help="service-kit CLI - Inspect services, events and handlers",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    log_level: str | None = typer.Option(None, "--log-level", help="Switch to full framework logging at this level"),
):
    """Global options for all commands."""
    if log_level:
        setup_logging(log_level)


app.command(name="check-handlers")(events.check_handlers)
app.command(name="list-events")(events.list_events)
