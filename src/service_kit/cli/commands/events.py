"""Event wiring commands."""

from pathlib import Path

import typer
from rich.table import Table

from service_kit.cli.utils import add_import_path, console, load_modules
from service_kit.event_bus import find_orphaned_handlers
from service_kit.services.registry import get_service_registry

ServicesOption = typer.Option(None, "--services", "-s", help="Package containing the services (repeatable)")
EventsOption = typer.Option(None, "--events", "-e", help="Package containing the event handlers (repeatable)")
AppDirOption = typer.Option(Path("."), "--app-dir", help="Directory added to the import path")


def check_handlers(
    services: list[str] | None = ServicesOption,
    events: list[str] | None = EventsOption,
    app_dir: Path = AppDirOption,
):
    """Check that every event handler subscribes to an event some service emits.

    Imports the given packages (or the ones configured through
    SERVICE_KIT_SERVICES_PACKAGE / SERVICE_KIT_EVENTS_PACKAGE), then lists
    each handler with its event. Exits with code 1 when a handler is orphaned.

    Examples:
        service-kit check-handlers --services app.services --events app.events
        service-kit check-handlers
    """
    add_import_path(app_dir)
    load_modules(services, events)

    registry = get_service_registry()
    handlers = registry.handlers_by_event()
    console.print(f"[bold]Checking {sum(len(h) for h in handlers.values())} handler(s)...[/bold]\n")

    orphaned = find_orphaned_handlers()
    orphaned_events = {event for _, event in orphaned}
    for event_name in sorted(handlers):
        status = "[red]orphaned[/red]" if event_name in orphaned_events else "[green]ok[/green]"
        for handler in handlers[event_name]:
            console.print(f"  {handler.__qualname__} -> :{event_name} {status}")

    if orphaned:
        console.print(f"\n[red]{len(orphaned)} handler(s) subscribe to events no service emits[/red]")
        raise typer.Exit(1)

    console.print("\n[green]All handlers subscribe to emitted events[/green]")


def list_events(
    services: list[str] | None = ServicesOption,
    events: list[str] | None = EventsOption,
    app_dir: Path = AppDirOption,
):
    """List the events each service emits and the handlers listening to them.

    Examples:
        service-kit list-events --services app.services --events app.events
    """
    add_import_path(app_dir)
    load_modules(services, events)

    registry = get_service_registry()
    handlers = registry.handlers_by_event()

    table = Table(title="Events")
    table.add_column("Event")
    table.add_column("Emitted by")
    table.add_column("Handled by")

    emitters: dict[str, list[str]] = {}
    for service_name, event_names in registry.emitted_events_by_service().items():
        for event_name in event_names:
            emitters.setdefault(event_name, []).append(service_name.rsplit(".", 1)[-1])

    for event_name in sorted(set(emitters) | set(handlers)):
        table.add_row(
            event_name,
            ", ".join(sorted(emitters.get(event_name, []))) or "-",
            ", ".join(sorted(h.__qualname__ for h in handlers.get(event_name, []))) or "-",
        )

    if table.row_count == 0:
        console.print("[yellow]No events found[/yellow]")
        return
    console.print(table)
