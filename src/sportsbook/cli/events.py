"""Events subcommand: create, list, update, settle-selection, delete."""

from __future__ import annotations

import typer
from pydantic import ValidationError as SchemaError

from sportsbook.cli.session import ledger_session, unwrap_or_exit
from sportsbook.models import EventStatus, SelectionInput, SelectionStatus
from sportsbook.odds import format_odds

app = typer.Typer(help="Event and odds management")


def _parse_selection(raw: str) -> SelectionInput:
    name, sep, odds = raw.rpartition("=")
    if not sep or not name.strip():
        raise typer.BadParameter(f"expected NAME=ODDS, got {raw!r}")
    try:
        return SelectionInput(name=name.strip(), odds=odds.strip())
    except SchemaError:
        raise typer.BadParameter(f"invalid odds in {raw!r}") from None


@app.command("create")
def create(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", "-n", help="Event name"),
    category: str = typer.Option("", "--category", "-c", help="Category (Racing, Fighting, ...)"),
    selection: list[str] = typer.Option(..., "--selection", "-s", help="NAME=ODDS, repeatable"),
) -> None:
    """Create an event with its opening odds."""
    selections = [_parse_selection(s) for s in selection]
    with ledger_session(ctx) as ledger:
        event = unwrap_or_exit(ledger.create_event(name, category, selections))
    typer.echo(f"Event id: {event.event_id}")
    for sel in event.selections:
        typer.echo(f"  {sel.selection_id}  {format_odds(sel.odds)}  {sel.name}")


@app.command("list")
def list_events(
    ctx: typer.Context,
    status: EventStatus | None = typer.Option(None, "--status", help="Filter by status"),
) -> None:
    """List events with current odds and volume."""
    with ledger_session(ctx, write=False) as ledger:
        events = ledger.list_events(status)
    for e in events:
        typer.echo(f"{e.event_id}  [{e.status.value}]  {e.name}  wagered={e.total_wagered}")
        for sel in e.selections:
            typer.echo(
                f"    {sel.selection_id}  {format_odds(sel.odds)} (open {format_odds(sel.initial_odds)})"
                f"  vol={sel.volume}  {sel.status.value}  {sel.name}"
            )
    typer.echo(f"Total: {len(events)} events")


@app.command("update")
def update(
    ctx: typer.Context,
    event_id: str = typer.Argument(..., help="Event ID"),
    name: str | None = typer.Option(None, "--name", "-n"),
    category: str | None = typer.Option(None, "--category", "-c"),
    status: EventStatus | None = typer.Option(None, "--status"),
) -> None:
    """Edit event name, category or status."""
    with ledger_session(ctx) as ledger:
        event = unwrap_or_exit(ledger.update_event(event_id, name=name, category=category, status=status))
    typer.echo(f"Updated {event.event_id}: {event.name} [{event.status.value}]")


@app.command("result")
def result(
    ctx: typer.Context,
    event_id: str = typer.Argument(..., help="Event ID"),
    selection_id: str = typer.Argument(..., help="Selection ID"),
    status: SelectionStatus = typer.Option(..., "--status", help="Selection outcome"),
) -> None:
    """Record a selection's outcome on the event."""
    with ledger_session(ctx) as ledger:
        sel = unwrap_or_exit(ledger.update_selection(event_id, selection_id, status=status))
    typer.echo(f"{sel.name}: {sel.status.value}")


@app.command("delete")
def delete(
    ctx: typer.Context,
    event_id: str = typer.Argument(..., help="Event ID"),
) -> None:
    """Delete an event. Bets keep their own copies of its selections."""
    with ledger_session(ctx) as ledger:
        orphaned = unwrap_or_exit(ledger.delete_event(event_id))
    typer.echo(f"Deleted {event_id}")
    if orphaned:
        typer.echo(f"Warning: {orphaned} bets reference this event; its volume totals are gone.")
