"""Bets subcommand: place, settle, leg, note, delete, list."""

from __future__ import annotations

import typer

from sportsbook.cli.session import ledger_session, unwrap_or_exit
from sportsbook.models import BetStatus, BetType, LegRequest, SelectionStatus
from sportsbook.odds import format_odds

app = typer.Typer(help="Bet placement and settlement")


def _parse_leg(raw: str) -> LegRequest:
    event_id, sep, selection_id = raw.partition(":")
    if not sep or not event_id or not selection_id:
        raise typer.BadParameter(f"expected EVENT_ID:SELECTION_ID, got {raw!r}")
    return LegRequest(event_id=event_id, selection_id=selection_id)


@app.command("place")
def place(
    ctx: typer.Context,
    customer: str = typer.Option(..., "--customer", help="Customer ID"),
    employee: str = typer.Option(..., "--employee", "-e", help="Operator taking the bet"),
    wager: str = typer.Option(..., "--wager", "-w", help="Stake"),
    leg: list[str] = typer.Option(..., "--leg", "-l", help="EVENT_ID:SELECTION_ID, repeatable"),
    bet_type: BetType | None = typer.Option(None, "--type", "-t", help="SINGLE or PARLAY (default by leg count)"),
) -> None:
    """Place a bet at the current odds and debit the customer."""
    legs = [_parse_leg(raw) for raw in leg]
    kind = bet_type or (BetType.SINGLE if len(legs) == 1 else BetType.PARLAY)
    with ledger_session(ctx) as ledger:
        bet = unwrap_or_exit(ledger.create_bet(customer, employee, kind, wager, legs))
    typer.echo(f"Bet id: {bet.bet_id}  {bet.bet_type.value}")
    for lg in bet.legs:
        typer.echo(f"  {lg.event_name} / {lg.selection_name} @ {format_odds(lg.odds)}")
    typer.echo(f"Wager: {bet.wager_amount}  Potential payout: {bet.potential_payout}")


@app.command("settle")
def settle(
    ctx: typer.Context,
    bet_id: str = typer.Argument(..., help="Bet ID"),
    status: BetStatus = typer.Option(..., "--status", "-s", help="WON, LOST or VOIDED"),
    credit: bool = typer.Option(False, "--credit/--no-credit", help="Credit a win to the customer's balance"),
) -> None:
    """Settle an open bet."""
    with ledger_session(ctx) as ledger:
        bet = unwrap_or_exit(ledger.settle(bet_id, status, credit_to_balance=credit))
    typer.echo(f"Bet {bet.bet_id} marked {bet.status.value}")
    if bet.paid_out:
        typer.echo(f"Credited {bet.potential_payout} to balance")


@app.command("leg")
def leg_outcome(
    ctx: typer.Context,
    bet_id: str = typer.Argument(..., help="Bet ID"),
    selection_id: str = typer.Argument(..., help="Selection ID on the bet"),
    status: SelectionStatus = typer.Option(..., "--status", "-s"),
) -> None:
    """Mark one leg of an open bet."""
    with ledger_session(ctx) as ledger:
        bet = unwrap_or_exit(ledger.update_selection_outcome(bet_id, selection_id, status))
    for lg in bet.legs:
        typer.echo(f"  {lg.selection_name}: {lg.status.value}")


@app.command("note")
def note(
    ctx: typer.Context,
    bet_id: str = typer.Argument(..., help="Bet ID"),
    text: str = typer.Argument(..., help="Audit note"),
) -> None:
    """Attach an audit note to a bet."""
    with ledger_session(ctx) as ledger:
        bet = unwrap_or_exit(ledger.annotate_bet(bet_id, text))
    typer.echo(f"{len(bet.notes)} notes on {bet.bet_id}")


@app.command("delete")
def delete(
    ctx: typer.Context,
    bet_id: str = typer.Argument(..., help="Bet ID"),
) -> None:
    """Delete an open bet, refunding the wager and reversing event volume."""
    with ledger_session(ctx) as ledger:
        bet = unwrap_or_exit(ledger.delete_bet(bet_id))
    typer.echo(f"Deleted {bet.bet_id}; refunded {bet.wager_amount}")


@app.command("list")
def list_bets(
    ctx: typer.Context,
    status: BetStatus | None = typer.Option(None, "--status", "-s"),
    customer: str | None = typer.Option(None, "--customer"),
    oldest_first: bool = typer.Option(False, "--oldest-first", help="Ascending by creation time"),
) -> None:
    """List bets, newest first."""
    with ledger_session(ctx, write=False) as ledger:
        rows = ledger.list_bets(customer_id=customer, status=status, descending=not oldest_first)
    for b in rows:
        typer.echo(
            f"  {b.bet_id}  {b.status.value:6}  {b.bet_type.value:6}  {b.customer_name[:20]:20}"
            f"  wager={b.wager_amount}  payout={b.potential_payout}  legs={len(b.legs)}"
        )
    typer.echo(f"Total: {len(rows)} bets")
