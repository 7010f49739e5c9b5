"""Customers subcommand: create, list, adjust, payout, credit, history."""

from __future__ import annotations

import typer

from sportsbook.cli.session import ledger_session, unwrap_or_exit
from sportsbook.ledger import LedgerError

app = typer.Typer(help="Customer accounts and balances")


@app.command("create")
def create(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", "-n", help="Customer name"),
    balance: str = typer.Option("0", "--balance", help="Opening balance"),
) -> None:
    """Add a customer."""
    with ledger_session(ctx) as ledger:
        customer = unwrap_or_exit(ledger.create_customer(name, balance=balance))
    typer.echo(f"Customer id: {customer.customer_id}")


@app.command("list")
def list_customers(ctx: typer.Context) -> None:
    """List customers with balance and lifetime totals."""
    with ledger_session(ctx, write=False) as ledger:
        rows = ledger.list_customers()
    for c in rows:
        typer.echo(
            f"  {c.customer_id}  {c.name[:30]:30}  balance={c.balance}  bets={c.total_bets}"
            f"  wagered={c.total_wagered}  won={c.total_won}  net={c.net_profit}"
        )
    typer.echo(f"Total: {len(rows)} customers")


@app.command("adjust")
def adjust(
    ctx: typer.Context,
    customer_id: str = typer.Argument(..., help="Customer ID"),
    amount: str = typer.Option(..., "--amount", "-a", help="Signed amount (negative debits)"),
    note: str | None = typer.Option(None, "--note"),
) -> None:
    """Manual balance adjustment."""
    with ledger_session(ctx) as ledger:
        unwrap_or_exit(ledger.adjust_balance(customer_id, amount, note=note))
        customer = ledger.get_customer(customer_id)
    typer.echo(f"Balance: {customer.balance}")


@app.command("payout")
def payout(
    ctx: typer.Context,
    customer_id: str = typer.Argument(..., help="Customer ID"),
    amount: str = typer.Option(..., "--amount", "-a", help="Cash paid to the customer"),
) -> None:
    """Pay cash out of the customer's balance."""
    with ledger_session(ctx) as ledger:
        unwrap_or_exit(ledger.payout(customer_id, amount))
        customer = ledger.get_customer(customer_id)
    typer.echo(f"Balance: {customer.balance}")


@app.command("credit")
def credit(
    ctx: typer.Context,
    customer_id: str = typer.Argument(..., help="Customer ID"),
    bet: list[str] = typer.Option(..., "--bet", "-b", help="WON bet to credit, repeatable"),
) -> None:
    """Credit winnings of settled WON bets to balance."""
    with ledger_session(ctx) as ledger:
        total = unwrap_or_exit(ledger.credit_winnings(customer_id, bet))
        customer = ledger.get_customer(customer_id)
    typer.echo(f"Credited {total}. Balance: {customer.balance}")


@app.command("history")
def history(
    ctx: typer.Context,
    customer_id: str = typer.Argument(..., help="Customer ID"),
) -> None:
    """Balance journal, newest first."""
    with ledger_session(ctx, write=False) as ledger:
        try:
            txns = ledger.transactions(customer_id)
        except LedgerError as e:
            typer.echo(f"Error [{e.code}]: {e.message}")
            raise typer.Exit(1)
    for t in reversed(txns):
        bet = f"  bet={t.bet_id[:8]}" if t.bet_id else ""
        typer.echo(f"  {t.created_at}  {t.kind.value:10}  {t.amount:>12}{bet}  {t.note or ''}")
