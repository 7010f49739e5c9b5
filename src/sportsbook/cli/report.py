"""Report subcommand: summary, employees, export."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import typer

from sportsbook.cli.session import ledger_session
from sportsbook.reports import employee_stats, generate_report, week_over_week
from sportsbook.storage.db import get_connection, init_schema
from sportsbook.storage.export import export_bets_to_parquet

app = typer.Typer(help="Reports over the bet ledger")


def _window(days: int, end: datetime | None = None) -> tuple[int, int]:
    end = end or datetime.now(timezone.utc)
    start = (end - timedelta(days=days - 1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return int(start.timestamp() * 1000), int(end.timestamp() * 1000)


@app.command("summary")
def summary(
    ctx: typer.Context,
    days: int = typer.Option(7, "--days", "-d", min=1, help="Days back from today"),
) -> None:
    """Totals, status breakdown and daily buckets, with change vs the prior period."""
    start_ts, end_ts = _window(days)
    prev_end = start_ts - 1
    prev_start = prev_end - days * 86_400_000 + 1
    with ledger_session(ctx, write=False) as ledger:
        bets = ledger.list_bets()
        customers = ledger.list_customers()
    current = generate_report(bets, customers, start_ts, end_ts)
    previous = generate_report(bets, customers, prev_start, prev_end)
    changes = week_over_week(current, previous)
    typer.echo(f"Bets: {current.total_bets}  ({changes['bets_change']:+}%)")
    typer.echo(f"Wagered: {current.total_wagered}  ({changes['wager_change']:+}%)")
    typer.echo(f"Paid out: {current.total_paid_out}")
    typer.echo(f"House profit: {current.house_profit} ({current.house_profit_pct}%)  ({changes['profit_change']:+}%)")
    typer.echo(f"Average bet: {current.avg_bet_amount}")
    typer.echo("By status:")
    for row in current.bets_by_status:
        typer.echo(f"  {row.status.value:6}  {row.count:5}  {row.amount}")
    typer.echo("Daily:")
    for day in current.daily_stats:
        typer.echo(f"  {day.date}  bets={day.bets_placed}  wagered={day.wager_amount}  profit={day.profit}")
    if current.top_customers:
        typer.echo("Top customers:")
        for c in current.top_customers:
            typer.echo(f"  {c.name[:30]:30}  wagered={c.total_wagered}  net={c.net_profit}")


@app.command("employees")
def employees(ctx: typer.Context) -> None:
    """Bets processed per employee."""
    with ledger_session(ctx, write=False) as ledger:
        stats = employee_stats(ledger.list_bets())
    for s in stats:
        typer.echo(f"  {s.employee_id:12}  bets={s.bets_processed}  amount={s.total_bet_amount}  customers={s.unique_customers}")


@app.command("export")
def export(
    ctx: typer.Context,
    output: str = typer.Option("bets.parquet", "--output", "-o", help="Output path"),
    customer: str | None = typer.Option(None, "--customer", help="Filter by customer ID"),
) -> None:
    """Export stored bets to Parquet."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        count = export_bets_to_parquet(conn, output, customer_id=customer)
        typer.echo(f"Exported {count} bets to {output}")
    finally:
        conn.close()
