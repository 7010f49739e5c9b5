"""Open the stored ledger for one CLI command and save it back afterwards."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from sportsbook.config.settings import Settings
from sportsbook.ledger import Ledger, OpResult
from sportsbook.storage.db import get_connection, init_schema
from sportsbook.storage.ledger_store import load_ledger, save_ledger


def build_ledger(settings: Settings) -> Ledger:
    return Ledger(settings.odds_config, refund_voided_wagers=settings.refund_voided_wagers)


@contextmanager
def ledger_session(ctx: typer.Context, write: bool = True) -> Iterator[Ledger]:
    """Yield the ledger loaded from settings.db_path; persist on clean exit when write is set."""
    settings: Settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        ledger = load_ledger(conn, build_ledger(settings))
        yield ledger
        if write:
            save_ledger(conn, ledger)
    finally:
        conn.close()


def unwrap_or_exit(result: OpResult):
    """Return the result value, or print the error and exit 1."""
    if not result.ok:
        typer.echo(f"Error [{result.error.code}]: {result.error.message}")
        raise typer.Exit(1)
    return result.value
