"""Save and restore the whole ledger. Entities round-trip through their JSON payloads."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from sportsbook.ledger.core import Ledger
from sportsbook.models import Bet, Customer, Event, Transaction

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)


def save_ledger(conn: DuckDBPyConnection, ledger: Ledger) -> None:
    """Replace stored state with the ledger's current state in one transaction."""
    events = ledger.list_events()
    bets = ledger.list_bets()
    customers = ledger.list_customers()
    journal = ledger.transactions()
    conn.execute("BEGIN TRANSACTION")
    try:
        for table in ("events", "bets", "customers", "transactions"):
            conn.execute(f"DELETE FROM {table}")
        if events:
            conn.executemany(
                "INSERT INTO events (event_id, seq, name, status, created_at, payload) VALUES (?, ?, ?, ?, ?, ?)",
                [
                    [e.event_id, i, e.name, e.status.value, e.created_at, e.model_dump_json()]
                    for i, e in enumerate(events)
                ],
            )
        if bets:
            conn.executemany(
                """
                INSERT INTO bets (bet_id, seq, customer_id, employee_id, bet_type, status, wager_amount, potential_payout, created_at, updated_at, payload)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    [
                        b.bet_id,
                        i,
                        b.customer_id,
                        b.employee_id,
                        b.bet_type.value,
                        b.status.value,
                        b.wager_amount,
                        b.potential_payout,
                        b.created_at,
                        b.updated_at,
                        b.model_dump_json(),
                    ]
                    for i, b in enumerate(bets)
                ],
            )
        if customers:
            conn.executemany(
                "INSERT INTO customers (customer_id, seq, name, payload) VALUES (?, ?, ?, ?)",
                [[c.customer_id, i, c.name, c.model_dump_json()] for i, c in enumerate(customers)],
            )
        if journal:
            conn.executemany(
                "INSERT INTO transactions (transaction_id, seq, customer_id, kind, created_at, payload) VALUES (?, ?, ?, ?, ?, ?)",
                [
                    [t.transaction_id, i, t.customer_id, t.kind.value, t.created_at, t.model_dump_json()]
                    for i, t in enumerate(journal)
                ],
            )
        conn.execute("COMMIT")
    except Exception:
        conn.execute("ROLLBACK")
        raise
    log.debug("ledger_saved", events=len(events), bets=len(bets), customers=len(customers), transactions=len(journal))


def _payloads(conn: DuckDBPyConnection, table: str) -> list[str]:
    rows = conn.execute(f"SELECT payload FROM {table} ORDER BY seq").fetchall()
    return [r[0] for r in rows]


def load_ledger(conn: DuckDBPyConnection, ledger: Ledger) -> Ledger:
    """Populate an empty ledger from storage. Returns the same ledger."""
    events = [Event.model_validate_json(p) for p in _payloads(conn, "events")]
    bets = [Bet.model_validate_json(p) for p in _payloads(conn, "bets")]
    customers = [Customer.model_validate_json(p) for p in _payloads(conn, "customers")]
    journal = [Transaction.model_validate_json(p) for p in _payloads(conn, "transactions")]
    ledger.events.load(events)
    ledger.bets.load(bets)
    ledger.customers.load(customers, journal)
    log.debug("ledger_loaded", events=len(events), bets=len(bets), customers=len(customers))
    return ledger
