"""DuckDB connection and schema init."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
-- Events with their selections and volume (JSON payload of models.Event)
CREATE TABLE IF NOT EXISTS events (
    event_id        VARCHAR PRIMARY KEY,
    seq             BIGINT NOT NULL,
    name            VARCHAR NOT NULL,
    status          VARCHAR NOT NULL,
    created_at      BIGINT NOT NULL,
    payload         JSON NOT NULL
);

-- Bets: payload legs carry the odds frozen at placement
CREATE TABLE IF NOT EXISTS bets (
    bet_id          VARCHAR PRIMARY KEY,
    seq             BIGINT NOT NULL,
    customer_id     VARCHAR NOT NULL,
    employee_id     VARCHAR NOT NULL,
    bet_type        VARCHAR NOT NULL,
    status          VARCHAR NOT NULL,
    wager_amount    DECIMAL(18, 2) NOT NULL,
    potential_payout DECIMAL(18, 2) NOT NULL,
    created_at      BIGINT NOT NULL,
    updated_at      BIGINT NOT NULL,
    payload         JSON NOT NULL
);

-- Customer accounts
CREATE TABLE IF NOT EXISTS customers (
    customer_id     VARCHAR PRIMARY KEY,
    seq             BIGINT NOT NULL,
    name            VARCHAR NOT NULL,
    payload         JSON NOT NULL
);

-- Balance journal (append-only)
CREATE TABLE IF NOT EXISTS transactions (
    transaction_id  VARCHAR PRIMARY KEY,
    seq             BIGINT NOT NULL,
    customer_id     VARCHAR NOT NULL,
    kind            VARCHAR NOT NULL,
    created_at      BIGINT NOT NULL,
    payload         JSON NOT NULL
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager."""
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables if they do not exist."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise
