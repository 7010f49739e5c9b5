"""Export bets to Parquet."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

_BET_COLUMNS = "bet_id, customer_id, employee_id, bet_type, status, wager_amount, potential_payout, created_at, updated_at, payload"


def export_bets_to_parquet(
    conn: DuckDBPyConnection,
    output_path: str | Path,
    customer_id: str | None = None,
) -> int:
    """Export stored bets to a Parquet file. Optional filter by customer_id. Returns row count."""
    path = Path(output_path).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    path_str = str(path).replace("'", "''")
    if customer_id:
        conn.execute(
            f"COPY (SELECT {_BET_COLUMNS} FROM bets WHERE customer_id = ? ORDER BY seq) TO '{path_str}' (FORMAT PARQUET)",
            [customer_id],
        )
        count = conn.execute("SELECT COUNT(*) FROM bets WHERE customer_id = ?", [customer_id]).fetchone()[0]
    else:
        conn.execute(f"COPY (SELECT {_BET_COLUMNS} FROM bets ORDER BY seq) TO '{path_str}' (FORMAT PARQUET)")
        count = conn.execute("SELECT COUNT(*) FROM bets").fetchone()[0]
    return count
