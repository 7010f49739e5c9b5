"""DuckDB persistence for the ledger."""
