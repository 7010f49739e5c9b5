"""Ledger error taxonomy. Every error leaves the ledger unchanged."""

from __future__ import annotations


class LedgerError(Exception):
    """Base for ledger failures. code is machine-readable (API/CLI)."""

    code = "ledger_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Bad input: non-positive wager, empty slip, unknown status value."""

    code = "validation_error"


class InvalidComposition(ValidationError):
    """Slip does not fit its bet type (leg count, two legs on one event)."""

    code = "invalid_composition"


class NotFound(LedgerError):
    """Unknown bet, event, selection or customer id."""

    code = "not_found"

    def __init__(self, kind: str, ident: str) -> None:
        super().__init__(f"{kind} not found: {ident}")
        self.kind = kind
        self.ident = ident


class InvalidState(LedgerError):
    """Operation not allowed in the entity's current state."""

    code = "invalid_state"
