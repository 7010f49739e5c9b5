"""Betting ledger: event, bet and customer books behind the Ledger aggregate."""

from sportsbook.ledger.bets import compute_payout
from sportsbook.ledger.core import Ledger, system_clock
from sportsbook.ledger.errors import InvalidComposition, InvalidState, LedgerError, NotFound, ValidationError
from sportsbook.ledger.result import OpResult

__all__ = [
    "Ledger",
    "OpResult",
    "LedgerError",
    "ValidationError",
    "InvalidComposition",
    "NotFound",
    "InvalidState",
    "compute_payout",
    "system_clock",
]
