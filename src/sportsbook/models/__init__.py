"""Canonical schema (Pydantic) - Event, Selection, Bet, BetLeg, Customer, Transaction."""

from sportsbook.models.bet import Bet, BetLeg, BetStatus, BetType, LegRequest
from sportsbook.models.customer import Customer, Transaction, TransactionKind
from sportsbook.models.event import Event, EventStatus, Selection, SelectionInput, SelectionStatus

__all__ = [
    "Event",
    "EventStatus",
    "Selection",
    "SelectionInput",
    "SelectionStatus",
    "Bet",
    "BetLeg",
    "BetStatus",
    "BetType",
    "LegRequest",
    "Customer",
    "Transaction",
    "TransactionKind",
]
