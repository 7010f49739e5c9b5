"""Bet, BetLeg - placed wagers with odds frozen at placement."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from sportsbook.models.event import SelectionStatus
from sportsbook.money import ZERO, Money


class BetStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"  # reserved; no transition produces it
    WON = "WON"
    LOST = "LOST"
    VOIDED = "VOIDED"


SETTLED_STATUSES = (BetStatus.WON, BetStatus.LOST, BetStatus.VOIDED)


class BetType(str, Enum):
    SINGLE = "SINGLE"
    PARLAY = "PARLAY"


class LegRequest(BaseModel):
    """A selection the customer wants on the slip."""

    event_id: str
    selection_id: str


class BetLeg(BaseModel):
    """Immutable copy of a selection as it was quoted when the bet was placed."""

    model_config = ConfigDict(frozen=True)

    selection_id: str
    event_id: str
    event_name: str
    selection_name: str
    odds: Money
    status: SelectionStatus = SelectionStatus.PENDING


class Bet(BaseModel):
    """A single or parlay bet. Only notes may change once status leaves OPEN."""

    bet_id: str
    customer_id: str
    customer_name: str = ""
    employee_id: str
    created_at: int  # ms epoch
    updated_at: int
    status: BetStatus = BetStatus.OPEN
    bet_type: BetType
    wager_amount: Money
    potential_payout: Money = ZERO
    legs: list[BetLeg] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    paid_out: bool = False  # payout credited to balance (at settlement or later)

    @property
    def is_open(self) -> bool:
        return self.status == BetStatus.OPEN

    @property
    def event_ids(self) -> list[str]:
        return [leg.event_id for leg in self.legs]

    def get_leg(self, selection_id: str) -> BetLeg | None:
        for leg in self.legs:
            if leg.selection_id == selection_id:
                return leg
        return None
