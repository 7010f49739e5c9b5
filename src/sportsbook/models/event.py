"""Event, Selection - wagerable outcomes and their live odds."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from sportsbook.money import ZERO, Money


class EventStatus(str, Enum):
    UPCOMING = "UPCOMING"
    LIVE = "LIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class SelectionStatus(str, Enum):
    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"
    VOIDED = "VOIDED"


class SelectionInput(BaseModel):
    """Name and opening odds for a selection on a new event."""

    name: str = Field(..., min_length=1)
    odds: Money


class Selection(BaseModel):
    """One outcome of an event. odds is derived by repricing; initial_odds never changes."""

    selection_id: str
    name: str
    initial_odds: Money
    odds: Money
    volume: Money = ZERO
    status: SelectionStatus = SelectionStatus.PENDING


class Event(BaseModel):
    """Event with its selections and wager exposure."""

    event_id: str
    name: str
    category: str = ""
    status: EventStatus = EventStatus.UPCOMING
    start_time: int | None = None  # ms epoch
    end_time: int | None = None
    selections: list[Selection] = Field(default_factory=list)
    total_wagered: Money = ZERO
    selection_volume: dict[str, Money] = Field(default_factory=dict)
    last_odds_update: int = 0  # ms epoch
    created_at: int = 0

    def get_selection(self, selection_id: str) -> Selection | None:
        for sel in self.selections:
            if sel.selection_id == selection_id:
                return sel
        return None

    @property
    def is_open_for_betting(self) -> bool:
        return self.status in (EventStatus.UPCOMING, EventStatus.LIVE)

    def volume_total(self) -> Decimal:
        """Sum of selection_volume; equals total_wagered."""
        return sum(self.selection_volume.values(), ZERO)
