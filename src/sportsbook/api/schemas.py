"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from pydantic import BaseModel, Field

from sportsbook.models import BetStatus, BetType, EventStatus, LegRequest, SelectionInput, SelectionStatus
from sportsbook.money import Money


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (consistent shape for 4xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. not_found, invalid_state")


# --- Events ---
class CreateEventRequest(BaseModel):
    name: str
    category: str = ""
    selections: list[SelectionInput]
    status: EventStatus = EventStatus.UPCOMING
    start_time: int | None = None
    end_time: int | None = None


class UpdateEventRequest(BaseModel):
    name: str | None = None
    category: str | None = None
    status: EventStatus | None = None
    start_time: int | None = None
    end_time: int | None = None


class UpdateSelectionRequest(BaseModel):
    name: str | None = None
    status: SelectionStatus | None = None


class DeleteEventResponse(BaseModel):
    event_id: str
    orphaned_bets: int


class QuoteResponse(BaseModel):
    event_id: str
    selection_id: str
    odds: Money


# --- Customers ---
class CreateCustomerRequest(BaseModel):
    name: str
    balance: Money = 0
    credit_limit: Money | None = None


class AmountRequest(BaseModel):
    amount: Money
    note: str | None = None


class CreditWinningsRequest(BaseModel):
    bet_ids: list[str] = Field(..., min_length=1)


class CreditWinningsResponse(BaseModel):
    customer_id: str
    credited: Money


# --- Bets ---
class CreateBetRequest(BaseModel):
    customer_id: str
    employee_id: str
    bet_type: BetType
    wager_amount: Money
    legs: list[LegRequest] = Field(default_factory=list)


class SettleBetRequest(BaseModel):
    status: BetStatus
    credit_to_balance: bool = False


class LegOutcomeRequest(BaseModel):
    status: SelectionStatus


class NoteRequest(BaseModel):
    note: str


class PayoutQuoteRequest(BaseModel):
    bet_type: BetType
    wager_amount: Money
    legs: list[LegRequest]


class PayoutQuoteResponse(BaseModel):
    potential_payout: Money
