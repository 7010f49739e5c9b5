"""Customer account and balance journal."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, computed_field

from sportsbook.money import ZERO, Money, to_decimal


class TransactionKind(str, Enum):
    WAGER = "WAGER"
    PAYOUT = "PAYOUT"
    CREDIT = "CREDIT"
    WITHDRAWAL = "WITHDRAWAL"
    ADJUSTMENT = "ADJUSTMENT"
    REFUND = "REFUND"


class Transaction(BaseModel):
    """One signed balance change."""

    transaction_id: str
    customer_id: str
    kind: TransactionKind
    amount: Money
    bet_id: str | None = None
    created_at: int
    note: str | None = None


class Customer(BaseModel):
    """Cash balance plus lifetime betting aggregates."""

    customer_id: str
    name: str
    total_bets: int = 0
    total_wagered: Money = ZERO
    total_won: Money = ZERO
    balance: Money = ZERO  # may go negative
    last_bet: int | None = None  # ms epoch
    credit_limit: Money | None = None  # shown to operators, never enforced
    created_at: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def net_profit(self) -> Decimal:
        return self.total_won - self.total_wagered

    def adjust_balance(self, delta: Decimal | float | int) -> Decimal:
        """Apply a signed delta to balance. Returns the new balance."""
        self.balance = self.balance + to_decimal(delta)
        return self.balance

    def debit(self, amount: Decimal | float | int) -> Decimal:
        return self.adjust_balance(-to_decimal(amount))

    def credit(self, amount: Decimal | float | int) -> Decimal:
        return self.adjust_balance(to_decimal(amount))

    def record_outcome(self, wager_amount: Decimal, win_amount: Decimal, now_ms: int) -> None:
        """Fold a settled WON/LOST bet into the aggregates."""
        self.total_bets += 1
        self.total_wagered = self.total_wagered + to_decimal(wager_amount)
        self.total_won = self.total_won + to_decimal(win_amount)
        self.last_bet = now_ms
