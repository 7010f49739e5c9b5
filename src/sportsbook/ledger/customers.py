"""Customer book - accounts plus the balance journal."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any, Iterable, Iterator

import structlog

from sportsbook.ledger.errors import NotFound, ValidationError
from sportsbook.models.customer import Customer, Transaction, TransactionKind
from sportsbook.money import ZERO, to_decimal

log = structlog.get_logger(__name__)


def parse_amount(value: Any, what: str = "amount") -> Decimal:
    """Finite Decimal from int/float/str/Decimal; anything else is a ValidationError."""
    try:
        amount = to_decimal(value)
    except (TypeError, ArithmeticError):
        raise ValidationError(f"invalid {what}: {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"{what} must be finite, got {value!r}")
    return amount


class CustomerBook:
    """Customers keyed by id; every balance change appends one Transaction."""

    def __init__(self) -> None:
        self._customers: dict[str, Customer] = {}
        self._journal: list[Transaction] = []

    def __len__(self) -> int:
        return len(self._customers)

    def __iter__(self) -> Iterator[Customer]:
        return iter(self._customers.values())

    def get(self, customer_id: str) -> Customer:
        customer = self._customers.get(customer_id)
        if customer is None:
            raise NotFound("customer", customer_id)
        return customer

    def create(
        self,
        name: str,
        now_ms: int,
        balance: Decimal | float | int = 0,
        credit_limit: Decimal | float | int | None = None,
    ) -> Customer:
        if not name or not name.strip():
            raise ValidationError("customer name is required")
        opening = parse_amount(balance, "opening balance")
        limit = parse_amount(credit_limit, "credit limit") if credit_limit is not None else None
        customer = Customer(
            customer_id=str(uuid.uuid4()),
            name=name.strip(),
            credit_limit=limit,
            created_at=now_ms,
        )
        self._customers[customer.customer_id] = customer
        if opening != ZERO:
            self.adjust_balance(customer.customer_id, opening, now_ms, TransactionKind.ADJUSTMENT, note="opening balance")
        log.info("customer_created", customer_id=customer.customer_id, name=customer.name)
        return customer

    def adjust_balance(
        self,
        customer_id: str,
        delta: Decimal | float | int,
        now_ms: int,
        kind: TransactionKind = TransactionKind.ADJUSTMENT,
        bet_id: str | None = None,
        note: str | None = None,
    ) -> Transaction:
        """Apply a signed balance change and journal it. No credit-limit check."""
        customer = self.get(customer_id)
        amount = parse_amount(delta)
        txn = Transaction(
            transaction_id=str(uuid.uuid4()),
            customer_id=customer_id,
            kind=TransactionKind(kind),
            amount=amount,
            bet_id=bet_id,
            created_at=now_ms,
            note=note,
        )
        customer.adjust_balance(amount)
        self._journal.append(txn)
        log.info(
            "balance_adjusted",
            customer_id=customer_id,
            kind=txn.kind.value,
            amount=str(amount),
            balance=str(customer.balance),
        )
        return txn

    def transactions(self, customer_id: str | None = None) -> list[Transaction]:
        if customer_id is None:
            return list(self._journal)
        return [t for t in self._journal if t.customer_id == customer_id]

    def load(self, customers: Iterable[Customer], journal: Iterable[Transaction]) -> None:
        self._customers = {c.customer_id: c for c in customers}
        self._journal = list(journal)
