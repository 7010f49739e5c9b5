"""Ledger aggregate - the authoritative in-memory state for events, bets and customers.

Every mutating operation runs under one lock, validates completely before its
first write, and returns an OpResult instead of raising. Reads return deep
copies so callers can never alter a bet's frozen legs or any live state.
"""

from __future__ import annotations

import threading
import time
from decimal import Decimal
from typing import Any, Callable, Iterable, Sequence, TypeVar

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from sportsbook.ledger.bets import BetBook, compute_payout
from sportsbook.ledger.customers import CustomerBook, parse_amount
from sportsbook.ledger.errors import InvalidState, LedgerError, ValidationError
from sportsbook.ledger.events import EventBook
from sportsbook.ledger.result import OpResult
from sportsbook.models.bet import Bet, BetLeg, BetStatus, BetType, LegRequest
from sportsbook.models.customer import Customer, Transaction, TransactionKind
from sportsbook.models.event import Event, EventStatus, Selection, SelectionInput, SelectionStatus
from sportsbook.money import ZERO
from sportsbook.odds.engine import OddsConfig, OddsEngine

log = structlog.get_logger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

Clock = Callable[[], int]


def system_clock() -> int:
    """Wall clock in ms epoch."""
    return int(time.time() * 1000)


def _copy(model: M) -> M:
    return model.model_copy(deep=True)


class Ledger:
    """Events, bets and customers behind one lock, with an injected clock and odds config."""

    def __init__(
        self,
        odds_config: OddsConfig | None = None,
        clock: Clock | None = None,
        refund_voided_wagers: bool = False,
    ) -> None:
        self.engine = OddsEngine(odds_config)
        self.clock: Clock = clock or system_clock
        self.refund_voided_wagers = refund_voided_wagers
        self.events = EventBook(self.engine)
        self.bets = BetBook()
        self.customers = CustomerBook()
        self._lock = threading.RLock()

    @property
    def odds_config(self) -> OddsConfig:
        return self.engine.config

    @property
    def lock(self) -> threading.RLock:
        """The mutation lock; hold it to read or persist a consistent state."""
        return self._lock

    def _run(self, op: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> OpResult[T]:
        with self._lock:
            try:
                return OpResult.success(fn(*args, **kwargs))
            except LedgerError as e:
                log.warning("ledger_op_rejected", op=op, code=e.code, error=e.message)
                return OpResult.failure(e)

    # --- Events ---

    def create_event(
        self,
        name: str,
        category: str,
        selections: Iterable[SelectionInput | dict],
        status: EventStatus = EventStatus.UPCOMING,
        start_time: int | None = None,
        end_time: int | None = None,
    ) -> OpResult[Event]:
        def op() -> Event:
            event = self.events.create(
                name, category, selections, self.clock(), status=status, start_time=start_time, end_time=end_time
            )
            return _copy(event)

        return self._run("create_event", op)

    def update_event(
        self,
        event_id: str,
        *,
        name: str | None = None,
        category: str | None = None,
        status: EventStatus | str | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
    ) -> OpResult[Event]:
        return self._run(
            "update_event",
            lambda: _copy(
                self.events.update(
                    event_id, name=name, category=category, status=status, start_time=start_time, end_time=end_time
                )
            ),
        )

    def update_selection(
        self,
        event_id: str,
        selection_id: str,
        *,
        name: str | None = None,
        status: SelectionStatus | None = None,
    ) -> OpResult[Selection]:
        return self._run(
            "update_selection",
            lambda: _copy(self.events.update_selection(event_id, selection_id, name=name, status=status)),
        )

    def add_selection(self, event_id: str, name: str, odds: Decimal | float | str) -> OpResult[Selection]:
        return self._run("add_selection", lambda: _copy(self.events.add_selection(event_id, name, odds)))

    def remove_selection(self, event_id: str, selection_id: str) -> OpResult[Selection]:
        def op() -> Selection:
            referenced = self.bets.settled_reference(selection_id)
            return _copy(self.events.remove_selection(event_id, selection_id, referenced))

        return self._run("remove_selection", op)

    def delete_event(self, event_id: str) -> OpResult[int]:
        """Delete an event. Returns how many stored bets still reference it.

        Those bets keep their leg snapshots; the event's volume totals are gone.
        """

        def op() -> int:
            self.events.get(event_id)
            orphaned = len(self.bets.referencing(event_id))
            self.events.delete(event_id)
            if orphaned:
                log.warning("event_deleted_with_bets", event_id=event_id, orphaned_bets=orphaned)
            else:
                log.info("event_deleted", event_id=event_id)
            return orphaned

        return self._run("delete_event", op)

    def get_event(self, event_id: str) -> Event:
        with self._lock:
            return _copy(self.events.get(event_id))

    def list_events(self, status: EventStatus | None = None) -> list[Event]:
        with self._lock:
            return [_copy(e) for e in self.events if status is None or e.status == status]

    # --- Customers ---

    def create_customer(
        self,
        name: str,
        balance: Decimal | float | int = 0,
        credit_limit: Decimal | float | int | None = None,
    ) -> OpResult[Customer]:
        return self._run(
            "create_customer",
            lambda: _copy(self.customers.create(name, self.clock(), balance=balance, credit_limit=credit_limit)),
        )

    def adjust_balance(
        self,
        customer_id: str,
        delta: Decimal | float | int,
        note: str | None = None,
    ) -> OpResult[Transaction]:
        """Manual balance transaction (positive credits, negative debits)."""

        def op() -> Transaction:
            amount = parse_amount(delta)
            if amount == ZERO:
                raise ValidationError("adjustment amount is zero")
            return _copy(
                self.customers.adjust_balance(customer_id, amount, self.clock(), TransactionKind.ADJUSTMENT, note=note)
            )

        return self._run("adjust_balance", op)

    def payout(self, customer_id: str, amount: Decimal | float | int) -> OpResult[Transaction]:
        """Cash withdrawal: reduce balance by amount."""

        def op() -> Transaction:
            value = parse_amount(amount, "payout")
            if value <= ZERO:
                raise ValidationError(f"payout must be positive, got {value}")
            return _copy(
                self.customers.adjust_balance(customer_id, -value, self.clock(), TransactionKind.WITHDRAWAL)
            )

        return self._run("payout", op)

    def credit_winnings(self, customer_id: str, bet_ids: Sequence[str]) -> OpResult[Decimal]:
        """Credit payouts of WON bets that were settled without crediting. Returns total credited."""

        def op() -> Decimal:
            self.customers.get(customer_id)
            if not bet_ids:
                raise ValidationError("no bets selected")
            bets = [self.bets.get(bid) for bid in dict.fromkeys(bet_ids)]
            for bet in bets:
                if bet.customer_id != customer_id:
                    raise ValidationError(f"bet {bet.bet_id} belongs to another customer")
                if bet.status != BetStatus.WON:
                    raise InvalidState(f"bet {bet.bet_id} is {bet.status.value}, not WON")
                if bet.paid_out:
                    raise InvalidState(f"bet {bet.bet_id} already credited")
            now = self.clock()
            total = ZERO
            for bet in bets:
                self.customers.adjust_balance(
                    customer_id, bet.potential_payout, now, TransactionKind.CREDIT, bet_id=bet.bet_id
                )
                bet.paid_out = True
                bet.updated_at = now
                total += bet.potential_payout
            return total

        return self._run("credit_winnings", op)

    def get_customer(self, customer_id: str) -> Customer:
        with self._lock:
            return _copy(self.customers.get(customer_id))

    def list_customers(self) -> list[Customer]:
        with self._lock:
            return [_copy(c) for c in self.customers]

    def transactions(self, customer_id: str | None = None) -> list[Transaction]:
        with self._lock:
            if customer_id is not None:
                self.customers.get(customer_id)
            return [_copy(t) for t in self.customers.transactions(customer_id)]

    # --- Bets ---

    def _snapshot_legs(self, legs: Sequence[LegRequest | dict]) -> list[BetLeg]:
        """Resolve requested legs to frozen copies at the current quoted odds."""
        snapshot = []
        for raw in legs:
            try:
                req = raw if isinstance(raw, LegRequest) else LegRequest.model_validate(raw)
            except SchemaError as e:
                raise ValidationError(f"invalid selection on slip: {e.errors()[0]['msg']}") from None
            event, sel = self.events.get_selection(req.event_id, req.selection_id)
            if not event.is_open_for_betting:
                raise ValidationError(f"event {event.event_id} is {event.status.value}")
            if sel.status != SelectionStatus.PENDING:
                raise ValidationError(f"selection {sel.selection_id} is already {sel.status.value}")
            snapshot.append(
                BetLeg(
                    selection_id=sel.selection_id,
                    event_id=event.event_id,
                    event_name=event.name,
                    selection_name=sel.name,
                    odds=sel.odds,
                )
            )
        return snapshot

    def create_bet(
        self,
        customer_id: str,
        employee_id: str,
        bet_type: BetType | str,
        wager_amount: Decimal | float | int | str,
        legs: Sequence[LegRequest | dict],
    ) -> OpResult[Bet]:
        """Place a bet: price it, record volume per event, debit the customer, store it OPEN."""

        def op() -> Bet:
            try:
                kind = BetType(bet_type)
            except ValueError:
                raise ValidationError(f"unknown bet type: {bet_type!r}") from None
            wager = parse_amount(wager_amount, "wager")
            customer = self.customers.get(customer_id)
            if not employee_id:
                raise ValidationError("employee id is required")
            now = self.clock()
            bet = self.bets.build(
                customer_id=customer.customer_id,
                customer_name=customer.name,
                employee_id=employee_id,
                bet_type=kind,
                wager_amount=wager,
                legs=self._snapshot_legs(legs),
                now_ms=now,
            )
            # All checks passed; nothing below can fail
            selection_ids = [leg.selection_id for leg in bet.legs]
            for event_id in dict.fromkeys(bet.event_ids):
                self.events.record_wager(event_id, selection_ids, bet.wager_amount, now)
            self.customers.adjust_balance(
                customer.customer_id, -bet.wager_amount, now, TransactionKind.WAGER, bet_id=bet.bet_id
            )
            return _copy(self.bets.add(bet))

        return self._run("create_bet", op)

    def update_selection_outcome(
        self, bet_id: str, selection_id: str, status: SelectionStatus | str
    ) -> OpResult[Bet]:
        def op() -> Bet:
            try:
                leg_status = SelectionStatus(status)
            except ValueError:
                raise ValidationError(f"unknown selection status: {status}") from None
            return _copy(self.bets.update_leg(bet_id, selection_id, leg_status, self.clock()))

        return self._run("update_selection_outcome", op)

    def settle(
        self,
        bet_id: str,
        final_status: BetStatus | str,
        credit_to_balance: bool = False,
    ) -> OpResult[Bet]:
        """Settle an OPEN bet.

        WON/LOST fold the bet into the customer's aggregates. A WON bet credits
        its payout only when credit_to_balance is set; otherwise the payout is
        left to a later credit_winnings. VOIDED changes nothing on the customer
        unless refund_voided_wagers is enabled.
        """

        def op() -> Bet:
            status = self.bets.check_final_status(final_status)
            bet = self.bets.require_open(bet_id)
            customer = self.customers.get(bet.customer_id)
            now = self.clock()
            self.bets.settle(bet_id, status, now)
            if status in (BetStatus.WON, BetStatus.LOST):
                win = bet.potential_payout if status == BetStatus.WON else ZERO
                customer.record_outcome(bet.wager_amount, win, now)
                if status == BetStatus.WON and credit_to_balance:
                    self.customers.adjust_balance(
                        customer.customer_id, win, now, TransactionKind.PAYOUT, bet_id=bet_id
                    )
                    bet.paid_out = True
            elif self.refund_voided_wagers:
                self.customers.adjust_balance(
                    customer.customer_id, bet.wager_amount, now, TransactionKind.REFUND, bet_id=bet_id
                )
            return _copy(bet)

        return self._run("settle", op)

    def delete_bet(self, bet_id: str) -> OpResult[Bet]:
        """Delete an OPEN bet with full reversal: refund the wager and take its volume off the events."""

        def op() -> Bet:
            bet = self.bets.require_open(bet_id)
            self.customers.get(bet.customer_id)
            now = self.clock()
            selection_ids = [leg.selection_id for leg in bet.legs]
            for event_id in dict.fromkeys(bet.event_ids):
                if event_id in self.events:
                    self.events.reverse_wager(event_id, selection_ids, bet.wager_amount, now)
            self.customers.adjust_balance(
                bet.customer_id, bet.wager_amount, now, TransactionKind.REFUND, bet_id=bet_id, note="bet deleted"
            )
            return _copy(self.bets.remove(bet_id))

        return self._run("delete_bet", op)

    def annotate_bet(self, bet_id: str, note: str) -> OpResult[Bet]:
        """Append an audit note; allowed in any status."""
        return self._run("annotate_bet", lambda: _copy(self.bets.annotate(bet_id, note, self.clock())))

    def get_bet(self, bet_id: str) -> Bet:
        with self._lock:
            return _copy(self.bets.get(bet_id))

    def list_bets(
        self,
        start_ts: int | None = None,
        end_ts: int | None = None,
        *,
        customer_id: str | None = None,
        employee_id: str | None = None,
        status: BetStatus | None = None,
        descending: bool = False,
    ) -> list[Bet]:
        """Bets ordered by created_at (ties keep placement order), optionally filtered."""
        with self._lock:
            rows = [
                b
                for b in self.bets
                if (start_ts is None or b.created_at >= start_ts)
                and (end_ts is None or b.created_at <= end_ts)
                and (customer_id is None or b.customer_id == customer_id)
                and (employee_id is None or b.employee_id == employee_id)
                and (status is None or b.status == status)
            ]
            indexed = sorted(enumerate(rows), key=lambda p: (p[1].created_at, p[0]), reverse=descending)
            return [_copy(b) for _, b in indexed]

    # --- Pure queries ---

    def quote(self, event_id: str, selection_id: str) -> Decimal:
        """What the engine would quote now. Does not reprice."""
        with self._lock:
            event, sel = self.events.get_selection(event_id, selection_id)
            return self.engine.quote(event, sel, self.clock())

    def compute_payout(
        self, wager_amount: Decimal | float | int, legs: Sequence[BetLeg], bet_type: BetType | str
    ) -> Decimal:
        return compute_payout(wager_amount, legs, BetType(bet_type))

    def quote_payout(
        self, wager_amount: Decimal | float | int, legs: Sequence[LegRequest | dict], bet_type: BetType | str
    ) -> Decimal:
        """Payout a slip would get at current odds. Raises LedgerError if any leg is unknown."""
        with self._lock:
            return compute_payout(wager_amount, self._snapshot_legs(legs), BetType(bet_type))
