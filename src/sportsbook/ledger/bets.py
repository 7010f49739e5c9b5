"""Bet book - payout math, slip validation, and the settlement state machine."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Iterable, Iterator, Sequence

import structlog

from sportsbook.ledger.errors import InvalidComposition, InvalidState, NotFound, ValidationError
from sportsbook.models.bet import SETTLED_STATUSES, Bet, BetLeg, BetStatus, BetType
from sportsbook.models.event import SelectionStatus
from sportsbook.money import ZERO, product, round_money, to_decimal

log = structlog.get_logger(__name__)


def compute_payout(wager_amount: Decimal | float | int, legs: Sequence[BetLeg], bet_type: BetType) -> Decimal:
    """Potential payout (stake included), exact Decimal, rounded half-up to cents.

    SINGLE pays wager * odds of the first leg; PARLAY pays wager * product of all leg odds.
    An empty slip pays 0.
    """
    if not legs:
        return round_money(ZERO)
    wager = to_decimal(wager_amount)
    if BetType(bet_type) == BetType.SINGLE:
        return round_money(wager * legs[0].odds)
    return round_money(wager * product(leg.odds for leg in legs))


def validate_slip(bet_type: BetType, wager_amount: Decimal, legs: Sequence[BetLeg]) -> None:
    """Raise ValidationError / InvalidComposition if the slip cannot be placed."""
    if wager_amount <= ZERO:
        raise ValidationError(f"wager must be positive, got {wager_amount}")
    if not legs:
        raise ValidationError("bet needs at least one selection")
    selection_ids = [leg.selection_id for leg in legs]
    if len(set(selection_ids)) != len(selection_ids):
        raise InvalidComposition("same selection appears twice on the slip")
    if bet_type == BetType.SINGLE:
        if len(legs) != 1:
            raise InvalidComposition(f"single bet takes exactly 1 selection, got {len(legs)}")
    else:
        if len(legs) < 2:
            raise InvalidComposition("parlay needs at least 2 selections")
        event_ids = [leg.event_id for leg in legs]
        if len(set(event_ids)) != len(event_ids):
            raise InvalidComposition("parlay legs must come from distinct events")


class BetBook:
    """In-memory bets keyed by bet_id, in placement order."""

    def __init__(self) -> None:
        self._bets: dict[str, Bet] = {}

    def __len__(self) -> int:
        return len(self._bets)

    def __iter__(self) -> Iterator[Bet]:
        return iter(self._bets.values())

    def get(self, bet_id: str) -> Bet:
        bet = self._bets.get(bet_id)
        if bet is None:
            raise NotFound("bet", bet_id)
        return bet

    def build(
        self,
        *,
        customer_id: str,
        customer_name: str,
        employee_id: str,
        bet_type: BetType,
        wager_amount: Decimal,
        legs: list[BetLeg],
        now_ms: int,
    ) -> Bet:
        """Validate and price a bet without storing it."""
        bet_type = BetType(bet_type)
        wager = to_decimal(wager_amount)
        validate_slip(bet_type, wager, legs)
        return Bet(
            bet_id=str(uuid.uuid4()),
            customer_id=customer_id,
            customer_name=customer_name,
            employee_id=employee_id,
            created_at=now_ms,
            updated_at=now_ms,
            bet_type=bet_type,
            wager_amount=wager,
            potential_payout=compute_payout(wager, legs, bet_type),
            legs=list(legs),
        )

    def add(self, bet: Bet) -> Bet:
        self._bets[bet.bet_id] = bet
        log.info(
            "bet_placed",
            bet_id=bet.bet_id,
            customer_id=bet.customer_id,
            bet_type=bet.bet_type.value,
            wager=str(bet.wager_amount),
            payout=str(bet.potential_payout),
        )
        return bet

    def require_open(self, bet_id: str) -> Bet:
        bet = self.get(bet_id)
        if not bet.is_open:
            raise InvalidState(f"bet {bet_id} is {bet.status.value}, not OPEN")
        return bet

    def update_leg(self, bet_id: str, selection_id: str, status: SelectionStatus, now_ms: int) -> Bet:
        """Mark one leg's outcome while the bet is still OPEN."""
        status = SelectionStatus(status)
        bet = self.require_open(bet_id)
        leg = bet.get_leg(selection_id)
        if leg is None:
            raise NotFound("bet selection", selection_id)
        bet.legs = [l.model_copy(update={"status": status}) if l.selection_id == selection_id else l for l in bet.legs]
        bet.updated_at = now_ms
        return bet

    @staticmethod
    def check_final_status(final_status: BetStatus | str) -> BetStatus:
        try:
            status = BetStatus(final_status)
        except ValueError:
            raise ValidationError(f"unknown bet status: {final_status}") from None
        if status not in SETTLED_STATUSES:
            raise ValidationError(f"cannot settle a bet as {status.value}")
        return status

    def settle(self, bet_id: str, final_status: BetStatus, now_ms: int) -> Bet:
        """OPEN -> WON/LOST/VOIDED. Terminal states never transition again."""
        status = self.check_final_status(final_status)
        bet = self.require_open(bet_id)
        bet.status = status
        bet.updated_at = now_ms
        log.info("bet_settled", bet_id=bet_id, status=status.value)
        return bet

    def annotate(self, bet_id: str, note: str, now_ms: int) -> Bet:
        if not note or not note.strip():
            raise ValidationError("note is empty")
        bet = self.get(bet_id)
        bet.notes.append(note.strip())
        bet.updated_at = now_ms
        return bet

    def remove(self, bet_id: str) -> Bet:
        bet = self.require_open(bet_id)
        del self._bets[bet_id]
        log.info("bet_deleted", bet_id=bet_id)
        return bet

    def referencing(self, event_id: str) -> list[Bet]:
        return [b for b in self._bets.values() if event_id in b.event_ids]

    def settled_reference(self, selection_id: str) -> bool:
        return any(b.get_leg(selection_id) is not None for b in self._bets.values() if not b.is_open)

    def load(self, bets: Iterable[Bet]) -> None:
        self._bets = {b.bet_id: b for b in bets}
