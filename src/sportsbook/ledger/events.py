"""Event book - owns events and selections, records wager volume, triggers repricing."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Iterable, Iterator

import structlog
from pydantic import ValidationError as SchemaError

from sportsbook.ledger.errors import InvalidState, NotFound, ValidationError
from sportsbook.models.event import Event, EventStatus, Selection, SelectionInput, SelectionStatus
from sportsbook.money import ZERO, to_decimal
from sportsbook.odds.engine import OddsEngine

log = structlog.get_logger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _selection_input(raw: SelectionInput | dict) -> SelectionInput:
    if isinstance(raw, SelectionInput):
        return raw
    try:
        return SelectionInput.model_validate(raw)
    except SchemaError as e:
        raise ValidationError(f"invalid selection: {e.errors()[0]['msg']}") from None


def _parse(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"unknown {enum_cls.__name__}: {value}") from None


class EventBook:
    """In-memory events keyed by event_id, in creation order."""

    def __init__(self, engine: OddsEngine) -> None:
        self.engine = engine
        self._events: dict[str, Event] = {}

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events.values())

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    def get(self, event_id: str) -> Event:
        event = self._events.get(event_id)
        if event is None:
            raise NotFound("event", event_id)
        return event

    def get_selection(self, event_id: str, selection_id: str) -> tuple[Event, Selection]:
        event = self.get(event_id)
        sel = event.get_selection(selection_id)
        if sel is None:
            raise NotFound("selection", selection_id)
        return event, sel

    def _check_odds(self, odds: Decimal, name: str) -> None:
        floor = self.engine.config.min_odds
        if odds < floor:
            raise ValidationError(f"odds {odds} for {name!r} below minimum {floor}")

    def create(
        self,
        name: str,
        category: str,
        selections: Iterable[SelectionInput | dict],
        now_ms: int,
        status: EventStatus = EventStatus.UPCOMING,
        start_time: int | None = None,
        end_time: int | None = None,
    ) -> Event:
        """Create an event. Each selection starts at its opening odds with zero volume."""
        if not name or not name.strip():
            raise ValidationError("event name is required")
        inputs = [_selection_input(s) for s in selections]
        if not inputs:
            raise ValidationError("event needs at least one selection")
        for s in inputs:
            self._check_odds(s.odds, s.name)
        event = Event(
            event_id=_new_id(),
            name=name.strip(),
            category=category,
            status=_parse(EventStatus, status),
            start_time=start_time,
            end_time=end_time,
            selections=[
                Selection(selection_id=_new_id(), name=s.name, initial_odds=s.odds, odds=s.odds)
                for s in inputs
            ],
            last_odds_update=now_ms,
            created_at=now_ms,
        )
        self._events[event.event_id] = event
        log.info("event_created", event_id=event.event_id, name=event.name, selections=len(event.selections))
        return event

    def record_wager(self, event_id: str, selection_ids: Iterable[str], wager_amount: Decimal, now_ms: int) -> Event:
        """Add wager volume for the event's selections among selection_ids, then reprice."""
        event = self.get(event_id)
        amount = to_decimal(wager_amount)
        self._apply_volume(event, selection_ids, amount)
        self.engine.reprice(event, now_ms)
        return event

    def reverse_wager(self, event_id: str, selection_ids: Iterable[str], wager_amount: Decimal, now_ms: int) -> Event:
        """Undo record_wager volume (bet deletion), then reprice."""
        event = self.get(event_id)
        self._apply_volume(event, selection_ids, -to_decimal(wager_amount))
        self.engine.reprice(event, now_ms)
        return event

    def _apply_volume(self, event: Event, selection_ids: Iterable[str], delta: Decimal) -> None:
        for sid in selection_ids:
            sel = event.get_selection(sid)
            if sel is None:
                continue  # leg on another event
            volume = event.selection_volume.get(sid, ZERO) + delta
            if volume <= ZERO:
                event.selection_volume.pop(sid, None)
                volume = ZERO
            else:
                event.selection_volume[sid] = volume
            sel.volume = volume
        event.total_wagered = event.volume_total()

    def update(
        self,
        event_id: str,
        *,
        name: str | None = None,
        category: str | None = None,
        status: EventStatus | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
    ) -> Event:
        """Administrative edit. Odds, volume and selections are not editable here."""
        event = self.get(event_id)
        if name is not None:
            if not name.strip():
                raise ValidationError("event name is required")
            event.name = name.strip()
        if category is not None:
            event.category = category
        if status is not None:
            event.status = _parse(EventStatus, status)
        if start_time is not None:
            event.start_time = start_time
        if end_time is not None:
            event.end_time = end_time
        log.info("event_updated", event_id=event_id)
        return event

    def update_selection(
        self,
        event_id: str,
        selection_id: str,
        *,
        name: str | None = None,
        status: SelectionStatus | None = None,
    ) -> Selection:
        _, sel = self.get_selection(event_id, selection_id)
        if name is not None:
            if not name.strip():
                raise ValidationError("selection name is required")
            sel.name = name.strip()
        if status is not None:
            sel.status = _parse(SelectionStatus, status)
        log.info("selection_updated", event_id=event_id, selection_id=selection_id)
        return sel

    def add_selection(self, event_id: str, name: str, odds: Decimal | float | str) -> Selection:
        event = self.get(event_id)
        entry = _selection_input({"name": name, "odds": odds})
        self._check_odds(entry.odds, entry.name)
        sel = Selection(selection_id=_new_id(), name=entry.name, initial_odds=entry.odds, odds=entry.odds)
        event.selections.append(sel)
        log.info("selection_added", event_id=event_id, selection_id=sel.selection_id)
        return sel

    def remove_selection(self, event_id: str, selection_id: str, referenced_by_settled: bool) -> Selection:
        """Remove a selection that no settled bet references and that carries no volume."""
        event, sel = self.get_selection(event_id, selection_id)
        if referenced_by_settled:
            raise InvalidState(f"selection {selection_id} is referenced by a settled bet")
        if sel.volume > ZERO:
            raise InvalidState(f"selection {selection_id} has open wager volume")
        event.selections = [s for s in event.selections if s.selection_id != selection_id]
        log.info("selection_removed", event_id=event_id, selection_id=selection_id)
        return sel

    def delete(self, event_id: str) -> Event:
        return self._events.pop(self.get(event_id).event_id)

    def load(self, events: Iterable[Event]) -> None:
        """Replace contents (storage restore)."""
        self._events = {e.event_id: e for e in events}
