"""Odds engine - reprice selections from wagered volume and house liability.

Quotes are always derived from a selection's initial odds, so repeated passes
never compound. A pass only runs once adjustment_interval_ms has elapsed since
the event's last pass; every selection in the pass sees the same clock read.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from pydantic import BaseModel, Field

from sportsbook.models.event import Event, Selection
from sportsbook.money import HUNDRED, ONE, ZERO, Money, round_money, to_decimal

log = structlog.get_logger(__name__)

VOLUME_RATIO_TRIGGER = Decimal("0.5")
RISK_RATIO_TRIGGER = Decimal("0.3")


class OddsConfig(BaseModel):
    """Repricing parameters. Percent values are 0-100."""

    volume_threshold: Money = Decimal("1000")
    max_adjustment: Money = Field(default=Decimal("20"), ge=0, le=100)
    adjustment_interval_ms: int = Field(default=300_000, ge=0)
    house_edge: Money = Field(default=Decimal("5"), ge=0)

    @property
    def min_odds(self) -> Decimal:
        """Lowest profitable quote: 1 + house_edge/100."""
        return ONE + self.house_edge / HUNDRED


class OddsEngine:
    """Computes current quotes for an event's selections."""

    def __init__(self, config: OddsConfig | None = None) -> None:
        self.config = config or OddsConfig()

    def interval_elapsed(self, event: Event, now_ms: int) -> bool:
        return now_ms - event.last_odds_update >= self.config.adjustment_interval_ms

    def adjustment_pct(self, event: Event, selection: Selection) -> Decimal:
        """Percent to shave off initial odds, capped at max_adjustment."""
        cfg = self.config
        total = event.total_wagered
        if total <= ZERO:
            return ZERO
        volume_ratio = selection.volume / total
        volume_adj = (volume_ratio - VOLUME_RATIO_TRIGGER) * cfg.max_adjustment if volume_ratio > VOLUME_RATIO_TRIGGER else ZERO
        # House liability if this selection wins: stake returned at current odds minus stake taken
        liability = selection.volume * selection.odds - selection.volume
        risk_ratio = liability / total
        risk_adj = (risk_ratio - RISK_RATIO_TRIGGER) * cfg.max_adjustment if risk_ratio > RISK_RATIO_TRIGGER else ZERO
        return min(volume_adj + risk_adj, cfg.max_adjustment)

    def quote(self, event: Event, selection: Selection, now_ms: int) -> Decimal:
        """Current odds for selection. Pure: does not touch event or selection."""
        if not self.interval_elapsed(event, now_ms):
            return selection.odds
        factor = ONE - self.adjustment_pct(event, selection) / HUNDRED
        new_odds = round_money(selection.initial_odds * factor)
        return max(new_odds, self.config.min_odds)

    def reprice(self, event: Event, now_ms: int) -> bool:
        """Run one repricing pass over all selections. Returns False if rate-limited."""
        if not self.interval_elapsed(event, now_ms):
            log.debug("reprice_skipped", event_id=event.event_id, since_ms=now_ms - event.last_odds_update)
            return False
        # Quote everything against the pre-pass state, then apply
        quotes = [(sel, self.quote(event, sel, now_ms)) for sel in event.selections]
        changed = 0
        for sel, new_odds in quotes:
            if new_odds != sel.odds:
                changed += 1
                log.info(
                    "odds_repriced",
                    event_id=event.event_id,
                    selection_id=sel.selection_id,
                    old=str(sel.odds),
                    new=str(new_odds),
                )
            sel.odds = new_odds
        event.last_odds_update = now_ms
        log.debug("reprice_pass", event_id=event.event_id, changed=changed)
        return True


def implied_probability(odds: Decimal | float | str) -> Decimal:
    """Implied probability (percent) of decimal odds. Odds must be positive."""
    value = to_decimal(odds)
    if not value.is_finite() or value <= ZERO:
        raise ValueError(f"odds must be positive, got {odds!r}")
    return HUNDRED / value


def format_odds(odds: Decimal | float | str) -> str:
    """Decimal odds as a two-place string, e.g. 2.5 -> '2.50'."""
    return f"{round_money(odds):.2f}"
