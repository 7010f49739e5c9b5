"""Odds engine: rate limiting, volume/risk adjustment, house-edge floor."""

from decimal import Decimal

import pytest

from sportsbook.models.event import Event, Selection
from sportsbook.odds import OddsConfig, OddsEngine
from sportsbook.odds.engine import format_odds, implied_probability

from conftest import INTERVAL, T0


def _event(volumes, odds, last_update=T0):
    """Event whose selections s0..sN carry the given volumes at the given odds."""
    sels = [
        Selection(selection_id=f"s{i}", name=f"runner {i}", initial_odds=o, odds=o, volume=v)
        for i, (v, o) in enumerate(zip(volumes, odds))
    ]
    vol = {s.selection_id: s.volume for s in sels if s.volume > 0}
    return Event(
        event_id="e1",
        name="Street Race",
        selections=sels,
        selection_volume=vol,
        total_wagered=sum(vol.values(), Decimal(0)),
        last_odds_update=last_update,
    )


def _engine(**kw):
    return OddsEngine(OddsConfig(adjustment_interval_ms=INTERVAL, **kw))


def test_quote_is_rate_limited():
    eng = _engine()
    ev = _event([1000, 0, 0], [2.5, 1.8, 3.2])
    sel = ev.selections[0]
    assert eng.quote(ev, sel, T0 + INTERVAL - 1) == Decimal("2.5")
    assert eng.reprice(ev, T0 + INTERVAL - 1) is False
    assert ev.last_odds_update == T0
    assert sel.odds == Decimal("2.5")


def test_all_volume_on_one_selection_hits_cap():
    eng = _engine()
    ev = _event([1000, 0, 0], [2.5, 1.8, 3.2])
    now = T0 + INTERVAL
    assert eng.reprice(ev, now) is True
    # volume 10% + risk 30% -> capped at 20%
    assert [s.odds for s in ev.selections] == [Decimal("2.00"), Decimal("1.80"), Decimal("3.20")]
    assert ev.last_odds_update == now


def test_adjustment_components():
    eng = _engine()
    ev = _event([600, 400], [2.0, 2.0])
    a, b = ev.selections
    # volume (0.6-0.5)*20 = 2, risk (0.6-0.3)*20 = 6
    assert eng.adjustment_pct(ev, a) == Decimal("8.0")
    # volume below trigger, risk (0.4-0.3)*20 = 2
    assert eng.adjustment_pct(ev, b) == Decimal("2.0")
    eng.reprice(ev, T0 + INTERVAL)
    assert a.odds == Decimal("1.84")
    assert b.odds == Decimal("1.96")


def test_no_volume_means_no_adjustment():
    eng = _engine()
    ev = _event([0, 0], [2.0, 3.0])
    assert eng.adjustment_pct(ev, ev.selections[0]) == 0
    assert eng.reprice(ev, T0 + INTERVAL) is True
    assert ev.selections[0].odds == Decimal("2.0")
    assert ev.last_odds_update == T0 + INTERVAL


def test_floor_at_house_edge():
    eng = _engine()
    ev = _event([1000], [1.10])
    eng.reprice(ev, T0 + INTERVAL)
    # 1.10 * 0.9 = 0.99 -> clamped to 1 + 5/100
    assert ev.selections[0].odds == Decimal("1.05")


def test_floor_follows_house_edge_config():
    eng = _engine(house_edge=10)
    assert eng.config.min_odds == Decimal("1.1")
    ev = _event([1000], [1.15])
    eng.reprice(ev, T0 + INTERVAL)
    assert ev.selections[0].odds == Decimal("1.1")


def test_repeated_passes_do_not_compound():
    eng = _engine()
    ev = _event([1000, 0], [2.5, 1.8])
    for n in range(1, 5):
        eng.reprice(ev, T0 + n * INTERVAL)
        assert ev.selections[0].odds == Decimal("2.00")
        assert ev.selections[0].initial_odds == Decimal("2.5")


def test_quote_is_pure():
    eng = _engine()
    ev = _event([1000, 0], [2.5, 1.8])
    before = ev.model_copy(deep=True)
    assert eng.quote(ev, ev.selections[0], T0 + INTERVAL) == Decimal("2.00")
    assert ev == before


def test_zero_interval_reprices_every_call():
    eng = OddsEngine(OddsConfig(adjustment_interval_ms=0))
    ev = _event([1000, 0], [2.5, 1.8])
    assert eng.reprice(ev, T0) is True
    assert ev.selections[0].odds == Decimal("2.00")


def test_odds_stay_within_bounds():
    eng = _engine(max_adjustment=100)
    ev = _event([900, 50, 50], [4.0, 1.2, 6.0])
    eng.reprice(ev, T0 + INTERVAL)
    for sel in ev.selections:
        assert eng.config.min_odds <= sel.odds <= sel.initial_odds


def test_helpers():
    assert implied_probability(2) == Decimal(50)
    assert format_odds(2.5) == "2.50"
    assert format_odds("1.005") == "1.01"


@pytest.mark.parametrize("odds", [0, -1.5, "NaN"])
def test_implied_probability_needs_positive_odds(odds):
    with pytest.raises(ValueError):
        implied_probability(odds)
