"""Shared fixtures: a controllable clock and a small seeded ledger."""

from decimal import Decimal

import pytest

from sportsbook.ledger import Ledger
from sportsbook.odds import OddsConfig

T0 = 1_700_000_000_000  # 2023-11-14T22:13:20Z
INTERVAL = 300_000


class FakeClock:
    """Manually advanced ms clock."""

    def __init__(self, start: int = T0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger(clock):
    return Ledger(OddsConfig(adjustment_interval_ms=INTERVAL), clock=clock)


@pytest.fixture
def race(ledger):
    """Three-runner race: 2.5 / 1.8 / 3.2."""
    return ledger.create_event(
        "Street Race - North Side",
        "Racing",
        [{"name": "May Maple", "odds": 2.5}, {"name": "Eddie Marshall", "odds": 1.8}, {"name": "Tommy Cruizer", "odds": 3.2}],
    ).unwrap()


@pytest.fixture
def fight(ledger):
    """Two-fighter bout: 1.4 / 2.7."""
    return ledger.create_event(
        "Boxing Match - The Gym",
        "Fighting",
        [{"name": "Mike Tyrone", "odds": 1.4}, {"name": "Lenny Johnson", "odds": 2.7}],
    ).unwrap()


@pytest.fixture
def casino(ledger):
    """Card tournament: 3.0 / 1.9."""
    return ledger.create_event(
        "Blackjack Tournament",
        "Casino",
        [{"name": "Samantha Spades", "odds": 3.0}, {"name": "Jack Williams", "odds": 1.9}],
    ).unwrap()


@pytest.fixture
def customer(ledger):
    return ledger.create_customer("Claire Redfield", balance=Decimal("2500")).unwrap()
