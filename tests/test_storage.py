"""DuckDB persistence: save/load round trip and Parquet export."""

from decimal import Decimal

import duckdb

from sportsbook.ledger import Ledger
from sportsbook.odds import OddsConfig
from sportsbook.storage.db import get_connection, init_schema
from sportsbook.storage.export import export_bets_to_parquet
from sportsbook.storage.ledger_store import load_ledger, save_ledger

from conftest import INTERVAL, FakeClock


def _leg(event, i=0):
    return {"event_id": event.event_id, "selection_id": event.selections[i].selection_id}


def _populate(ledger, clock):
    race = ledger.create_event("Street Race", "Racing", [{"name": "May", "odds": 2.5}, {"name": "Eddie", "odds": 1.8}]).unwrap()
    fight = ledger.create_event("Boxing", "Fighting", [{"name": "Mike", "odds": 1.4}, {"name": "Lenny", "odds": 2.7}]).unwrap()
    cust = ledger.create_customer("Claire", balance=1000).unwrap()
    won = ledger.create_bet(cust.customer_id, "emp-1", "SINGLE", 1000, [_leg(race)]).unwrap()
    clock.advance(INTERVAL)
    ledger.create_bet(cust.customer_id, "emp-2", "PARLAY", 20, [_leg(race), _leg(fight)]).unwrap()
    ledger.settle(won.bet_id, "WON", credit_to_balance=True).unwrap()
    ledger.annotate_bet(won.bet_id, "paid at counter").unwrap()
    return cust


def test_init_schema_is_idempotent(tmp_path):
    conn = get_connection(tmp_path / "sub" / "ledger.duckdb")
    init_schema(conn)
    init_schema(conn)
    tables = {r[0] for r in conn.execute("SELECT table_name FROM information_schema.tables").fetchall()}
    assert {"events", "bets", "customers", "transactions"} <= tables
    conn.close()


def test_round_trip(tmp_path):
    clock = FakeClock()
    src = Ledger(OddsConfig(adjustment_interval_ms=INTERVAL), clock=clock)
    _populate(src, clock)
    path = tmp_path / "ledger.duckdb"

    conn = get_connection(path)
    init_schema(conn)
    save_ledger(conn, src)
    conn.close()

    conn = get_connection(path, read_only=True)
    dst = load_ledger(conn, Ledger(OddsConfig(adjustment_interval_ms=INTERVAL), clock=clock))
    conn.close()

    assert dst.list_events() == src.list_events()
    assert dst.list_bets() == src.list_bets()
    assert dst.list_customers() == src.list_customers()
    assert dst.transactions() == src.transactions()
    (first, parlay) = dst.list_bets()
    assert first.legs[0].odds == Decimal("2.5")
    assert first.notes == ["paid at counter"]
    assert first.paid_out is True
    # legs take the stored quote; repricing runs after the wager is recorded
    assert parlay.legs[0].odds == Decimal("2.5")
    assert parlay.potential_payout == Decimal("70.00")
    assert dst.list_events()[0].selections[0].odds == Decimal("2.00")


def test_loaded_ledger_keeps_working(tmp_path):
    clock = FakeClock()
    src = Ledger(clock=clock)
    cust = _populate(src, clock)
    conn = get_connection(tmp_path / "ledger.duckdb")
    init_schema(conn)
    save_ledger(conn, src)

    dst = load_ledger(conn, Ledger(clock=clock))
    (_, parlay) = dst.list_bets()
    dst.settle(parlay.bet_id, "LOST").unwrap()
    assert dst.get_customer(cust.customer_id).total_bets == 2
    save_ledger(conn, dst)
    assert conn.execute("SELECT COUNT(*) FROM bets WHERE status = 'LOST'").fetchone()[0] == 1
    conn.close()


def test_save_replaces_previous_state(tmp_path):
    clock = FakeClock()
    led = Ledger(clock=clock)
    _populate(led, clock)
    conn = get_connection(tmp_path / "ledger.duckdb")
    init_schema(conn)
    save_ledger(conn, led)
    save_ledger(conn, Ledger(clock=clock))
    for table in ("events", "bets", "customers", "transactions"):
        assert conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0] == 0
    conn.close()


def test_export_bets_to_parquet(tmp_path):
    clock = FakeClock()
    led = Ledger(clock=clock)
    cust = _populate(led, clock)
    other = led.create_customer("Ada").unwrap()
    ev = led.list_events()[0]
    led.create_bet(other.customer_id, "emp-1", "SINGLE", 5, [_leg(ev, 1)]).unwrap()
    conn = get_connection(tmp_path / "ledger.duckdb")
    init_schema(conn)
    save_ledger(conn, led)

    out = tmp_path / "out" / "bets.parquet"
    assert export_bets_to_parquet(conn, out) == 3
    assert out.exists()
    assert export_bets_to_parquet(conn, tmp_path / "claire.parquet", customer_id=cust.customer_id) == 2
    rows = duckdb.sql(f"SELECT customer_id FROM read_parquet('{tmp_path / 'claire.parquet'}')").fetchall()
    assert {r[0] for r in rows} == {cust.customer_id}
    conn.close()
