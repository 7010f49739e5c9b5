"""HTTP API over an in-memory ledger."""

import pytest
from fastapi.testclient import TestClient

from sportsbook.api.main import create_app
from sportsbook.ledger import Ledger
from sportsbook.odds import OddsConfig

from conftest import T0, FakeClock


@pytest.fixture
def client():
    ledger = Ledger(OddsConfig(), clock=FakeClock())
    return TestClient(create_app(ledger=ledger))


def _create_event(client, name="Boxing Match", selections=(("Mike Tyrone", 1.4), ("Lenny Johnson", 2.7))):
    resp = client.post(
        "/events",
        json={"name": name, "category": "Fighting", "selections": [{"name": n, "odds": o} for n, o in selections]},
    )
    assert resp.status_code == 201
    return resp.json()


def _create_customer(client, name="Claire Redfield", balance="1000"):
    resp = client.post("/customers", json={"name": name, "balance": balance})
    assert resp.status_code == 201
    return resp.json()


def _leg(event, i=0):
    return {"event_id": event["event_id"], "selection_id": event["selections"][i]["selection_id"]}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_event_crud(client):
    ev = _create_event(client)
    assert ev["selections"][0]["odds"] == "1.4"
    assert ev["created_at"] == T0
    assert [e["event_id"] for e in client.get("/events").json()] == [ev["event_id"]]

    resp = client.patch(f"/events/{ev['event_id']}", json={"status": "LIVE"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "LIVE"
    assert client.get("/events", params={"status": "UPCOMING"}).json() == []

    sel = client.post(f"/events/{ev['event_id']}/selections", json={"name": "Draw", "odds": "12"}).json()
    assert len(client.get(f"/events/{ev['event_id']}").json()["selections"]) == 3
    assert client.delete(f"/events/{ev['event_id']}/selections/{sel['selection_id']}").status_code == 200

    quote = client.get(f"/events/{ev['event_id']}/selections/{ev['selections'][1]['selection_id']}/quote").json()
    assert quote["odds"] == "2.7"

    resp = client.delete(f"/events/{ev['event_id']}")
    assert resp.json() == {"event_id": ev["event_id"], "orphaned_bets": 0}
    assert client.get(f"/events/{ev['event_id']}").status_code == 404


def test_error_shape(client):
    resp = client.get("/events/nope")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "event not found: nope", "code": "not_found"}

    resp = client.post("/events", json={"name": "Race", "selections": [{"name": "a", "odds": 1.01}]})
    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"


def test_bet_lifecycle(client):
    fight = _create_event(client)
    casino = _create_event(client, "Blackjack Tournament", (("Samantha Spades", 3.0), ("Jack Williams", 1.9)))
    cust = _create_customer(client)

    resp = client.post(
        "/bets",
        json={
            "customer_id": cust["customer_id"],
            "employee_id": "emp-1",
            "bet_type": "PARLAY",
            "wager_amount": "1000",
            "legs": [_leg(fight), _leg(casino)],
        },
    )
    assert resp.status_code == 201
    bet = resp.json()
    assert bet["potential_payout"] == "4200.00"
    assert bet["status"] == "OPEN"
    assert client.get(f"/customers/{cust['customer_id']}").json()["balance"] == "0"

    resp = client.patch(f"/bets/{bet['bet_id']}/selections/{bet['legs'][0]['selection_id']}", json={"status": "WON"})
    assert resp.json()["legs"][0]["status"] == "WON"

    resp = client.post(f"/bets/{bet['bet_id']}/settle", json={"status": "WON", "credit_to_balance": True})
    assert resp.status_code == 200
    assert resp.json()["paid_out"] is True
    customer = client.get(f"/customers/{cust['customer_id']}").json()
    assert customer["balance"] == "4200.00"
    assert customer["net_profit"] == "3200.00"

    resp = client.post(f"/bets/{bet['bet_id']}/settle", json={"status": "LOST"})
    assert resp.status_code == 409
    assert resp.json()["code"] == "invalid_state"

    resp = client.post(f"/bets/{bet['bet_id']}/notes", json={"note": "big winner"})
    assert resp.json()["notes"] == ["big winner"]
    assert client.delete(f"/bets/{bet['bet_id']}").status_code == 409

    kinds = [t["kind"] for t in client.get(f"/customers/{cust['customer_id']}/transactions").json()]
    assert kinds == ["ADJUSTMENT", "WAGER", "PAYOUT"]


def test_bet_composition_error(client):
    fight = _create_event(client)
    cust = _create_customer(client)
    resp = client.post(
        "/bets",
        json={
            "customer_id": cust["customer_id"],
            "employee_id": "emp-1",
            "bet_type": "SINGLE",
            "wager_amount": 10,
            "legs": [_leg(fight, 0), _leg(fight, 1)],
        },
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_composition"
    assert client.get("/bets").json() == []


def test_customer_money(client):
    fight = _create_event(client)
    cust = _create_customer(client, balance="0")
    cid = cust["customer_id"]
    bet = client.post(
        "/bets",
        json={"customer_id": cid, "employee_id": "emp-1", "bet_type": "SINGLE", "wager_amount": 100, "legs": [_leg(fight)]},
    ).json()
    client.post(f"/bets/{bet['bet_id']}/settle", json={"status": "WON"})

    resp = client.post(f"/customers/{cid}/credit", json={"bet_ids": [bet["bet_id"]]})
    assert resp.json() == {"customer_id": cid, "credited": "140.00"}
    resp = client.post(f"/customers/{cid}/payout", json={"amount": "40"})
    assert resp.json()["kind"] == "WITHDRAWAL"
    resp = client.post(f"/customers/{cid}/adjust", json={"amount": "-5", "note": "fee"})
    assert resp.json()["note"] == "fee"
    assert client.get(f"/customers/{cid}").json()["balance"] == "-5.00"
    assert client.post("/customers/nobody/payout", json={"amount": "1"}).status_code == 404


def test_list_bets_and_reports(client):
    fight = _create_event(client)
    cust = _create_customer(client)
    ids = []
    for emp in ("emp-1", "emp-2", "emp-1"):
        resp = client.post(
            "/bets",
            json={"customer_id": cust["customer_id"], "employee_id": emp, "bet_type": "SINGLE", "wager_amount": 50, "legs": [_leg(fight)]},
        )
        ids.append(resp.json()["bet_id"])

    assert [b["bet_id"] for b in client.get("/bets", params={"order": "asc"}).json()] == ids
    assert [b["bet_id"] for b in client.get("/bets", params={"order": "desc", "limit": 1}).json()] == [ids[2]]
    assert len(client.get("/bets", params={"employee_id": "emp-2"}).json()) == 1
    assert client.get("/bets", params={"order": "sideways"}).status_code == 422

    summary = client.get("/reports/summary", params={"start_ts": T0, "end_ts": T0}).json()
    assert summary["total_bets"] == 3
    assert summary["total_wagered"] == "150"
    assert len(summary["bets_by_status"]) == 5

    employees = client.get("/reports/employees").json()
    assert [(e["employee_id"], e["bets_processed"]) for e in employees] == [("emp-1", 2), ("emp-2", 1)]


def test_quote_payout(client):
    fight = _create_event(client)
    resp = client.post("/quote/payout", json={"bet_type": "SINGLE", "wager_amount": "500", "legs": [_leg(fight)]})
    assert resp.json() == {"potential_payout": "700.00"}


def test_persists_to_duckdb(tmp_path):
    from sportsbook.storage.db import get_connection
    from sportsbook.storage.ledger_store import load_ledger

    db = str(tmp_path / "api.duckdb")
    client = TestClient(create_app(ledger=Ledger(clock=FakeClock()), db_path=db))
    _create_customer(client)
    conn = get_connection(db)
    restored = load_ledger(conn, Ledger())
    conn.close()
    assert [c.name for c in restored.list_customers()] == ["Claire Redfield"]
