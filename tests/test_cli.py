"""CLI commands against a temporary DuckDB ledger."""

import pytest
from typer.testing import CliRunner

from sportsbook.cli import app as cli_app
from sportsbook.cli.app import app

runner = CliRunner()


@pytest.fixture
def invoke(tmp_path, monkeypatch):
    # keep structlog unconfigured so no logger caches the runner's stream
    monkeypatch.setattr(cli_app, "configure_logging", lambda settings: None)
    base = ["--db", str(tmp_path / "ledger.duckdb"), "--config-dir", str(tmp_path / "config")]

    def _invoke(*args):
        return runner.invoke(app, [*base, *args])

    return _invoke


def _value(output, prefix):
    for line in output.splitlines():
        if line.startswith(prefix):
            return line[len(prefix):].split()[0]
    raise AssertionError(f"{prefix!r} not in output:\n{output}")


def _selection_ids(output):
    return [line.split()[0] for line in output.splitlines() if line.startswith("  ")]


def _setup(invoke):
    res = invoke("customers", "create", "--name", "Claire Redfield", "--balance", "100")
    assert res.exit_code == 0, res.output
    cid = _value(res.output, "Customer id: ")
    res = invoke("events", "create", "--name", "Street Race", "-c", "Racing", "-s", "May Maple=2.5", "-s", "Eddie=1.8")
    assert res.exit_code == 0, res.output
    eid = _value(res.output, "Event id: ")
    return cid, eid, _selection_ids(res.output)


def test_event_create_and_list(invoke):
    _, eid, sids = _setup(invoke)
    assert len(sids) == 2
    res = invoke("events", "list")
    assert res.exit_code == 0
    assert eid in res.output
    assert "2.50 (open 2.50)" in res.output
    assert "Total: 1 events" in res.output


def test_bad_selection_argument(invoke):
    res = invoke("events", "create", "--name", "Race", "-s", "no odds here")
    assert res.exit_code != 0


def test_place_settle_credit(invoke):
    cid, eid, sids = _setup(invoke)
    res = invoke("bets", "place", "--customer", cid, "-e", "emp-1", "-w", "40", "-l", f"{eid}:{sids[0]}")
    assert res.exit_code == 0, res.output
    assert "SINGLE" in res.output
    assert "Potential payout: 100.00" in res.output
    bet_id = _value(res.output, "Bet id: ")

    res = invoke("bets", "settle", bet_id, "-s", "WON", "--credit")
    assert res.exit_code == 0, res.output
    assert "Credited 100.00 to balance" in res.output

    res = invoke("customers", "list")
    assert "balance=160.00" in res.output
    assert "net=60.00" in res.output

    res = invoke("bets", "settle", bet_id, "-s", "LOST")
    assert res.exit_code == 1
    assert "Error [invalid_state]" in res.output

    res = invoke("customers", "history", cid)
    assert "PAYOUT" in res.output
    assert "WAGER" in res.output


def test_parlay_inferred_from_legs(invoke):
    cid, eid, sids = _setup(invoke)
    res = invoke("events", "create", "--name", "Boxing", "-s", "Mike=1.4", "-s", "Lenny=2.7")
    eid2 = _value(res.output, "Event id: ")
    sid2 = _selection_ids(res.output)[0]
    res = invoke("bets", "place", "--customer", cid, "-e", "emp-1", "-w", "10", "-l", f"{eid}:{sids[0]}", "-l", f"{eid2}:{sid2}")
    assert res.exit_code == 0, res.output
    assert "PARLAY" in res.output
    assert "Potential payout: 35.00" in res.output


def test_rejected_bet_is_not_saved(invoke):
    cid, eid, sids = _setup(invoke)
    res = invoke("bets", "place", "--customer", cid, "-e", "emp-1", "-w", "0", "-l", f"{eid}:{sids[0]}")
    assert res.exit_code == 1
    assert "Error [validation_error]" in res.output
    assert "Total: 0 bets" in invoke("bets", "list").output
    assert "balance=100" in invoke("customers", "list").output


def test_delete_bet_refunds(invoke):
    cid, eid, sids = _setup(invoke)
    res = invoke("bets", "place", "--customer", cid, "-e", "emp-1", "-w", "25", "-l", f"{eid}:{sids[1]}")
    bet_id = _value(res.output, "Bet id: ")
    res = invoke("bets", "delete", bet_id)
    assert res.exit_code == 0, res.output
    assert "refunded 25" in res.output
    assert "balance=100" in invoke("customers", "list").output
    assert "wagered=0\n" in invoke("events", "list").output


def test_unknown_customer_history(invoke):
    res = invoke("customers", "history", "nobody")
    assert res.exit_code == 1
    assert "Error [not_found]" in res.output


def test_reports(invoke, tmp_path):
    cid, eid, sids = _setup(invoke)
    invoke("bets", "place", "--customer", cid, "-e", "emp-9", "-w", "10", "-l", f"{eid}:{sids[0]}")
    res = invoke("report", "employees")
    assert "emp-9" in res.output
    assert "bets=1" in res.output
    res = invoke("report", "summary", "--days", "1")
    assert res.exit_code == 0, res.output
    assert "Bets: 1" in res.output
    out = tmp_path / "bets.parquet"
    res = invoke("report", "export", "-o", str(out))
    assert "Exported 1 bets" in res.output
    assert out.exists()


def test_version():
    res = runner.invoke(app, ["--version"])
    assert res.exit_code == 0
    assert res.output.startswith("sportsbook ")
