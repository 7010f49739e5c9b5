"""Report aggregation: totals, status breakdown, daily buckets, top customers, employee stats."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Sequence

from pydantic import BaseModel, Field

from sportsbook.models.bet import Bet, BetStatus
from sportsbook.models.customer import Customer
from sportsbook.money import HUNDRED, ZERO, Money, money_sum, round_money

TOP_CUSTOMERS = 5


class StatusBreakdown(BaseModel):
    status: BetStatus
    count: int
    amount: Money


class DailyStats(BaseModel):
    date: str  # YYYY-MM-DD (UTC)
    bets_placed: int = 0
    wager_amount: Money = ZERO
    paid_out: Money = ZERO
    profit: Money = ZERO


class ReportData(BaseModel):
    start_ts: int
    end_ts: int
    total_bets: int
    total_wagered: Money
    total_paid_out: Money
    house_profit: Money
    house_profit_pct: Money
    avg_bet_amount: Money
    top_customers: list[Customer] = Field(default_factory=list)
    bets_by_status: list[StatusBreakdown] = Field(default_factory=list)
    daily_stats: list[DailyStats] = Field(default_factory=list)


class EmployeeStats(BaseModel):
    employee_id: str
    bets_processed: int
    total_bet_amount: Money
    unique_customers: int


def _utc_date(ts_ms: int) -> date:
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).date()


def _paid_out(bet: Bet) -> Decimal:
    return bet.potential_payout if bet.status == BetStatus.WON else ZERO


def generate_report(bets: Iterable[Bet], customers: Iterable[Customer], start_ts: int, end_ts: int) -> ReportData:
    """Aggregate bets created in [start_ts, end_ts] (ms epoch, inclusive)."""
    window = [b for b in bets if start_ts <= b.created_at <= end_ts]
    total_bets = len(window)
    total_wagered = money_sum(b.wager_amount for b in window)
    total_paid_out = money_sum(_paid_out(b) for b in window)
    house_profit = total_wagered - total_paid_out
    pct = round_money(house_profit / total_wagered * HUNDRED) if total_wagered > ZERO else ZERO
    avg = round_money(total_wagered / total_bets) if total_bets else ZERO

    by_status = []
    for status in BetStatus:
        rows = [b for b in window if b.status == status]
        by_status.append(StatusBreakdown(status=status, count=len(rows), amount=money_sum(b.wager_amount for b in rows)))

    top = sorted(customers, key=lambda c: c.total_wagered, reverse=True)[:TOP_CUSTOMERS]

    # Zero-filled bucket per UTC day in range
    daily: dict[str, DailyStats] = {}
    day, last = _utc_date(start_ts), _utc_date(end_ts)
    while day <= last:
        daily[day.isoformat()] = DailyStats(date=day.isoformat())
        day += timedelta(days=1)
    for b in window:
        bucket = daily.get(_utc_date(b.created_at).isoformat())
        if bucket is None:
            continue
        paid = _paid_out(b)
        bucket.bets_placed += 1
        bucket.wager_amount += b.wager_amount
        bucket.paid_out += paid
        bucket.profit += b.wager_amount - paid

    return ReportData(
        start_ts=start_ts,
        end_ts=end_ts,
        total_bets=total_bets,
        total_wagered=total_wagered,
        total_paid_out=total_paid_out,
        house_profit=house_profit,
        house_profit_pct=pct,
        avg_bet_amount=avg,
        top_customers=[c.model_copy(deep=True) for c in top],
        bets_by_status=by_status,
        daily_stats=list(daily.values()),
    )


def _pct_change(current: Decimal | int, previous: Decimal | int) -> Decimal:
    if previous == 0:
        return HUNDRED if current > 0 else ZERO
    return round_money((Decimal(current) - Decimal(previous)) / Decimal(previous) * HUNDRED)


def week_over_week(current: ReportData, previous: ReportData) -> dict[str, Decimal]:
    """Percent change of headline numbers between two reports."""
    return {
        "bets_change": _pct_change(current.total_bets, previous.total_bets),
        "wager_change": _pct_change(current.total_wagered, previous.total_wagered),
        "profit_change": _pct_change(current.house_profit, previous.house_profit),
        "avg_bet_change": _pct_change(current.avg_bet_amount, previous.avg_bet_amount),
    }


def employee_stats(bets: Sequence[Bet]) -> list[EmployeeStats]:
    """Per-employee bets processed, amount taken and distinct customers, busiest first."""
    grouped: dict[str, list[Bet]] = {}
    for b in bets:
        grouped.setdefault(b.employee_id, []).append(b)
    stats = [
        EmployeeStats(
            employee_id=emp,
            bets_processed=len(rows),
            total_bet_amount=money_sum(b.wager_amount for b in rows),
            unique_customers=len({b.customer_id for b in rows}),
        )
        for emp, rows in grouped.items()
    ]
    return sorted(stats, key=lambda s: (-s.bets_processed, s.employee_id))
