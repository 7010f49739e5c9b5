"""Aggregations over ledger read views."""

from sportsbook.reports.summary import (
    DailyStats,
    EmployeeStats,
    ReportData,
    StatusBreakdown,
    employee_stats,
    generate_report,
    week_over_week,
)

__all__ = [
    "DailyStats",
    "EmployeeStats",
    "ReportData",
    "StatusBreakdown",
    "employee_stats",
    "generate_report",
    "week_over_week",
]
