"""Month/day report view derived from flat date-keyed rows."""

from __future__ import annotations

from ministerio.reporting.book import ReportBook, build_history, build_month_report, months_present
from ministerio.reporting.models import DailyRecord, MonthSummary, MonthTotals, ServiceLogRow, ServiceReport
from ministerio.reporting.months import MonthKey, month_label, parse_month
from ministerio.reporting.timer import HourTimer

__all__ = [
    "DailyRecord",
    "HourTimer",
    "MonthKey",
    "MonthSummary",
    "MonthTotals",
    "ReportBook",
    "ServiceLogRow",
    "ServiceReport",
    "build_history",
    "build_month_report",
    "month_label",
    "months_present",
    "parse_month",
]
