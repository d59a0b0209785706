"""Report generator interface.

Rendering report content from a metrics snapshot is the generator's job;
the scheduler only needs the subject, bodies and the structured data
behind them. The helpers here cover the parts every generator shares: the
reporting window and the subject line.
"""

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol, runtime_checkable

from src.reports.schemas import ReportConfig


@dataclass(frozen=True)
class GeneratedReport:
    """Rendered report ready for delivery."""

    subject: str
    html: str
    text: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ReportPeriod:
    start: datetime
    end: datetime


@runtime_checkable
class ReportGenerator(Protocol):
    """Turns a report config into deliverable content."""

    async def generate_report(self, config: ReportConfig) -> GeneratedReport:
        ...

    async def generate_report_data(
        self,
        config: ReportConfig,
        edition_name: str,
        event_name: str,
    ) -> dict[str, Any]:
        ...


def _minus_one_month(value: datetime) -> datetime:
    year, month = (value.year - 1, 12) if value.month == 1 else (value.year, value.month - 1)
    last = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last))


def report_period(frequency: str, now: datetime | None = None) -> ReportPeriod:
    """Window a report covers, ending at ``now``.

    Daily reports look back one day, weekly seven days and monthly one
    calendar month (clamped to the shorter month's last day).
    """
    end = now or datetime.now(timezone.utc)
    match frequency:
        case "daily":
            start = end - timedelta(days=1)
        case "weekly":
            start = end - timedelta(days=7)
        case "monthly":
            start = _minus_one_month(end)
        case _:
            start = end
    return ReportPeriod(start=start, end=end)


def format_report_date(value: datetime) -> str:
    """e.g. "Jan 5, 2024"."""
    return f"{value:%b} {value.day}, {value.year}"


def report_subject(config: ReportConfig, edition_name: str, period: ReportPeriod) -> str:
    """e.g. "Weekly Report - DevFest 2024 (Jan 8, 2024 - Jan 15, 2024)"."""
    return (
        f"{config.name} - {edition_name} "
        f"({format_report_date(period.start)} - {format_report_date(period.end)})"
    )
