"""Tests for report window and subject helpers."""

from datetime import datetime, timezone

from src.reports.generator import (
    GeneratedReport,
    ReportGenerator,
    format_report_date,
    report_period,
    report_subject,
)

NOW = datetime(2024, 3, 31, 9, 0, tzinfo=timezone.utc)


class TestReportPeriod:
    def test_daily(self):
        period = report_period("daily", NOW)
        assert period.start == datetime(2024, 3, 30, 9, 0, tzinfo=timezone.utc)
        assert period.end == NOW

    def test_weekly(self):
        assert report_period("weekly", NOW).start == datetime(2024, 3, 24, 9, 0, tzinfo=timezone.utc)

    def test_monthly_clamps_to_short_month(self):
        assert report_period("monthly", NOW).start == datetime(2024, 2, 29, 9, 0, tzinfo=timezone.utc)

    def test_monthly_across_year(self):
        start = report_period("monthly", datetime(2024, 1, 15, tzinfo=timezone.utc)).start
        assert start == datetime(2023, 12, 15, tzinfo=timezone.utc)


class TestSubject:
    def test_format_date(self):
        assert format_report_date(datetime(2024, 1, 5)) == "Jan 5, 2024"

    def test_subject(self, weekly_config):
        period = report_period("weekly", datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc))
        assert (
            report_subject(weekly_config, "DevFest 2024", period)
            == "Weekly Report - DevFest 2024 (Jan 8, 2024 - Jan 15, 2024)"
        )


class StaticGenerator:
    async def generate_report(self, config):
        return GeneratedReport(subject=config.name, html="<p></p>", text="")

    async def generate_report_data(self, config, edition_name, event_name):
        return {"edition_name": edition_name}


def test_protocol_is_structural():
    assert isinstance(StaticGenerator(), ReportGenerator)
