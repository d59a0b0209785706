"""Recurring digest reports for editions.

Components:
- ReportConfig / ReportRecipient: Dataclasses mapping to the report_configs table
- ReportFrequency / DayOfWeek / ReportSection / RecipientRole: Literal types
- RecurrenceSpec / calculate_next_scheduled_at: Next-run calculation
- GeneratedReport / ReportGenerator: Report content interface
- ReportConfigSettings: Pydantic settings for report delivery
- ReportConfigRepository: asyncpg persistence and due-date queries
- ReportScheduler: Finds due reports, sends them and advances schedules
"""

from src.reports.config import ReportConfigSettings
from src.reports.generator import (
    GeneratedReport,
    ReportGenerator,
    ReportPeriod,
    report_period,
    report_subject,
)
from src.reports.repository import ReportConfigRepository
from src.reports.schedule import (
    RecurrenceSpec,
    calculate_next_scheduled_at,
    describe_schedule,
    is_valid_schedule,
    parse_time_of_day,
)
from src.reports.scheduler import ProcessDueResult, ReportScheduler, SendReportResult
from src.reports.schemas import (
    DAY_OF_WEEK_INDEX,
    VALID_FREQUENCIES,
    VALID_ROLES,
    VALID_SECTIONS,
    DayOfWeek,
    RecipientRole,
    ReportConfig,
    ReportFrequency,
    ReportRecipient,
    ReportSection,
    validate_recipients,
)

__all__ = [
    "DAY_OF_WEEK_INDEX",
    "DayOfWeek",
    "GeneratedReport",
    "ProcessDueResult",
    "RecipientRole",
    "RecurrenceSpec",
    "ReportConfig",
    "ReportConfigRepository",
    "ReportConfigSettings",
    "ReportFrequency",
    "ReportGenerator",
    "ReportPeriod",
    "ReportRecipient",
    "ReportScheduler",
    "ReportSection",
    "SendReportResult",
    "VALID_FREQUENCIES",
    "VALID_ROLES",
    "VALID_SECTIONS",
    "calculate_next_scheduled_at",
    "describe_schedule",
    "is_valid_schedule",
    "parse_time_of_day",
    "report_period",
    "report_subject",
    "validate_recipients",
]
