"""Next-run calculation for recurring reports.

Clock arithmetic is done on UTC fields. The recurrence's timezone is
carried along as a label but does not shift the wall-clock time, so a
"09:00" report is due at 09:00 UTC whatever its timezone says.

A reference instant exactly equal to the due time counts as passed.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from src.core.exceptions import SchedulingError, ValidationError
from src.core.validation import is_valid_time_of_day
from src.reports.schemas import DAY_OF_WEEK_INDEX, ReportConfig, recurrence_error


@dataclass(frozen=True)
class RecurrenceSpec:
    """When a report is due: cadence, wall-clock time and anchor day."""

    frequency: str
    time_of_day: str
    timezone: str = "UTC"
    day_of_week: str | None = None
    day_of_month: int | None = None

    @classmethod
    def from_config(cls, config: ReportConfig) -> "RecurrenceSpec":
        return cls(
            frequency=config.frequency,
            time_of_day=config.time_of_day,
            timezone=config.timezone,
            day_of_week=config.day_of_week,
            day_of_month=config.day_of_month,
        )


def parse_time_of_day(value: str) -> tuple[int, int]:
    """Split a zero-padded "HH:MM" string into ``(hours, minutes)``."""
    if not is_valid_time_of_day(value):
        raise ValidationError(f"Invalid time_of_day {value!r}; expected zero-padded HH:MM")
    hours, minutes = value.split(":")
    return int(hours), int(minutes)


def is_valid_schedule(spec: RecurrenceSpec) -> bool:
    """True when the spec names the anchor day its frequency needs."""
    return (
        is_valid_time_of_day(spec.time_of_day)
        and recurrence_error(spec.frequency, spec.day_of_week, spec.day_of_month) is None
    )


def describe_schedule(spec: RecurrenceSpec) -> str:
    """Human-readable cadence, e.g. "Weekly on monday at 14:30"."""
    match spec.frequency:
        case "daily":
            return f"Daily at {spec.time_of_day}"
        case "weekly":
            return f"Weekly on {spec.day_of_week} at {spec.time_of_day}"
        case "monthly":
            return f"Monthly on day {spec.day_of_month} at {spec.time_of_day}"
    return spec.frequency


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _sunday_first_weekday(value: datetime) -> int:
    # datetime.weekday() is Monday=0; recurrences count from Sunday=0
    return (value.weekday() + 1) % 7


def _with_day(value: datetime, day: int) -> datetime:
    """Move to ``day`` of the same month, clamped to the month's last day."""
    last = calendar.monthrange(value.year, value.month)[1]
    return value.replace(day=min(day, last))


def _next_month(value: datetime, day: int) -> datetime:
    year, month = (value.year + 1, 1) if value.month == 12 else (value.year, value.month + 1)
    last = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(day, last))


def calculate_next_scheduled_at(
    spec: RecurrenceSpec,
    reference: datetime | None = None,
) -> datetime:
    """Next instant strictly after ``reference`` at which the report is due.

    Args:
        spec: Recurrence to evaluate.
        reference: Instant to schedule after (defaults to now). Naive
            datetimes are taken as UTC.

    Returns:
        Timezone-aware UTC datetime with seconds zeroed.

    Raises:
        ValidationError: ``time_of_day`` is not "HH:MM".
        SchedulingError: Weekly without day_of_week, monthly without
            day_of_month, or an out-of-range anchor.
    """
    hours, minutes = parse_time_of_day(spec.time_of_day)
    error = recurrence_error(spec.frequency, spec.day_of_week, spec.day_of_month)
    if error:
        raise SchedulingError(error)

    ref = _as_utc(reference) if reference is not None else datetime.now(timezone.utc)
    candidate = ref.replace(hour=hours, minute=minutes, second=0, microsecond=0)
    if candidate <= ref:
        candidate += timedelta(days=1)

    if spec.frequency == "weekly":
        target = DAY_OF_WEEK_INDEX[spec.day_of_week]
        delta = (target - _sunday_first_weekday(candidate) + 7) % 7
        if delta == 0 and candidate <= ref:
            delta = 7
        candidate += timedelta(days=delta)
    elif spec.frequency == "monthly":
        candidate = _with_day(candidate, spec.day_of_month)
        if candidate <= ref:
            candidate = _next_month(candidate, spec.day_of_month)

    return candidate
