"""Schema definitions for recurring report configurations.

Maps 1:1 to the ``report_configs`` table. A config describes who receives
a digest, which sections it contains and when it is due next.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from src.core.exceptions import SchedulingError, ValidationError
from src.core.validation import is_valid_email, is_valid_time_of_day

ReportFrequency = Literal["daily", "weekly", "monthly"]

VALID_FREQUENCIES: frozenset[str] = frozenset({"daily", "weekly", "monthly"})

DayOfWeek = Literal[
    "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
]

# Sunday-first numbering: sunday=0 ... saturday=6
DAY_OF_WEEK_INDEX: dict[str, int] = {
    "sunday": 0,
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
}

ReportSection = Literal["cfp", "billing", "planning", "crm", "budget", "sponsoring"]

VALID_SECTIONS: frozenset[str] = frozenset({
    "cfp",
    "billing",
    "planning",
    "crm",
    "budget",
    "sponsoring",
})

RecipientRole = Literal["admin", "organizer", "member"]

VALID_ROLES: frozenset[str] = frozenset({"admin", "organizer", "member"})

DEFAULT_RECIPIENT_ROLES: tuple[str, ...] = ("admin", "organizer")


def recurrence_error(
    frequency: str,
    day_of_week: str | None,
    day_of_month: int | None,
) -> str | None:
    """Describe what is wrong with a recurrence, or None if it is well-formed."""
    if frequency not in VALID_FREQUENCIES:
        return f"Invalid frequency {frequency!r}. Must be one of: {sorted(VALID_FREQUENCIES)}"
    if day_of_week is not None and day_of_week not in DAY_OF_WEEK_INDEX:
        return f"Invalid day_of_week {day_of_week!r}"
    if day_of_month is not None and not 1 <= day_of_month <= 31:
        return f"day_of_month must be between 1 and 31, got {day_of_month}"
    if frequency == "weekly" and day_of_week is None:
        return "Weekly reports require day_of_week"
    if frequency == "monthly" and day_of_month is None:
        return "Monthly reports require day_of_month"
    return None


@dataclass(frozen=True)
class ReportRecipient:
    """An explicit report recipient."""

    email: str
    name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"email": self.email}
        if self.name:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: "dict[str, Any] | str | ReportRecipient") -> "ReportRecipient":
        if isinstance(data, ReportRecipient):
            return data
        if isinstance(data, str):
            return cls(email=data)
        return cls(email=data["email"], name=data.get("name"))


def validate_recipients(recipients: list[ReportRecipient]) -> tuple[bool, list[str]]:
    """Check a recipient list for emptiness, email syntax and duplicates.

    Duplicates are detected case-insensitively.

    Returns:
        ``(valid, errors)``; ``errors`` is empty when valid.
    """
    errors: list[str] = []
    if not recipients:
        errors.append("At least one recipient is required")

    seen: set[str] = set()
    for recipient in recipients:
        if not is_valid_email(recipient.email):
            errors.append(f"Invalid email: {recipient.email}")
        key = recipient.email.lower()
        if key in seen:
            errors.append(f"Duplicate email: {recipient.email}")
        seen.add(key)

    return not errors, errors


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


@dataclass
class ReportConfig:
    """A recurring report subscription for one edition.

    Structural checks (enum values, "HH:MM" format, email syntax) run on
    construction. The rules a config must meet to be sent (non-empty
    recipients and sections, a complete recurrence) are checked by
    ``validate()`` and ``is_schedulable`` so that incomplete drafts can
    still be stored and loaded.

    Attributes:
        config_id: UUID4 identifier.
        edition_id: Edition the report covers.
        name: Display name, used in the subject line.
        frequency: daily, weekly or monthly.
        time_of_day: Zero-padded 24-hour "HH:MM".
        sections: Report sections, in display order.
        day_of_week: Required for weekly reports.
        day_of_month: Required for monthly reports (1-31).
        timezone: Stored label only; schedule arithmetic is UTC.
        recipient_roles: Edition roles that also receive the report.
        recipients: Explicit recipients.
        last_sent_at: Last successful send.
        next_scheduled_at: Next due instant.
    """

    edition_id: str
    name: str
    frequency: str
    time_of_day: str
    sections: list[str] = field(default_factory=list)
    config_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    enabled: bool = True
    day_of_week: str | None = None
    day_of_month: int | None = None
    timezone: str = "UTC"
    recipient_roles: list[str] = field(default_factory=lambda: list(DEFAULT_RECIPIENT_ROLES))
    recipients: list[ReportRecipient] = field(default_factory=list)
    last_sent_at: datetime | None = None
    next_scheduled_at: datetime | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Report name must not be empty")
        if self.frequency not in VALID_FREQUENCIES:
            raise ValidationError(
                f"Invalid frequency {self.frequency!r}. "
                f"Must be one of: {sorted(VALID_FREQUENCIES)}"
            )
        if not is_valid_time_of_day(self.time_of_day):
            raise ValidationError(
                f"Invalid time_of_day {self.time_of_day!r}; expected zero-padded HH:MM"
            )
        invalid_sections = [s for s in self.sections if s not in VALID_SECTIONS]
        if invalid_sections:
            raise ValidationError(f"Invalid sections: {invalid_sections}")
        invalid_roles = [r for r in self.recipient_roles if r not in VALID_ROLES]
        if invalid_roles:
            raise ValidationError(f"Invalid recipient roles: {invalid_roles}")
        self.recipients = [ReportRecipient.from_dict(r) for r in self.recipients]
        invalid_emails = [r.email for r in self.recipients if not is_valid_email(r.email)]
        if invalid_emails:
            raise ValidationError(f"Invalid email recipients: {invalid_emails}")
        self.timezone = self.timezone or "UTC"

    def validate(self) -> None:
        """Raise if the config cannot be scheduled and sent.

        Raises:
            SchedulingError: Incomplete or malformed recurrence.
            ValidationError: Empty sections, or invalid/duplicate recipients.
        """
        error = recurrence_error(self.frequency, self.day_of_week, self.day_of_month)
        if error:
            raise SchedulingError(error)
        if not self.sections:
            raise ValidationError("At least one section is required")
        valid, errors = validate_recipients(self.recipients)
        if not valid:
            raise ValidationError("; ".join(errors))

    @property
    def is_schedulable(self) -> bool:
        """True when the recurrence is complete and recipients and sections exist."""
        return (
            bool(self.recipients)
            and bool(self.sections)
            and recurrence_error(self.frequency, self.day_of_week, self.day_of_month) is None
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""

        def iso(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        return {
            "config_id": self.config_id,
            "edition_id": self.edition_id,
            "name": self.name,
            "enabled": self.enabled,
            "frequency": self.frequency,
            "day_of_week": self.day_of_week,
            "day_of_month": self.day_of_month,
            "time_of_day": self.time_of_day,
            "timezone": self.timezone,
            "recipient_roles": list(self.recipient_roles),
            "recipients": [r.to_dict() for r in self.recipients],
            "sections": list(self.sections),
            "last_sent_at": iso(self.last_sent_at),
            "next_scheduled_at": iso(self.next_scheduled_at),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReportConfig":
        """Create a ReportConfig from a dictionary."""
        return cls(
            config_id=data.get("config_id", str(uuid.uuid4())),
            edition_id=data["edition_id"],
            name=data["name"],
            enabled=data.get("enabled", True),
            frequency=data["frequency"],
            day_of_week=data.get("day_of_week"),
            day_of_month=data.get("day_of_month"),
            time_of_day=data["time_of_day"],
            timezone=data.get("timezone") or "UTC",
            recipient_roles=list(data.get("recipient_roles") or DEFAULT_RECIPIENT_ROLES),
            recipients=[ReportRecipient.from_dict(r) for r in data.get("recipients") or []],
            sections=list(data.get("sections") or []),
            last_sent_at=_parse_datetime(data.get("last_sent_at")),
            next_scheduled_at=_parse_datetime(data.get("next_scheduled_at")),
            created_at=_parse_datetime(data.get("created_at")) or _utcnow(),
            updated_at=_parse_datetime(data.get("updated_at")) or _utcnow(),
        )
