"""Schema definitions for alert thresholds and alert records.

Maps 1:1 to the ``alert_thresholds`` and ``alerts`` tables. A threshold is
an organizer-configured rule comparing one metric source to a value; an
alert is the stateful record opened when that rule starts firing.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from src.core.exceptions import ValidationError
from src.core.validation import format_number, is_valid_email
from src.metrics.schemas import MetricSource

ComparisonOperator = Literal["gt", "gte", "lt", "lte", "eq", "neq"]

VALID_OPERATORS: frozenset[str] = frozenset({"gt", "gte", "lt", "lte", "eq", "neq"})

OPERATOR_SYMBOLS: dict[str, str] = {
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
    "eq": "=",
    "neq": "!=",
}

OPERATOR_LABELS: dict[str, str] = {
    "gt": "Greater than",
    "gte": "Greater than or equal",
    "lt": "Less than",
    "lte": "Less than or equal",
    "eq": "Equal to",
    "neq": "Not equal to",
}

AlertSeverity = Literal["info", "warning", "critical"]

VALID_SEVERITIES: frozenset[str] = frozenset({"info", "warning", "critical"})

SEVERITY_LABELS: dict[str, str] = {
    "info": "Information",
    "warning": "Warning",
    "critical": "Critical",
}

SEVERITY_COLORS: dict[str, str] = {
    "info": "#3b82f6",
    "warning": "#f59e0b",
    "critical": "#ef4444",
}

AlertStatus = Literal["active", "acknowledged", "resolved", "dismissed"]

VALID_STATUSES: frozenset[str] = frozenset({
    "active",
    "acknowledged",
    "resolved",
    "dismissed",
})

STATUS_LABELS: dict[str, str] = {
    "active": "Active",
    "acknowledged": "Acknowledged",
    "resolved": "Resolved",
    "dismissed": "Dismissed",
}


def compare(value: float, operator: str, threshold: float) -> bool:
    """Apply a comparison operator: ``value <op> threshold``."""
    match operator:
        case "gt":
            return value > threshold
        case "gte":
            return value >= threshold
        case "lt":
            return value < threshold
        case "lte":
            return value <= threshold
        case "eq":
            return value == threshold
        case "neq":
            return value != threshold
    raise ValidationError(f"Unknown comparison operator {operator!r}")


def get_operator_symbol(operator: str) -> str:
    return OPERATOR_SYMBOLS.get(operator, operator)


def get_operator_label(operator: str) -> str:
    return OPERATOR_LABELS.get(operator, operator)


def get_severity_label(severity: str) -> str:
    return SEVERITY_LABELS.get(severity, severity)


def get_severity_color(severity: str) -> str:
    return SEVERITY_COLORS.get(severity, "#6b7280")


def get_status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def format_condition(
    current_value: float,
    operator_symbol: str,
    threshold_value: float,
    unit: str | None = None,
) -> str:
    """Render "Current value (15%) is > threshold (10%)"."""
    suffix = unit or ""
    return (
        f"Current value ({format_number(current_value)}{suffix}) is "
        f"{operator_symbol} threshold ({format_number(threshold_value)}{suffix})"
    )


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


def _parse_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return []
        return parsed if isinstance(parsed, list) else []
    return list(value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AlertThreshold:
    """A rule comparing a metric source to a value at a severity.

    The threshold value carries no unit of its own; the unit is attached
    when the metric is read at evaluation time.

    Attributes:
        threshold_id: UUID4 identifier.
        edition_id: Edition (tenant) the rule belongs to.
        name: Short label, reused as the alert title.
        metric_source: Watched scalar.
        operator: Comparison applied as ``current <op> threshold_value``.
        threshold_value: Numeric bound.
        severity: Level of alerts raised by this rule.
        description: Optional free text.
        enabled: Disabled rules are skipped by evaluation.
        notify_by_email: Mail ``email_recipients`` when an alert opens.
        notify_in_app: Add an entry to in-app feeds when an alert opens.
        email_recipients: Addresses mailed on alert creation.
    """

    edition_id: str
    name: str
    metric_source: MetricSource
    operator: str
    threshold_value: float
    severity: str
    threshold_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    description: str | None = None
    enabled: bool = True
    notify_by_email: bool = False
    notify_in_app: bool = True
    email_recipients: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Threshold name must not be empty")
        try:
            self.metric_source = MetricSource(self.metric_source)
        except ValueError:
            raise ValidationError(
                f"Invalid metric_source {self.metric_source!r}"
            ) from None
        if self.operator not in VALID_OPERATORS:
            raise ValidationError(
                f"Invalid operator {self.operator!r}. "
                f"Must be one of: {sorted(VALID_OPERATORS)}"
            )
        if self.severity not in VALID_SEVERITIES:
            raise ValidationError(
                f"Invalid severity {self.severity!r}. "
                f"Must be one of: {sorted(VALID_SEVERITIES)}"
            )
        invalid = [e for e in self.email_recipients if not is_valid_email(e)]
        if invalid:
            raise ValidationError(f"Invalid email recipients: {invalid}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "threshold_id": self.threshold_id,
            "edition_id": self.edition_id,
            "name": self.name,
            "description": self.description,
            "metric_source": self.metric_source.value,
            "operator": self.operator,
            "threshold_value": self.threshold_value,
            "severity": self.severity,
            "enabled": self.enabled,
            "notify_by_email": self.notify_by_email,
            "notify_in_app": self.notify_in_app,
            "email_recipients": list(self.email_recipients),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AlertThreshold":
        """Create an AlertThreshold from a dictionary or database row."""
        return cls(
            threshold_id=data.get("threshold_id", str(uuid.uuid4())),
            edition_id=data["edition_id"],
            name=data["name"],
            description=data.get("description"),
            metric_source=data["metric_source"],
            operator=data["operator"],
            threshold_value=float(data["threshold_value"]),
            severity=data["severity"],
            enabled=data.get("enabled", True),
            notify_by_email=data.get("notify_by_email", False),
            notify_in_app=data.get("notify_in_app", True),
            email_recipients=_parse_list(data.get("email_recipients")),
            created_at=_parse_datetime(data.get("created_at")) or _utcnow(),
            updated_at=_parse_datetime(data.get("updated_at")) or _utcnow(),
        )


@dataclass
class Alert:
    """A persisted alert opened by a triggered threshold.

    Alerts are never deleted; they move to ``resolved`` or ``dismissed``.
    At most one alert per threshold may be ``active`` at a time.

    Attributes:
        alert_id: UUID4 identifier.
        edition_id: Edition the alert belongs to.
        threshold_id: Threshold that fired (reference, not ownership).
        title: Threshold name at the time of firing.
        message: Rendered condition text.
        severity: Copied from the threshold.
        metric_source: Copied from the threshold.
        current_value: Metric value that triggered the alert.
        threshold_value: Bound it was compared against.
        status: Lifecycle status.
    """

    edition_id: str
    threshold_id: str
    title: str
    message: str
    severity: str
    metric_source: MetricSource
    current_value: float
    threshold_value: float
    alert_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: str = "active"
    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None
    resolved_at: datetime | None = None
    dismissed_by: str | None = None
    dismissed_at: datetime | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        try:
            self.metric_source = MetricSource(self.metric_source)
        except ValueError:
            raise ValidationError(
                f"Invalid metric_source {self.metric_source!r}"
            ) from None
        if self.severity not in VALID_SEVERITIES:
            raise ValidationError(
                f"Invalid severity {self.severity!r}. "
                f"Must be one of: {sorted(VALID_SEVERITIES)}"
            )
        if self.status not in VALID_STATUSES:
            raise ValidationError(
                f"Invalid status {self.status!r}. "
                f"Must be one of: {sorted(VALID_STATUSES)}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""

        def iso(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        return {
            "alert_id": self.alert_id,
            "edition_id": self.edition_id,
            "threshold_id": self.threshold_id,
            "title": self.title,
            "message": self.message,
            "severity": self.severity,
            "metric_source": self.metric_source.value,
            "current_value": self.current_value,
            "threshold_value": self.threshold_value,
            "status": self.status,
            "acknowledged_by": self.acknowledged_by,
            "acknowledged_at": iso(self.acknowledged_at),
            "resolved_at": iso(self.resolved_at),
            "dismissed_by": self.dismissed_by,
            "dismissed_at": iso(self.dismissed_at),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Alert":
        """Create an Alert from a dictionary or database row."""
        return cls(
            alert_id=data.get("alert_id", str(uuid.uuid4())),
            edition_id=data["edition_id"],
            threshold_id=data["threshold_id"],
            title=data["title"],
            message=data["message"],
            severity=data["severity"],
            metric_source=data["metric_source"],
            current_value=float(data["current_value"]),
            threshold_value=float(data["threshold_value"]),
            status=data.get("status") or "active",
            acknowledged_by=data.get("acknowledged_by"),
            acknowledged_at=_parse_datetime(data.get("acknowledged_at")),
            resolved_at=_parse_datetime(data.get("resolved_at")),
            dismissed_by=data.get("dismissed_by"),
            dismissed_at=_parse_datetime(data.get("dismissed_at")),
            created_at=_parse_datetime(data.get("created_at")) or _utcnow(),
            updated_at=_parse_datetime(data.get("updated_at")) or _utcnow(),
        )
