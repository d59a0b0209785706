"""Alert lifecycle transitions.

State machine::

    active ──acknowledge──> acknowledged
      │                         │
      ├──resolve / dismiss──────┴──> resolved | dismissed (terminal)

Acknowledge and dismiss record the acting user; resolve does not. Any
action from a terminal status raises ``InvalidTransitionError`` instead
of being applied.
"""

from dataclasses import replace
from datetime import datetime, timezone

from src.alerts.schemas import Alert
from src.core.exceptions import InvalidTransitionError, ValidationError

TERMINAL_STATUSES: frozenset[str] = frozenset({"resolved", "dismissed"})

# action -> statuses it may be applied from
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "acknowledge": frozenset({"active"}),
    "resolve": frozenset({"active", "acknowledged"}),
    "dismiss": frozenset({"active", "acknowledged"}),
}


def can_acknowledge(status: str) -> bool:
    return status in ALLOWED_TRANSITIONS["acknowledge"]


def can_resolve(status: str) -> bool:
    return status in ALLOWED_TRANSITIONS["resolve"]


def can_dismiss(status: str) -> bool:
    return status in ALLOWED_TRANSITIONS["dismiss"]


def is_actionable(status: str) -> bool:
    """Active and acknowledged alerts still need attention."""
    return status in ("active", "acknowledged")


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def _check(alert: Alert, action: str) -> None:
    if alert.status not in ALLOWED_TRANSITIONS[action]:
        raise InvalidTransitionError(alert.alert_id, alert.status, action)


def _now(at: datetime | None) -> datetime:
    return at or datetime.now(timezone.utc)


def acknowledge(alert: Alert, user_id: str, at: datetime | None = None) -> Alert:
    """Return a copy of ``alert`` moved to ``acknowledged`` by ``user_id``."""
    if not user_id:
        raise ValidationError("Acknowledging an alert requires a user id")
    _check(alert, "acknowledge")
    now = _now(at)
    return replace(
        alert,
        status="acknowledged",
        acknowledged_by=user_id,
        acknowledged_at=now,
        updated_at=now,
    )


def resolve(alert: Alert, at: datetime | None = None) -> Alert:
    """Return a copy of ``alert`` moved to ``resolved``."""
    _check(alert, "resolve")
    now = _now(at)
    return replace(alert, status="resolved", resolved_at=now, updated_at=now)


def dismiss(alert: Alert, user_id: str, at: datetime | None = None) -> Alert:
    """Return a copy of ``alert`` moved to ``dismissed`` by ``user_id``."""
    if not user_id:
        raise ValidationError("Dismissing an alert requires a user id")
    _check(alert, "dismiss")
    now = _now(at)
    return replace(
        alert,
        status="dismissed",
        dismissed_by=user_id,
        dismissed_at=now,
        updated_at=now,
    )
