"""Tests for alert lifecycle transitions."""

import pytest
from datetime import datetime, timezone

from src.alerts import lifecycle
from src.alerts.schemas import Alert
from src.core.exceptions import InvalidTransitionError, ValidationError

AT = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)


def _alert(status: str = "active") -> Alert:
    return Alert(
        alert_id="alert-1",
        edition_id="ed-1",
        threshold_id="thr-1",
        title="Budget overrun",
        message="Current value (15%) is > threshold (10%)",
        severity="critical",
        metric_source="budget_variance",
        current_value=15,
        threshold_value=10,
        status=status,
    )


class TestPredicates:
    def test_acknowledge_only_from_active(self):
        assert lifecycle.can_acknowledge("active") is True
        assert lifecycle.can_acknowledge("acknowledged") is False

    @pytest.mark.parametrize("status", ["active", "acknowledged"])
    def test_resolve_and_dismiss_from_open(self, status):
        assert lifecycle.can_resolve(status) is True
        assert lifecycle.can_dismiss(status) is True
        assert lifecycle.is_actionable(status) is True
        assert lifecycle.is_terminal(status) is False

    @pytest.mark.parametrize("status", ["resolved", "dismissed"])
    def test_terminal_statuses(self, status):
        assert lifecycle.is_terminal(status) is True
        assert lifecycle.is_actionable(status) is False
        assert not lifecycle.can_acknowledge(status)
        assert not lifecycle.can_resolve(status)
        assert not lifecycle.can_dismiss(status)


class TestTransitions:
    def test_acknowledge_records_actor(self):
        alert = lifecycle.acknowledge(_alert(), "user-1", at=AT)
        assert alert.status == "acknowledged"
        assert alert.acknowledged_by == "user-1"
        assert alert.acknowledged_at == AT
        assert alert.updated_at == AT

    def test_acknowledge_does_not_mutate_input(self):
        original = _alert()
        lifecycle.acknowledge(original, "user-1", at=AT)
        assert original.status == "active"

    def test_acknowledge_requires_actor(self):
        with pytest.raises(ValidationError):
            lifecycle.acknowledge(_alert(), "")

    def test_acknowledge_twice_rejected(self):
        acked = lifecycle.acknowledge(_alert(), "user-1", at=AT)
        with pytest.raises(InvalidTransitionError):
            lifecycle.acknowledge(acked, "user-2")

    @pytest.mark.parametrize("status", ["active", "acknowledged"])
    def test_resolve_needs_no_actor(self, status):
        alert = lifecycle.resolve(_alert(status), at=AT)
        assert alert.status == "resolved"
        assert alert.resolved_at == AT

    @pytest.mark.parametrize("status", ["active", "acknowledged"])
    def test_dismiss_records_actor(self, status):
        alert = lifecycle.dismiss(_alert(status), "user-3", at=AT)
        assert alert.status == "dismissed"
        assert alert.dismissed_by == "user-3"
        assert alert.dismissed_at == AT

    def test_dismiss_requires_actor(self):
        with pytest.raises(ValidationError):
            lifecycle.dismiss(_alert(), "")


class TestTerminalRejection:
    """Nothing moves an alert out of resolved or dismissed."""

    @pytest.mark.parametrize("status", ["resolved", "dismissed"])
    def test_acknowledge_rejected(self, status):
        with pytest.raises(InvalidTransitionError) as exc:
            lifecycle.acknowledge(_alert(status), "user-1")
        assert exc.value.current_status == status
        assert exc.value.action == "acknowledge"

    @pytest.mark.parametrize("status", ["resolved", "dismissed"])
    def test_resolve_rejected(self, status):
        with pytest.raises(InvalidTransitionError):
            lifecycle.resolve(_alert(status))

    @pytest.mark.parametrize("status", ["resolved", "dismissed"])
    def test_dismiss_rejected(self, status):
        with pytest.raises(InvalidTransitionError):
            lifecycle.dismiss(_alert(status), "user-1")
