"""Tests for alert schema validation, comparison and serialization."""

import pytest
from datetime import datetime, timezone

from src.alerts.schemas import (
    VALID_OPERATORS,
    VALID_SEVERITIES,
    Alert,
    AlertThreshold,
    compare,
    format_condition,
    get_operator_label,
    get_operator_symbol,
    get_severity_color,
    get_severity_label,
    get_status_label,
)
from src.core.exceptions import ValidationError
from src.metrics.schemas import MetricSource


def _threshold(**overrides) -> AlertThreshold:
    fields = {
        "edition_id": "ed-1",
        "name": "Low acceptance",
        "metric_source": "cfp_acceptance_rate",
        "operator": "lt",
        "threshold_value": 100,
        "severity": "warning",
    }
    fields.update(overrides)
    return AlertThreshold(**fields)


class TestCompare:
    """Operator semantics match direct comparison."""

    @pytest.mark.parametrize(
        "operator,value,threshold,expected",
        [
            ("lt", 50, 100, True),
            ("lt", 150, 100, False),
            ("lt", 100, 100, False),
            ("lte", 100, 100, True),
            ("gt", 150, 100, True),
            ("gt", 100, 100, False),
            ("gte", 100, 100, True),
            ("eq", 100, 100, True),
            ("eq", 99, 100, False),
            ("neq", 99, 100, True),
            ("neq", 100, 100, False),
        ],
    )
    def test_operator(self, operator, value, threshold, expected):
        assert compare(value, operator, threshold) is expected

    def test_unknown_operator_raises(self):
        with pytest.raises(ValidationError):
            compare(1, "between", 2)


class TestLabels:
    def test_operator_symbols_and_labels(self):
        assert get_operator_symbol("gte") == ">="
        assert get_operator_symbol("neq") == "!="
        assert get_operator_label("lte") == "Less than or equal"
        assert get_operator_label("eq") == "Equal to"
        for op in VALID_OPERATORS:
            assert get_operator_symbol(op) != op

    def test_severity_labels_and_colors(self):
        assert get_severity_label("info") == "Information"
        assert get_severity_label("critical") == "Critical"
        assert get_severity_color("warning") == "#f59e0b"
        assert get_severity_color("unknown") == "#6b7280"

    def test_status_labels(self):
        assert get_status_label("acknowledged") == "Acknowledged"


class TestMessageFormatting:
    def test_condition_with_unit(self):
        assert (
            format_condition(15, ">", 10, "%")
            == "Current value (15%) is > threshold (10%)"
        )

    def test_condition_without_unit(self):
        assert format_condition(3.0, "<", 5.0) == "Current value (3) is < threshold (5)"


class TestAlertThresholdValidation:
    def test_valid_threshold(self):
        threshold = _threshold()
        assert threshold.metric_source is MetricSource.CFP_ACCEPTANCE_RATE
        assert threshold.enabled is True
        assert threshold.notify_in_app is True
        assert threshold.notify_by_email is False
        assert threshold.threshold_id

    def test_empty_name_raises(self):
        with pytest.raises(ValidationError, match="name"):
            _threshold(name="  ")

    def test_unknown_metric_source_raises(self):
        with pytest.raises(ValidationError, match="metric_source"):
            _threshold(metric_source="weather")

    def test_invalid_operator_raises(self):
        with pytest.raises(ValueError, match="Invalid operator"):
            _threshold(operator=">>")

    def test_invalid_severity_raises(self):
        with pytest.raises(ValueError, match="Invalid severity"):
            _threshold(severity="urgent")

    def test_invalid_recipient_raises(self):
        with pytest.raises(ValidationError, match="email"):
            _threshold(email_recipients=["ok@example.com", "not-an-email"])

    def test_all_severities_valid(self):
        for severity in VALID_SEVERITIES:
            assert _threshold(severity=severity).severity == severity


class TestThresholdSerialization:
    def test_round_trip(self):
        original = _threshold(email_recipients=["a@example.com"], description="CFP health")
        restored = AlertThreshold.from_dict(original.to_dict())
        assert restored == original

    def test_from_dict_parses_json_recipients(self):
        data = _threshold().to_dict()
        data["email_recipients"] = '["a@example.com", "b@example.com"]'
        restored = AlertThreshold.from_dict(data)
        assert restored.email_recipients == ["a@example.com", "b@example.com"]

    def test_from_dict_malformed_recipients_default_empty(self):
        data = _threshold().to_dict()
        data["email_recipients"] = "[not json"
        assert AlertThreshold.from_dict(data).email_recipients == []


class TestAlert:
    def _alert(self, **overrides) -> Alert:
        fields = {
            "edition_id": "ed-1",
            "threshold_id": "thr-1",
            "title": "Budget overrun",
            "message": "Current value (15%) is > threshold (10%)",
            "severity": "critical",
            "metric_source": "budget_variance",
            "current_value": 15,
            "threshold_value": 10,
        }
        fields.update(overrides)
        return Alert(**fields)

    def test_defaults(self):
        alert = self._alert()
        assert alert.status == "active"
        assert alert.acknowledged_by is None
        assert alert.alert_id

    def test_invalid_status_raises(self):
        with pytest.raises(ValueError, match="Invalid status"):
            self._alert(status="snoozed")

    def test_to_dict_serializes_timestamps(self):
        at = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)
        alert = self._alert(
            status="acknowledged", acknowledged_by="u-1", acknowledged_at=at,
        )
        data = alert.to_dict()
        assert data["acknowledged_at"] == "2024-01-15T09:00:00+00:00"
        assert data["resolved_at"] is None
        assert data["metric_source"] == "budget_variance"

    def test_from_dict_round_trip(self):
        alert = self._alert(status="dismissed", dismissed_by="u-2",
                            dismissed_at=datetime(2024, 1, 16, tzinfo=timezone.utc))
        assert Alert.from_dict(alert.to_dict()) == alert
