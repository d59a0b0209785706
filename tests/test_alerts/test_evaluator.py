"""Tests for stateless threshold evaluation."""

from src.alerts.evaluator import (
    build_alert,
    evaluate_threshold,
    evaluate_thresholds,
    get_triggered_thresholds,
)
from src.alerts.schemas import AlertThreshold
from src.metrics.schemas import CfpMetrics, EditionMetrics, MetricSource


def _threshold(name, source, operator, value, **kwargs) -> AlertThreshold:
    return AlertThreshold(
        edition_id="ed-1",
        name=name,
        metric_source=source,
        operator=operator,
        threshold_value=value,
        severity=kwargs.pop("severity", "warning"),
        **kwargs,
    )


def _cfp(submissions: int) -> EditionMetrics:
    return EditionMetrics(cfp=CfpMetrics(total_submissions=submissions))


class TestEvaluateThreshold:
    def test_lt_triggers_below(self):
        result = evaluate_threshold(_threshold("Few talks", "cfp_submissions", "lt", 100), _cfp(50))
        assert result.triggered is True
        assert result.current_value == 50
        assert result.unit is None

    def test_lt_does_not_trigger_above(self):
        result = evaluate_threshold(_threshold("Few talks", "cfp_submissions", "lt", 100), _cfp(150))
        assert result.triggered is False

    def test_attaches_unit_from_metric(self, sample_metrics):
        result = evaluate_threshold(
            _threshold("Over budget", "budget_variance", "gt", 10), sample_metrics,
        )
        assert result.triggered is True
        assert result.current_value == 15
        assert result.unit == "%"

    def test_disabled_threshold_still_evaluates_individually(self):
        threshold = _threshold("Few talks", "cfp_submissions", "lt", 100, enabled=False)
        assert evaluate_threshold(threshold, _cfp(10)).triggered is True


class TestBatchEvaluation:
    def test_skips_disabled_and_preserves_order(self, sample_metrics):
        thresholds = [
            _threshold("A", "cfp_submissions", "gt", 0),
            _threshold("B", "cfp_reviews", "gt", 0, enabled=False),
            _threshold("C", "billing_sales", "lt", 0),
            _threshold("D", "crm_contacts", "gte", 2_000),
        ]
        results = evaluate_thresholds(thresholds, sample_metrics)
        assert [r.threshold.name for r in results] == ["A", "C", "D"]

    def test_triggered_only(self, sample_metrics):
        thresholds = [
            _threshold("A", "cfp_submissions", "gt", 0),
            _threshold("C", "billing_sales", "lt", 0),
            _threshold("D", "crm_contacts", "gte", 2_000),
        ]
        triggered = get_triggered_thresholds(thresholds, sample_metrics)
        assert [r.threshold.name for r in triggered] == ["A", "D"]

    def test_empty_list(self, sample_metrics):
        assert evaluate_thresholds([], sample_metrics) == []


class TestBuildAlert:
    def test_alert_fields_copied_from_threshold(self, sample_metrics, budget_threshold):
        evaluation = evaluate_threshold(budget_threshold, sample_metrics)
        alert = build_alert(evaluation, "ed-1")

        assert alert.status == "active"
        assert alert.edition_id == "ed-1"
        assert alert.threshold_id == "thr-budget"
        assert alert.title == "Budget overrun"
        assert alert.severity == "critical"
        assert alert.metric_source is MetricSource.BUDGET_VARIANCE
        assert alert.current_value == 15
        assert alert.threshold_value == 10
        assert alert.message == "Current value (15%) is > threshold (10%)"

    def test_currency_unit_in_message(self, sample_metrics):
        threshold = _threshold("Revenue target", "billing_revenue", "lt", 2_000_000)
        alert = build_alert(evaluate_threshold(threshold, sample_metrics), "ed-1")
        assert alert.message == "Current value (1250000EUR) is < threshold (2000000EUR)"
