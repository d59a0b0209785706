"""Tests for reading scalar metric values out of edition snapshots."""

import pytest

from src.core.exceptions import ValidationError
from src.metrics.accessor import get_metric_value
from src.metrics.schemas import (
    BudgetMetrics,
    CfpMetrics,
    EditionMetrics,
    MetricSource,
    PlanningMetrics,
    get_metric_source_label,
)


class TestPercentages:
    """Percentage sources carry "%" and guard zero denominators."""

    def test_budget_variance(self, sample_metrics):
        result = get_metric_value(sample_metrics, MetricSource.BUDGET_VARIANCE)
        assert result.value == 15
        assert result.unit == "%"

    def test_budget_variance_zero_budget(self):
        metrics = EditionMetrics(budget=BudgetMetrics(total_budget=0, spent=500))
        result = get_metric_value(metrics, "budget_variance")
        assert result.value == 0
        assert result.unit == "%"

    def test_budget_underspend_is_negative(self):
        metrics = EditionMetrics(budget=BudgetMetrics(total_budget=10_000, spent=8_000))
        assert get_metric_value(metrics, "budget_variance").value == -20

    def test_acceptance_rate(self, sample_metrics):
        result = get_metric_value(sample_metrics, "cfp_acceptance_rate")
        assert result.value == 25
        assert result.unit == "%"

    def test_acceptance_rate_no_submissions(self):
        metrics = EditionMetrics(cfp=CfpMetrics(total_submissions=0, accepted_talks=0))
        assert get_metric_value(metrics, "cfp_acceptance_rate").value == 0

    def test_acceptance_rate_rounds_half_up(self):
        metrics = EditionMetrics(cfp=CfpMetrics(total_submissions=8, accepted_talks=1))
        # 12.5% rounds up
        assert get_metric_value(metrics, "cfp_acceptance_rate").value == 13

    def test_occupancy(self, sample_metrics):
        assert get_metric_value(sample_metrics, "planning_occupancy").value == 68

    def test_occupancy_no_slots(self):
        metrics = EditionMetrics(planning=PlanningMetrics(slots_used=3, slots_available=0))
        assert get_metric_value(metrics, "planning_occupancy").value == 0

    def test_capacity(self, sample_metrics):
        assert get_metric_value(sample_metrics, "billing_capacity").value == 75

    def test_utilization(self, sample_metrics):
        assert get_metric_value(sample_metrics, "budget_utilization").value == 115

    def test_engagement_from_open_rate(self, sample_metrics):
        result = get_metric_value(sample_metrics, "crm_engagement")
        assert result.value == 42
        assert result.unit == "%"


class TestUnits:
    """Currency sources carry the snapshot currency; counts carry none."""

    @pytest.mark.parametrize(
        "source",
        ["billing_revenue", "budget_cashflow", "sponsoring_revenue"],
    )
    def test_currency_sources(self, sample_metrics, source):
        assert get_metric_value(sample_metrics, source).unit == "EUR"

    @pytest.mark.parametrize(
        "source,expected",
        [
            ("cfp_submissions", 80),
            ("cfp_reviews", 12),
            ("billing_sales", 300),
            ("billing_stock", 100),
            ("crm_contacts", 2_000),
            ("crm_campaigns", 3),
            ("planning_sessions", 34),
            ("planning_conflicts", 6),
            ("sponsoring_pipeline", 4),
        ],
    )
    def test_count_sources(self, sample_metrics, source, expected):
        result = get_metric_value(sample_metrics, source)
        assert result.value == expected
        assert result.unit is None


class TestCoverage:
    def test_every_source_has_a_value(self, sample_metrics):
        for source in MetricSource:
            get_metric_value(sample_metrics, source)

    def test_every_source_has_a_label(self):
        for source in MetricSource:
            assert get_metric_source_label(source) != source.value

    def test_empty_snapshot_never_divides_by_zero(self):
        metrics = EditionMetrics.empty()
        for source in MetricSource:
            assert get_metric_value(metrics, source).value == 0

    def test_unknown_source_raises(self, sample_metrics):
        with pytest.raises(ValidationError):
            get_metric_value(sample_metrics, "not_a_metric")


class TestSnapshotSerialization:
    def test_from_dict_fills_missing_sections(self):
        metrics = EditionMetrics.from_dict({"budget": {"total_budget": 100, "spent": 50}})
        assert metrics.budget.total_budget == 100
        assert metrics.cfp.total_submissions == 0

    def test_to_dict_uses_iso_timestamp(self, sample_metrics):
        data = sample_metrics.to_dict()
        assert data["last_updated"] == "2024-01-15T08:00:00+00:00"
        assert data["billing"]["currency"] == "EUR"
