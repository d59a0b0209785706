"""Stateless threshold evaluation.

Each function reads metric values through ``get_metric_value`` and applies
the threshold's comparison operator. No I/O, no state; dedup, persistence
and notification live in ``AlertService``.
"""

from dataclasses import dataclass

from src.alerts.schemas import (
    Alert,
    AlertThreshold,
    compare,
    format_condition,
    get_operator_symbol,
)
from src.metrics.accessor import get_metric_value
from src.metrics.schemas import EditionMetrics


@dataclass(frozen=True)
class ThresholdEvaluation:
    """Outcome of comparing one threshold against one snapshot."""

    threshold: AlertThreshold
    triggered: bool
    current_value: float
    unit: str | None = None


def evaluate_threshold(
    threshold: AlertThreshold,
    metrics: EditionMetrics,
) -> ThresholdEvaluation:
    """Evaluate a single threshold, regardless of its ``enabled`` flag.

    Args:
        threshold: Rule to evaluate.
        metrics: Current edition snapshot.

    Returns:
        ThresholdEvaluation with the value read and the unit attached to it.
    """
    metric = get_metric_value(metrics, threshold.metric_source)
    triggered = compare(metric.value, threshold.operator, threshold.threshold_value)
    return ThresholdEvaluation(
        threshold=threshold,
        triggered=triggered,
        current_value=metric.value,
        unit=metric.unit,
    )


def evaluate_thresholds(
    thresholds: list[AlertThreshold],
    metrics: EditionMetrics,
) -> list[ThresholdEvaluation]:
    """Evaluate every enabled threshold, preserving input order."""
    return [evaluate_threshold(t, metrics) for t in thresholds if t.enabled]


def get_triggered_thresholds(
    thresholds: list[AlertThreshold],
    metrics: EditionMetrics,
) -> list[ThresholdEvaluation]:
    """Enabled thresholds that currently fire."""
    return [e for e in evaluate_thresholds(thresholds, metrics) if e.triggered]


def build_alert(evaluation: ThresholdEvaluation, edition_id: str) -> Alert:
    """Create an ``active`` Alert from a triggered evaluation.

    The message interpolates current value, operator symbol and threshold
    value, each suffixed with the evaluation's unit when there is one.
    """
    threshold = evaluation.threshold
    return Alert(
        edition_id=edition_id,
        threshold_id=threshold.threshold_id,
        title=threshold.name,
        message=format_condition(
            evaluation.current_value,
            get_operator_symbol(threshold.operator),
            threshold.threshold_value,
            evaluation.unit,
        ),
        severity=threshold.severity,
        metric_source=threshold.metric_source,
        current_value=evaluation.current_value,
        threshold_value=threshold.threshold_value,
    )
