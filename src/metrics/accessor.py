"""Read a single scalar out of an edition snapshot.

Pure and total over ``MetricSource``: every source maps to a value, and
percentage sources guard zero denominators by reporting 0 rather than
NaN or infinity. Adding a source to the enum without a case here makes
``get_metric_value`` raise for it, which the accessor tests catch.
"""

import math

from src.core.exceptions import ValidationError
from src.metrics.schemas import EditionMetrics, MetricSource, MetricValue

PERCENT = "%"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _percent(numerator: float, denominator: float) -> MetricValue:
    if denominator == 0:
        return MetricValue(0, PERCENT)
    return MetricValue(_round_half_up(numerator / denominator * 100), PERCENT)


def get_metric_value(
    metrics: EditionMetrics, source: MetricSource | str
) -> MetricValue:
    """Extract the current value for ``source`` from ``metrics``.

    Args:
        metrics: Snapshot to read from.
        source: Metric source, as enum member or raw identifier.

    Returns:
        MetricValue with "%" for percentages, the currency code for
        monetary sources, and no unit for counts.

    Raises:
        ValidationError: If ``source`` is not a known metric source.
    """
    try:
        source = MetricSource(source)
    except ValueError:
        raise ValidationError(f"Unknown metric source {source!r}") from None

    cfp, billing, crm = metrics.cfp, metrics.billing, metrics.crm
    budget, planning, sponsoring = metrics.budget, metrics.planning, metrics.sponsoring

    match source:
        case MetricSource.CFP_SUBMISSIONS:
            return MetricValue(cfp.total_submissions)
        case MetricSource.CFP_REVIEWS:
            return MetricValue(cfp.pending_reviews)
        case MetricSource.CFP_ACCEPTANCE_RATE:
            return _percent(cfp.accepted_talks, cfp.total_submissions)

        case MetricSource.BILLING_SALES:
            return MetricValue(billing.tickets_sold)
        case MetricSource.BILLING_REVENUE:
            return MetricValue(billing.total_revenue, billing.currency)
        case MetricSource.BILLING_STOCK:
            return MetricValue(billing.tickets_available)
        case MetricSource.BILLING_CAPACITY:
            return _percent(
                billing.tickets_sold,
                billing.tickets_sold + billing.tickets_available,
            )

        case MetricSource.CRM_CONTACTS:
            return MetricValue(crm.total_contacts)
        case MetricSource.CRM_ENGAGEMENT:
            return MetricValue(_round_half_up(crm.open_rate * 100), PERCENT)
        case MetricSource.CRM_CAMPAIGNS:
            return MetricValue(crm.emails_sent)

        case MetricSource.BUDGET_VARIANCE:
            return _percent(budget.spent - budget.total_budget, budget.total_budget)
        case MetricSource.BUDGET_UTILIZATION:
            return _percent(budget.spent, budget.total_budget)
        case MetricSource.BUDGET_CASHFLOW:
            return MetricValue(budget.remaining, budget.currency)

        case MetricSource.PLANNING_SESSIONS:
            return MetricValue(planning.scheduled_sessions)
        case MetricSource.PLANNING_CONFLICTS:
            # No conflict counter in the snapshot; unscheduled sessions stand in
            return MetricValue(planning.unscheduled_sessions)
        case MetricSource.PLANNING_OCCUPANCY:
            return _percent(planning.slots_used, planning.slots_available)

        case MetricSource.SPONSORING_REVENUE:
            return MetricValue(sponsoring.total_sponsorship_value, sponsoring.currency)
        case MetricSource.SPONSORING_PIPELINE:
            return MetricValue(sponsoring.pending_sponsors)

    raise ValidationError(f"No accessor for metric source {source.value!r}")
