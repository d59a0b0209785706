"""Per-edition metric snapshots, scalar access and the shared TTL cache.

Components:
- EditionMetrics: Immutable snapshot produced by the metrics provider
- MetricSource: Closed enum of watchable scalars
- get_metric_value: Snapshot + source -> (value, unit)
- MetricsCache / CacheEntry: TTL keyed cache with get-or-fetch
- MetricsCacheConfig: Pydantic settings for TTL and single-flight
- MetricsProvider: Protocol for the snapshot source
"""

from src.metrics.accessor import get_metric_value
from src.metrics.cache import CacheEntry, MetricsCache
from src.metrics.config import MetricsCacheConfig
from src.metrics.schemas import (
    METRIC_SOURCE_LABELS,
    VALID_METRIC_SOURCES,
    BillingMetrics,
    BudgetMetrics,
    CfpMetrics,
    CrmMetrics,
    EditionMetrics,
    MetricSource,
    MetricsProvider,
    MetricValue,
    PlanningMetrics,
    SponsoringMetrics,
    get_metric_source_label,
)

__all__ = [
    "BillingMetrics",
    "BudgetMetrics",
    "CacheEntry",
    "CfpMetrics",
    "CrmMetrics",
    "EditionMetrics",
    "METRIC_SOURCE_LABELS",
    "MetricSource",
    "MetricValue",
    "MetricsCache",
    "MetricsCacheConfig",
    "MetricsProvider",
    "PlanningMetrics",
    "SponsoringMetrics",
    "VALID_METRIC_SOURCES",
    "get_metric_source_label",
    "get_metric_value",
]
