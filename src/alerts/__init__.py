"""Threshold alerting for edition metrics.

Components:
- AlertThreshold / Alert: Dataclasses mapping to the alert tables
- ComparisonOperator / AlertSeverity / AlertStatus: Literal types
- VALID_OPERATORS / VALID_SEVERITIES / VALID_STATUSES: Frozensets for runtime validation
- evaluate_threshold / evaluate_thresholds / get_triggered_thresholds: Stateless evaluation
- lifecycle: acknowledge / resolve / dismiss transitions
- AlertConfig: Pydantic settings for dashboard links and snapshot TTL
- ThresholdRepository / AlertRepository: asyncpg persistence
- AlertService: Orchestrator for evaluation, dedup, persistence and notification
- NotificationChannel / HttpEmailChannel: Delivery channels
- NotificationConfig / NotificationDispatcher: Email fan-out and in-app feed
"""

from src.alerts.channels import (
    EmailMessage,
    HttpEmailChannel,
    NotificationChannel,
    SendResult,
)
from src.alerts.config import AlertConfig
from src.alerts.dispatcher import (
    EmailDispatchResult,
    InAppNotification,
    InAppNotificationStore,
    NotificationConfig,
    NotificationDispatcher,
)
from src.alerts.evaluator import (
    ThresholdEvaluation,
    build_alert,
    evaluate_threshold,
    evaluate_thresholds,
    get_triggered_thresholds,
)
from src.alerts.formatters import AlertEmailData
from src.alerts.repository import AlertRepository, ThresholdRepository
from src.alerts.schemas import (
    VALID_OPERATORS,
    VALID_SEVERITIES,
    VALID_STATUSES,
    Alert,
    AlertSeverity,
    AlertStatus,
    AlertThreshold,
    ComparisonOperator,
)
from src.alerts.service import AlertService, EvaluationSummary

__all__ = [
    "Alert",
    "AlertConfig",
    "AlertEmailData",
    "AlertRepository",
    "AlertService",
    "AlertSeverity",
    "AlertStatus",
    "AlertThreshold",
    "ComparisonOperator",
    "EmailDispatchResult",
    "EmailMessage",
    "EvaluationSummary",
    "HttpEmailChannel",
    "InAppNotification",
    "InAppNotificationStore",
    "NotificationChannel",
    "NotificationConfig",
    "NotificationDispatcher",
    "SendResult",
    "ThresholdEvaluation",
    "ThresholdRepository",
    "VALID_OPERATORS",
    "VALID_SEVERITIES",
    "VALID_STATUSES",
    "build_alert",
    "evaluate_threshold",
    "evaluate_thresholds",
    "get_triggered_thresholds",
]
