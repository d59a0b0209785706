"""Shared exception hierarchy for the monitoring and reporting engine."""

from src.core.exceptions import (
    ChannelError,
    InvalidTransitionError,
    MonitoringError,
    NotFoundError,
    PermanentChannelError,
    RetryableChannelError,
    SchedulingError,
    ValidationError,
)

__all__ = [
    "ChannelError",
    "InvalidTransitionError",
    "MonitoringError",
    "NotFoundError",
    "PermanentChannelError",
    "RetryableChannelError",
    "SchedulingError",
    "ValidationError",
]
