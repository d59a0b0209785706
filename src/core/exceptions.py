"""Exception taxonomy shared by alerts, metrics and reports.

``ValidationError`` subclasses ``ValueError`` so schema ``__post_init__``
checks keep the usual dataclass contract, and ``NotFoundError`` subclasses
``LookupError`` for the same reason.
"""


class MonitoringError(Exception):
    """Base exception for the monitoring and reporting engine."""


class ValidationError(MonitoringError, ValueError):
    """Raised when input is malformed and must be rejected before persistence."""


class SchedulingError(ValidationError):
    """Raised when a recurrence spec cannot produce a schedule.

    Examples: weekly without a day of week, monthly without a day of month,
    or a day of month outside 1-31.
    """


class NotFoundError(MonitoringError, LookupError):
    """Raised when a threshold, report config or alert does not exist.

    Attributes:
        resource: Kind of record that was looked up (e.g. "alert").
        resource_id: Identifier that was not found.
    """

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"{resource.capitalize()} not found: {resource_id}")
        self.resource = resource
        self.resource_id = resource_id


class InvalidTransitionError(MonitoringError):
    """Raised when an alert lifecycle action is not legal from its status.

    Attributes:
        alert_id: Alert the action targeted.
        current_status: Status the alert was in.
        action: Attempted action (acknowledge, resolve, dismiss).
    """

    def __init__(self, alert_id: str, current_status: str, action: str):
        super().__init__(
            f"Cannot {action} alert {alert_id} in status {current_status!r}"
        )
        self.alert_id = alert_id
        self.current_status = current_status
        self.action = action


class ChannelError(MonitoringError):
    """Base exception for notification channel failures.

    Advisory metadata only: callers record the failure, nothing here
    retries automatically.

    Attributes:
        status_code: HTTP status returned by the channel, if any.
        response_body: Raw response body, if any.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class RetryableChannelError(ChannelError):
    """Transient channel failure (429, 5xx, timeouts, connection errors)."""

    retryable = True


class PermanentChannelError(ChannelError):
    """Channel rejected the message (4xx other than 429)."""
