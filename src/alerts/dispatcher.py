"""Notification dispatcher for alert emails and the in-app feed.

Email fan-out is sequential and isolates per-recipient failures: one
recipient's failure never stops delivery to the others. The overall
result succeeds only when every recipient succeeded.

The in-app feed is process-local bookkeeping, one newest-first list per
user id, kept behind ``InAppNotificationStore`` so it can be swapped for
a persistent store.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.alerts.channels import EmailMessage, HttpEmailChannel, NotificationChannel
from src.alerts.formatters import (
    AlertEmailData,
    alert_email_subject,
    render_alert_email_html,
    render_alert_email_text,
)
from src.alerts.schemas import Alert

logger = logging.getLogger(__name__)


class NotificationConfig(BaseSettings):
    """Configuration for notification delivery."""

    model_config = SettingsConfigDict(
        env_prefix="NOTIFICATIONS_",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(
        default="Edition Monitor",
        description="Product name shown in mail footers",
    )
    feed_max_per_user: int = Field(
        default=0,
        ge=0,
        description="Max in-app notifications kept per user (0 = unlimited)",
    )
    email_api_url: str = Field(
        default="https://api.resend.com/emails",
        description="Endpoint of the JSON mail API",
    )
    email_api_key: str | None = Field(
        default=None,
        description="Bearer token for the mail API",
    )
    email_from: str = Field(
        default="alerts@localhost",
        description="Sender address",
    )
    email_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout for the mail API",
    )

    def build_email_channel(self) -> HttpEmailChannel:
        return HttpEmailChannel(
            api_url=self.email_api_url,
            from_address=self.email_from,
            api_key=self.email_api_key,
            timeout=self.email_timeout_seconds,
        )


@dataclass
class InAppNotification:
    """One entry in a user's in-app feed."""

    alert_id: str
    title: str
    message: str
    severity: str
    notification_id: str = field(default_factory=lambda: f"notif-{uuid.uuid4().hex[:12]}")
    read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class EmailDispatchResult:
    """Aggregate of an all-or-nothing email fan-out."""

    success: bool
    failed_recipients: list[str] = field(default_factory=list)


class InAppNotificationStore:
    """Thread-safe per-user feed, newest first.

    Args:
        max_per_user: Cap on stored entries per user; the oldest are
            dropped past it. 0 keeps everything.
    """

    def __init__(self, max_per_user: int = 0) -> None:
        self._max_per_user = max_per_user
        self._feeds: dict[str, list[InAppNotification]] = {}
        self._lock = threading.Lock()

    def prepend(self, user_id: str, notification: InAppNotification) -> None:
        with self._lock:
            feed = self._feeds.setdefault(user_id, [])
            feed.insert(0, notification)
            if self._max_per_user and len(feed) > self._max_per_user:
                del feed[self._max_per_user:]

    def list(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int | None = None,
    ) -> list[InAppNotification]:
        with self._lock:
            items = list(self._feeds.get(user_id, []))
        if unread_only:
            items = [n for n in items if not n.read]
        if limit:
            items = items[:limit]
        return items

    def mark_read(self, user_id: str, notification_id: str) -> bool:
        with self._lock:
            for notification in self._feeds.get(user_id, []):
                if notification.notification_id == notification_id:
                    notification.read = True
                    return True
        return False

    def mark_all_read(self, user_id: str) -> int:
        count = 0
        with self._lock:
            for notification in self._feeds.get(user_id, []):
                if not notification.read:
                    notification.read = True
                    count += 1
        return count

    def unread_count(self, user_id: str) -> int:
        with self._lock:
            return sum(1 for n in self._feeds.get(user_id, []) if not n.read)

    def clear(self, user_id: str) -> None:
        with self._lock:
            self._feeds.pop(user_id, None)


class NotificationDispatcher:
    """Fans alerts out to email recipients and in-app feeds.

    An explicit instance is passed to the services that publish through
    it; there is no module-level dispatcher.
    """

    def __init__(
        self,
        channel: NotificationChannel,
        config: NotificationConfig | None = None,
        store: InAppNotificationStore | None = None,
    ) -> None:
        self._config = config or NotificationConfig()
        self._channel = channel
        self._store = store or InAppNotificationStore(self._config.feed_max_per_user)

    @property
    def channel(self) -> NotificationChannel:
        return self._channel

    async def send_email_notification(
        self,
        recipients: list[str],
        data: AlertEmailData,
    ) -> EmailDispatchResult:
        """Mail an alert to each recipient in turn.

        Args:
            recipients: Email addresses.
            data: Alert plus edition context for rendering.

        Returns:
            EmailDispatchResult; ``success`` only if every recipient succeeded.
        """
        subject = alert_email_subject(data)
        html = render_alert_email_html(data, self._config.app_name)
        text = render_alert_email_text(data, self._config.app_name)

        failed: list[str] = []
        for recipient in recipients:
            message = EmailMessage(to=recipient, subject=subject, html=html, text=text)
            try:
                result = await self._channel.send(message)
                ok = result.success
            except Exception as e:
                logger.warning(
                    "Channel %s raised for alert %s to %s: %s",
                    self._channel.name, data.alert.alert_id, recipient, e,
                )
                ok = False
            if not ok:
                failed.append(recipient)

        if failed:
            logger.warning(
                "Alert %s email partially failed: %d/%d recipients failed",
                data.alert.alert_id, len(failed), len(recipients),
            )
        else:
            logger.debug(
                "Alert %s emailed to %d recipients",
                data.alert.alert_id, len(recipients),
            )
        return EmailDispatchResult(success=not failed, failed_recipients=failed)

    # ── In-app feed ──────────────────────────────────────

    def create_in_app(self, user_id: str, alert: Alert) -> InAppNotification:
        """Prepend a notification for ``alert`` to ``user_id``'s feed."""
        notification = InAppNotification(
            alert_id=alert.alert_id,
            title=alert.title,
            message=alert.message,
            severity=alert.severity,
        )
        self._store.prepend(user_id, notification)
        return notification

    def list_in_app(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int | None = None,
    ) -> list[InAppNotification]:
        return self._store.list(user_id, unread_only=unread_only, limit=limit)

    def mark_read(self, user_id: str, notification_id: str) -> bool:
        """Mark one notification read. False if the user has no such entry."""
        return self._store.mark_read(user_id, notification_id)

    def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification read; returns how many changed."""
        return self._store.mark_all_read(user_id)

    def unread_count(self, user_id: str) -> int:
        return self._store.unread_count(user_id)

    def clear(self, user_id: str) -> None:
        self._store.clear(user_id)
