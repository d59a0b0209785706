"""Report scheduler: finds due report configs and delivers them.

There is no timer here. An external driver calls ``process_due`` on an
interval; each call sends every due config once, sequentially.

Delivery to a config's recipients succeeds if at least one recipient
succeeds. Only then is the schedule advanced; a config that reached
nobody stays due and is retried on the next pass.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from src.alerts.channels import EmailMessage, NotificationChannel
from src.core.exceptions import NotFoundError
from src.core.validation import is_valid_email
from src.reports.config import ReportConfigSettings
from src.reports.generator import ReportGenerator
from src.reports.repository import ReportConfigRepository
from src.reports.schemas import ReportConfig, ReportRecipient, recurrence_error

logger = logging.getLogger(__name__)

RecipientResolver = Callable[[ReportConfig], Awaitable[list[ReportRecipient]]]

ALL_RECIPIENTS_FAILED = "Failed to send to any recipients"


@dataclass
class SendReportResult:
    """Outcome of sending one report config."""

    config_id: str
    success: bool
    recipients_sent: int = 0
    recipients_failed: int = 0
    error: str | None = None
    failed_recipients: list[str] = field(default_factory=list)


@dataclass
class ProcessDueResult:
    """Aggregate of one ``process_due`` pass."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    results: list[SendReportResult] = field(default_factory=list)


class ReportScheduler:
    """Sends due reports through a notification channel.

    Args:
        repository: Report config storage; advances schedules on success.
        generator: Produces subject and bodies for a config.
        channel: Delivery channel, one message per recipient.
        settings: Report settings (test subject prefix, upcoming limit).
        recipient_resolver: Optional coroutine returning extra recipients
            for a config, e.g. the users holding its recipient roles.
        clock: Source of "now".
    """

    def __init__(
        self,
        repository: ReportConfigRepository,
        generator: ReportGenerator,
        channel: NotificationChannel,
        settings: ReportConfigSettings | None = None,
        recipient_resolver: RecipientResolver | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = repository
        self._generator = generator
        self._channel = channel
        self._settings = settings or ReportConfigSettings()
        self._resolve_extra = recipient_resolver
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def find_due(self, before: datetime | None = None) -> list[ReportConfig]:
        """Enabled configs due at or before ``before`` (default now), earliest first."""
        return await self._repo.find_due_reports(before or self._clock())

    async def _recipients(self, config: ReportConfig) -> list[ReportRecipient]:
        """Explicit recipients plus resolved ones, without case-insensitive duplicates."""
        recipients = list(config.recipients)
        if self._resolve_extra is not None:
            recipients.extend(await self._resolve_extra(config))

        seen: set[str] = set()
        unique: list[ReportRecipient] = []
        for recipient in recipients:
            key = recipient.email.lower()
            if key not in seen:
                seen.add(key)
                unique.append(recipient)
        return unique

    async def _deliver(self, message: EmailMessage) -> bool:
        try:
            result = await self._channel.send(message)
        except Exception as e:
            logger.warning("Channel %s raised for %s: %s", self._channel.name, message.to, e)
            return False
        if not result.success:
            logger.warning("Report to %s failed: %s", message.to, result.error)
        return result.success

    async def send_report(self, config: ReportConfig) -> SendReportResult:
        """Generate a report and send it to every recipient.

        Succeeds, and advances the schedule, when at least one recipient
        was reached. A generation failure or an unschedulable config fails
        without touching the schedule.

        Raises:
            NotFoundError: The config disappeared before it could be marked
                sent.
        """
        error = recurrence_error(config.frequency, config.day_of_week, config.day_of_month)
        if error is None and not config.sections:
            error = "Report has no sections"
        recipients: list[ReportRecipient] = []
        if error is None:
            recipients = await self._recipients(config)
            if not recipients:
                error = "Report has no recipients"
        if error is not None:
            logger.warning("Report %s not schedulable: %s", config.config_id, error)
            return SendReportResult(config_id=config.config_id, success=False, error=error)

        try:
            report = await self._generator.generate_report(config)
        except Exception as e:
            logger.error("Report %s generation failed: %s", config.config_id, e)
            return SendReportResult(config_id=config.config_id, success=False, error=str(e))

        sent = 0
        failed: list[str] = []
        for recipient in recipients:
            message = EmailMessage(
                to=recipient.email,
                subject=report.subject,
                html=report.html,
                text=report.text,
            )
            if await self._deliver(message):
                sent += 1
            else:
                failed.append(recipient.email)

        if sent == 0:
            logger.error(
                "Report %s reached none of its %d recipients", config.config_id, len(failed),
            )
            return SendReportResult(
                config_id=config.config_id,
                success=False,
                recipients_failed=len(failed),
                error=ALL_RECIPIENTS_FAILED,
                failed_recipients=failed,
            )

        await self._repo.mark_sent(config.config_id, self._clock())
        logger.info(
            "Report %s sent: %d delivered, %d failed", config.config_id, sent, len(failed),
        )
        return SendReportResult(
            config_id=config.config_id,
            success=True,
            recipients_sent=sent,
            recipients_failed=len(failed),
            failed_recipients=failed,
        )

    async def process_due(self, before: datetime | None = None) -> ProcessDueResult:
        """Send every due report in due-time order.

        A failure of one config, including an unexpected exception, is
        recorded against that config and the batch continues.
        """
        configs = await self.find_due(before)
        summary = ProcessDueResult()

        for config in configs:
            try:
                result = await self.send_report(config)
            except Exception as e:
                logger.exception("Report %s failed unexpectedly", config.config_id)
                result = SendReportResult(config_id=config.config_id, success=False, error=str(e))

            summary.processed += 1
            if result.success:
                summary.succeeded += 1
            else:
                summary.failed += 1
            summary.results.append(result)

        if configs:
            logger.info(
                "Processed %d due reports: %d succeeded, %d failed",
                summary.processed, summary.succeeded, summary.failed,
            )
        return summary

    async def send_test_report(self, config_id: str, address: str) -> SendReportResult:
        """Send a config's report to one ad-hoc address.

        The subject carries the test prefix and the schedule is left as is.
        """
        config = await self._repo.get_by_id(config_id)
        if config is None:
            error = NotFoundError("report config", config_id)
            return SendReportResult(config_id=config_id, success=False, error=str(error))

        if not is_valid_email(address):
            return SendReportResult(
                config_id=config_id, success=False, error=f"Invalid email: {address}",
            )

        try:
            report = await self._generator.generate_report(config)
        except Exception as e:
            logger.error("Test report %s generation failed: %s", config_id, e)
            return SendReportResult(config_id=config_id, success=False, error=str(e))

        message = EmailMessage(
            to=address,
            subject=f"{self._settings.test_subject_prefix} {report.subject}",
            html=report.html,
            text=report.text,
        )
        try:
            result = await self._channel.send(message)
        except Exception as e:
            logger.warning("Test report %s to %s raised: %s", config_id, address, e)
            return SendReportResult(
                config_id=config_id,
                success=False,
                recipients_failed=1,
                error=str(e),
                failed_recipients=[address],
            )

        if not result.success:
            return SendReportResult(
                config_id=config_id,
                success=False,
                recipients_failed=1,
                error=result.error or ALL_RECIPIENTS_FAILED,
                failed_recipients=[address],
            )
        logger.info("Test report %s sent to %s", config_id, address)
        return SendReportResult(config_id=config_id, success=True, recipients_sent=1)

    async def get_upcoming(self, edition_id: str, limit: int | None = None) -> list[ReportConfig]:
        """Enabled configs of an edition, soonest first."""
        limit = limit or self._settings.upcoming_default_limit
        configs = await self._repo.find_by_edition(edition_id, enabled_only=True)
        scheduled = [c for c in configs if c.enabled and c.next_scheduled_at is not None]
        scheduled.sort(key=lambda c: c.next_scheduled_at)
        return scheduled[:limit]
