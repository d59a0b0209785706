"""Alert service orchestrating threshold evaluation, dedup, persistence and notification.

The only alerting component with side effects: the metrics cache and
provider for snapshots, the repositories for persistence and the
dispatcher for notifications. Comparison logic is delegated to the
stateless functions in ``evaluator.py`` and transitions to ``lifecycle.py``.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from src.alerts import lifecycle
from src.alerts.config import AlertConfig
from src.alerts.dispatcher import NotificationDispatcher
from src.alerts.evaluator import build_alert, evaluate_threshold
from src.alerts.formatters import AlertEmailData
from src.alerts.repository import AlertRepository, ThresholdRepository
from src.alerts.schemas import Alert, AlertThreshold
from src.core.exceptions import NotFoundError
from src.metrics.cache import MetricsCache
from src.metrics.schemas import EditionMetrics, MetricsProvider

logger = logging.getLogger(__name__)


@dataclass
class EvaluationSummary:
    """Outcome of one ``evaluate_and_alert`` pass over an edition.

    Attributes:
        evaluated: Enabled thresholds that were evaluated.
        triggered: Thresholds currently firing (new or deduplicated).
        created: Alerts opened during this pass.
        deduplicated: Triggered thresholds skipped because an active
            alert already exists for them.
        errors: One message per threshold that failed to evaluate or persist.
    """

    evaluated: int = 0
    triggered: int = 0
    created: list[Alert] = field(default_factory=list)
    deduplicated: int = 0
    errors: list[str] = field(default_factory=list)


class AlertService:
    """Orchestrator for threshold alerting on an edition.

    Args:
        config: Alert settings (dashboard links, snapshot TTL).
        threshold_repo: Threshold storage.
        alert_repo: Alert storage.
        metrics_cache: Shared snapshot cache, keyed by edition id.
        metrics_provider: Source of fresh snapshots on cache misses.
        dispatcher: Notification fan-out; None disables notifications.
    """

    def __init__(
        self,
        config: AlertConfig,
        threshold_repo: ThresholdRepository,
        alert_repo: AlertRepository,
        metrics_cache: MetricsCache[EditionMetrics],
        metrics_provider: MetricsProvider,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        self._config = config
        self._threshold_repo = threshold_repo
        self._alert_repo = alert_repo
        self._cache = metrics_cache
        self._provider = metrics_provider
        self._dispatcher = dispatcher

    async def get_metrics(self, edition_id: str) -> EditionMetrics:
        """Cached-or-fresh snapshot for an edition.

        Provider failures propagate and are not cached.
        """
        return await self._cache.get_or_fetch(
            edition_id,
            lambda: self._provider.fetch_metrics(edition_id),
            ttl_seconds=self._config.metrics_ttl_seconds,
        )

    async def evaluate_and_alert(
        self,
        edition_id: str,
        edition_name: str | None = None,
        in_app_user_ids: Iterable[str] | None = None,
    ) -> EvaluationSummary:
        """Evaluate every enabled threshold and open alerts for new triggers.

        Each threshold is processed in isolation: a failure is recorded in
        ``errors`` and the remaining thresholds are still evaluated.

        Args:
            edition_id: Edition to evaluate.
            edition_name: Display name used in notification mails.
            in_app_user_ids: Users whose in-app feed receives new alerts.

        Returns:
            EvaluationSummary with counts and the alerts created.
        """
        thresholds = await self._threshold_repo.list_by_edition(
            edition_id, enabled_only=True,
        )
        summary = EvaluationSummary()
        if not thresholds:
            return summary

        metrics = await self.get_metrics(edition_id)
        user_ids = list(in_app_user_ids or ())

        for threshold in thresholds:
            if not threshold.enabled:
                continue
            summary.evaluated += 1
            try:
                alert = await self._evaluate_one(threshold, metrics, edition_id, summary)
            except Exception as e:
                logger.error(
                    "Threshold %s evaluation failed: %s", threshold.threshold_id, e,
                )
                summary.errors.append(f"{threshold.name}: {e}")
                continue
            if alert is None:
                continue
            summary.created.append(alert)
            await self._notify(threshold, alert, edition_name or edition_id, user_ids)

        logger.info(
            "Edition %s evaluated: %d thresholds, %d triggered, %d created, "
            "%d deduplicated, %d errors",
            edition_id,
            summary.evaluated,
            summary.triggered,
            len(summary.created),
            summary.deduplicated,
            len(summary.errors),
        )
        return summary

    async def _evaluate_one(
        self,
        threshold: AlertThreshold,
        metrics: EditionMetrics,
        edition_id: str,
        summary: EvaluationSummary,
    ) -> Alert | None:
        """Evaluate, dedup and persist a single threshold."""
        evaluation = evaluate_threshold(threshold, metrics)
        if not evaluation.triggered:
            return None
        summary.triggered += 1

        existing = await self._alert_repo.find_active_by_threshold(threshold.threshold_id)
        if existing is not None:
            summary.deduplicated += 1
            logger.debug(
                "Alert deduplicated: threshold %s already has active alert %s",
                threshold.threshold_id,
                existing.alert_id,
            )
            return None

        alert = await self._alert_repo.create(build_alert(evaluation, edition_id))
        logger.info(
            "Alert created: %s (%s) for threshold %s",
            alert.alert_id,
            alert.severity,
            threshold.threshold_id,
        )
        return alert

    async def _notify(
        self,
        threshold: AlertThreshold,
        alert: Alert,
        edition_name: str,
        user_ids: list[str],
    ) -> None:
        """Send notifications for a new alert (never raises)."""
        if self._dispatcher is None:
            return

        if threshold.notify_by_email and threshold.email_recipients:
            data = AlertEmailData(
                alert=alert,
                edition_name=edition_name,
                dashboard_url=self._config.dashboard_url(alert.edition_id),
            )
            try:
                result = await self._dispatcher.send_email_notification(
                    threshold.email_recipients, data,
                )
                if not result.success:
                    logger.warning(
                        "Alert %s email failed for: %s",
                        alert.alert_id,
                        ", ".join(result.failed_recipients),
                    )
            except Exception as e:
                logger.error("Alert %s email dispatch failed: %s", alert.alert_id, e)

        if threshold.notify_in_app:
            for user_id in user_ids:
                try:
                    self._dispatcher.create_in_app(user_id, alert)
                except Exception as e:
                    logger.error(
                        "In-app notification for alert %s to %s failed: %s",
                        alert.alert_id, user_id, e,
                    )

    # ── Lifecycle ──────────────────────────────────────

    async def _load(self, alert_id: str) -> Alert:
        alert = await self._alert_repo.get_by_id(alert_id)
        if alert is None:
            raise NotFoundError("alert", alert_id)
        return alert

    async def acknowledge(self, alert_id: str, user_id: str) -> Alert:
        """Acknowledge an active alert.

        Raises:
            NotFoundError: No alert with this id.
            InvalidTransitionError: The alert is not active.
        """
        alert = lifecycle.acknowledge(await self._load(alert_id), user_id)
        logger.info("Alert %s acknowledged by %s", alert_id, user_id)
        return await self._alert_repo.update_status(alert, "acknowledge")

    async def resolve(self, alert_id: str) -> Alert:
        """Resolve an active or acknowledged alert."""
        alert = lifecycle.resolve(await self._load(alert_id))
        logger.info("Alert %s resolved", alert_id)
        return await self._alert_repo.update_status(alert, "resolve")

    async def dismiss(self, alert_id: str, user_id: str) -> Alert:
        """Dismiss an active or acknowledged alert."""
        alert = lifecycle.dismiss(await self._load(alert_id), user_id)
        logger.info("Alert %s dismissed by %s", alert_id, user_id)
        return await self._alert_repo.update_status(alert, "dismiss")

    async def auto_resolve(self, edition_id: str) -> list[Alert]:
        """Resolve open alerts whose threshold no longer fires.

        Alerts whose threshold was deleted or disabled are left untouched.

        Returns:
            The alerts moved to ``resolved``.
        """
        open_alerts = await self._alert_repo.find_active_by_edition(edition_id)
        if not open_alerts:
            return []

        thresholds = {
            t.threshold_id: t
            for t in await self._threshold_repo.list_by_edition(
                edition_id, enabled_only=True,
            )
        }
        metrics = await self.get_metrics(edition_id)

        resolved: list[Alert] = []
        for alert in open_alerts:
            threshold = thresholds.get(alert.threshold_id)
            if threshold is None:
                continue
            try:
                if evaluate_threshold(threshold, metrics).triggered:
                    continue
                updated = await self._alert_repo.update_status(
                    lifecycle.resolve(alert), "resolve",
                )
            except Exception as e:
                logger.error("Auto-resolve of alert %s failed: %s", alert.alert_id, e)
                continue
            resolved.append(updated)

        if resolved:
            logger.info(
                "Edition %s: auto-resolved %d alerts", edition_id, len(resolved),
            )
        return resolved
