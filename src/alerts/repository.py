"""Repositories for alert thresholds and alerts.

Follows the asyncpg repository pattern: SQL kept next to the code that
issues it, one ``_row_to_*`` helper per table, and list-valued columns
serialized only at this boundary.
"""

import json
import logging
from typing import Any

from src.alerts.schemas import Alert, AlertThreshold
from src.alerts.lifecycle import ALLOWED_TRANSITIONS
from src.core.exceptions import InvalidTransitionError, NotFoundError
from src.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS alert_thresholds (
    threshold_id      TEXT PRIMARY KEY,
    edition_id        TEXT NOT NULL,
    name              TEXT NOT NULL,
    description       TEXT,
    metric_source     TEXT NOT NULL,
    operator          TEXT NOT NULL,
    threshold_value   DOUBLE PRECISION NOT NULL,
    severity          TEXT NOT NULL,
    enabled           BOOLEAN NOT NULL DEFAULT TRUE,
    notify_by_email   BOOLEAN NOT NULL DEFAULT FALSE,
    notify_in_app     BOOLEAN NOT NULL DEFAULT TRUE,
    email_recipients  JSONB NOT NULL DEFAULT '[]',
    created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at        TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_alert_thresholds_edition
    ON alert_thresholds(edition_id);

CREATE TABLE IF NOT EXISTS alerts (
    alert_id          TEXT PRIMARY KEY,
    edition_id        TEXT NOT NULL,
    threshold_id      TEXT NOT NULL,
    title             TEXT NOT NULL,
    message           TEXT NOT NULL,
    severity          TEXT NOT NULL,
    metric_source     TEXT NOT NULL,
    current_value     DOUBLE PRECISION NOT NULL,
    threshold_value   DOUBLE PRECISION NOT NULL,
    status            TEXT NOT NULL DEFAULT 'active',
    acknowledged_by   TEXT,
    acknowledged_at   TIMESTAMPTZ,
    resolved_at       TIMESTAMPTZ,
    dismissed_by      TEXT,
    dismissed_at      TIMESTAMPTZ,
    created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at        TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_alerts_edition_created
    ON alerts(edition_id, created_at DESC);
CREATE UNIQUE INDEX IF NOT EXISTS idx_alerts_one_active_per_threshold
    ON alerts(threshold_id) WHERE status = 'active';
"""


def _decode_list(value: Any) -> list:
    """Decode a JSONB list column that may arrive as text."""
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Discarding malformed JSON list column: %r", value)
            return []
    return list(value) if isinstance(value, list) else []


def _row_to_threshold(row: Any) -> AlertThreshold:
    """Convert an asyncpg Record to an AlertThreshold."""
    return AlertThreshold(
        threshold_id=row["threshold_id"],
        edition_id=row["edition_id"],
        name=row["name"],
        description=row.get("description"),
        metric_source=row["metric_source"],
        operator=row["operator"],
        threshold_value=row["threshold_value"],
        severity=row["severity"],
        enabled=row.get("enabled", True),
        notify_by_email=row.get("notify_by_email", False),
        notify_in_app=row.get("notify_in_app", True),
        email_recipients=_decode_list(row.get("email_recipients")),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_alert(row: Any) -> Alert:
    """Convert an asyncpg Record to an Alert."""
    return Alert(
        alert_id=row["alert_id"],
        edition_id=row["edition_id"],
        threshold_id=row["threshold_id"],
        title=row["title"],
        message=row["message"],
        severity=row["severity"],
        metric_source=row["metric_source"],
        current_value=row["current_value"],
        threshold_value=row["threshold_value"],
        status=row.get("status") or "active",
        acknowledged_by=row.get("acknowledged_by"),
        acknowledged_at=row.get("acknowledged_at"),
        resolved_at=row.get("resolved_at"),
        dismissed_by=row.get("dismissed_by"),
        dismissed_at=row.get("dismissed_at"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class ThresholdRepository:
    """CRUD for the ``alert_thresholds`` table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create alert tables and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLES_SQL)
        logger.info("Alert tables ensured")

    async def create(self, threshold: AlertThreshold) -> AlertThreshold:
        sql = """
            INSERT INTO alert_thresholds (
                threshold_id, edition_id, name, description, metric_source,
                operator, threshold_value, severity, enabled, notify_by_email,
                notify_in_app, email_recipients, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)
            RETURNING *
        """
        row = await self._db.fetchrow(
            sql,
            threshold.threshold_id,
            threshold.edition_id,
            threshold.name,
            threshold.description,
            threshold.metric_source.value,
            threshold.operator,
            threshold.threshold_value,
            threshold.severity,
            threshold.enabled,
            threshold.notify_by_email,
            threshold.notify_in_app,
            json.dumps(threshold.email_recipients),
            threshold.created_at,
            threshold.updated_at,
        )
        return _row_to_threshold(row)

    async def get_by_id(self, threshold_id: str) -> AlertThreshold | None:
        row = await self._db.fetchrow(
            "SELECT * FROM alert_thresholds WHERE threshold_id = $1", threshold_id
        )
        return _row_to_threshold(row) if row is not None else None

    async def list_by_edition(
        self, edition_id: str, *, enabled_only: bool = False
    ) -> list[AlertThreshold]:
        """Thresholds of an edition, newest first."""
        sql = "SELECT * FROM alert_thresholds WHERE edition_id = $1"
        if enabled_only:
            sql += " AND enabled = TRUE"
        sql += " ORDER BY created_at DESC"
        rows = await self._db.fetch(sql, edition_id)
        return [_row_to_threshold(r) for r in rows]

    async def update(self, threshold: AlertThreshold) -> AlertThreshold:
        """Overwrite every mutable column.

        Raises:
            NotFoundError: No threshold with this id.
        """
        sql = """
            UPDATE alert_thresholds SET
                name = $2, description = $3, metric_source = $4, operator = $5,
                threshold_value = $6, severity = $7, enabled = $8,
                notify_by_email = $9, notify_in_app = $10,
                email_recipients = $11, updated_at = NOW()
            WHERE threshold_id = $1
            RETURNING *
        """
        row = await self._db.fetchrow(
            sql,
            threshold.threshold_id,
            threshold.name,
            threshold.description,
            threshold.metric_source.value,
            threshold.operator,
            threshold.threshold_value,
            threshold.severity,
            threshold.enabled,
            threshold.notify_by_email,
            threshold.notify_in_app,
            json.dumps(threshold.email_recipients),
        )
        if row is None:
            raise NotFoundError("threshold", threshold.threshold_id)
        return _row_to_threshold(row)

    async def delete(self, threshold_id: str) -> bool:
        result = await self._db.fetchval(
            "DELETE FROM alert_thresholds WHERE threshold_id = $1 RETURNING threshold_id",
            threshold_id,
        )
        return result is not None


class AlertRepository:
    """Repository for alert persistence and querying.

    Alerts are never deleted; status changes go through ``update_status``.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create(self, alert: Alert) -> Alert:
        """Insert a new alert.

        The partial unique index on ``(threshold_id) WHERE status = 'active'``
        backs the one-active-alert-per-threshold rule at the storage level.
        """
        sql = """
            INSERT INTO alerts (
                alert_id, edition_id, threshold_id, title, message, severity,
                metric_source, current_value, threshold_value, status,
                created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
            RETURNING *
        """
        row = await self._db.fetchrow(
            sql,
            alert.alert_id,
            alert.edition_id,
            alert.threshold_id,
            alert.title,
            alert.message,
            alert.severity,
            alert.metric_source.value,
            alert.current_value,
            alert.threshold_value,
            alert.status,
            alert.created_at,
            alert.updated_at,
        )
        return _row_to_alert(row)

    async def get_by_id(self, alert_id: str) -> Alert | None:
        row = await self._db.fetchrow("SELECT * FROM alerts WHERE alert_id = $1", alert_id)
        return _row_to_alert(row) if row is not None else None

    async def find_active_by_threshold(self, threshold_id: str) -> Alert | None:
        """The open (``active``) alert for a threshold, if any."""
        row = await self._db.fetchrow(
            """
            SELECT * FROM alerts
            WHERE threshold_id = $1 AND status = 'active'
            ORDER BY created_at DESC
            LIMIT 1
            """,
            threshold_id,
        )
        return _row_to_alert(row) if row is not None else None

    async def find_active_by_edition(self, edition_id: str) -> list[Alert]:
        """Alerts still needing attention (active or acknowledged), newest first."""
        rows = await self._db.fetch(
            """
            SELECT * FROM alerts
            WHERE edition_id = $1 AND status IN ('active', 'acknowledged')
            ORDER BY created_at DESC
            """,
            edition_id,
        )
        return [_row_to_alert(r) for r in rows]

    async def list_by_edition(
        self,
        edition_id: str,
        *,
        status: str | list[str] | None = None,
        severity: str | list[str] | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Alert]:
        """Alerts of an edition with optional status/severity filters.

        Returns:
            List of alerts ordered by created_at descending.
        """
        conditions = ["edition_id = $1"]
        params: list[Any] = [edition_id]
        param_idx = 2

        if status is not None:
            statuses = [status] if isinstance(status, str) else list(status)
            conditions.append(f"status = ANY(${param_idx}::text[])")
            params.append(statuses)
            param_idx += 1

        if severity is not None:
            severities = [severity] if isinstance(severity, str) else list(severity)
            conditions.append(f"severity = ANY(${param_idx}::text[])")
            params.append(severities)
            param_idx += 1

        sql = f"""
            SELECT * FROM alerts
            WHERE {" AND ".join(conditions)}
            ORDER BY created_at DESC
            LIMIT ${param_idx} OFFSET ${param_idx + 1}
        """
        params.extend([limit, offset])

        rows = await self._db.fetch(sql, *params)
        return [_row_to_alert(r) for r in rows]

    async def update_status(self, alert: Alert, action: str) -> Alert:
        """Persist the lifecycle fields of an alert transitioned by ``action``.

        The write only applies while the stored status is one ``action``
        may start from, so concurrent actions cannot move an alert out of
        a terminal status.

        Raises:
            NotFoundError: The alert no longer exists.
            InvalidTransitionError: The stored status no longer allows ``action``.
        """
        sql = """
            UPDATE alerts SET
                status = $2,
                acknowledged_by = $3, acknowledged_at = $4,
                resolved_at = $5,
                dismissed_by = $6, dismissed_at = $7,
                updated_at = $8
            WHERE alert_id = $1 AND status = ANY($9::text[])
            RETURNING *
        """
        row = await self._db.fetchrow(
            sql,
            alert.alert_id,
            alert.status,
            alert.acknowledged_by,
            alert.acknowledged_at,
            alert.resolved_at,
            alert.dismissed_by,
            alert.dismissed_at,
            alert.updated_at,
            sorted(ALLOWED_TRANSITIONS[action]),
        )
        if row is not None:
            return _row_to_alert(row)

        current = await self._db.fetchval(
            "SELECT status FROM alerts WHERE alert_id = $1", alert.alert_id,
        )
        if current is None:
            raise NotFoundError("alert", alert.alert_id)
        raise InvalidTransitionError(alert.alert_id, current, action)

    async def count_by_edition(self, edition_id: str) -> dict[str, Any]:
        """Alert totals per status and per severity."""
        rows = await self._db.fetch(
            """
            SELECT status, severity, COUNT(*) AS n FROM alerts
            WHERE edition_id = $1
            GROUP BY status, severity
            """,
            edition_id,
        )
        by_status = {"active": 0, "acknowledged": 0, "resolved": 0, "dismissed": 0}
        by_severity = {"info": 0, "warning": 0, "critical": 0}
        total = 0
        for row in rows:
            n = row["n"]
            total += n
            by_status[row["status"]] = by_status.get(row["status"], 0) + n
            by_severity[row["severity"]] = by_severity.get(row["severity"], 0) + n
        return {"total": total, "by_status": by_status, "by_severity": by_severity}

    async def count_active_by_edition(self, edition_id: str) -> int:
        count = await self._db.fetchval(
            "SELECT COUNT(*) FROM alerts WHERE edition_id = $1 AND status = 'active'",
            edition_id,
        )
        return count or 0
