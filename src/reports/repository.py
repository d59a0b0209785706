"""Repository for report configuration persistence.

``next_scheduled_at`` is owned here: it is computed on create, recomputed
whenever a recurrence field changes, and advanced by ``mark_sent``.
"""

import dataclasses
import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from src.core.exceptions import NotFoundError, ValidationError
from src.reports.schedule import RecurrenceSpec, calculate_next_scheduled_at
from src.reports.schemas import DEFAULT_RECIPIENT_ROLES, ReportConfig, ReportRecipient
from src.storage.database import Database

logger = logging.getLogger(__name__)

RECURRENCE_FIELDS: frozenset[str] = frozenset({
    "frequency",
    "day_of_week",
    "day_of_month",
    "time_of_day",
    "timezone",
})

_UPDATABLE_FIELDS: frozenset[str] = RECURRENCE_FIELDS | {
    "name",
    "enabled",
    "recipient_roles",
    "recipients",
    "sections",
}

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS report_configs (
    config_id          TEXT PRIMARY KEY,
    edition_id         TEXT NOT NULL,
    name               TEXT NOT NULL,
    enabled            BOOLEAN NOT NULL DEFAULT TRUE,
    frequency          TEXT NOT NULL,
    day_of_week        TEXT,
    day_of_month       SMALLINT,
    time_of_day        TEXT NOT NULL,
    timezone           TEXT NOT NULL DEFAULT 'UTC',
    recipient_roles    JSONB NOT NULL DEFAULT '["admin", "organizer"]',
    recipients         JSONB NOT NULL DEFAULT '[]',
    sections           JSONB NOT NULL DEFAULT '[]',
    last_sent_at       TIMESTAMPTZ,
    next_scheduled_at  TIMESTAMPTZ,
    created_at         TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at         TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_report_configs_edition
    ON report_configs(edition_id);
CREATE INDEX IF NOT EXISTS idx_report_configs_due
    ON report_configs(next_scheduled_at) WHERE enabled = TRUE;
"""


def _decode_json_list(value: Any, default: list) -> list:
    """Decode a JSONB list column; malformed payloads fall back to ``default``."""
    if value is None:
        return list(default)
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Discarding malformed JSON list column: %r", value)
            return list(default)
    if not isinstance(value, list):
        return list(default)
    return value


def _row_to_config(row: Any) -> ReportConfig:
    """Convert an asyncpg Record to a ReportConfig."""
    return ReportConfig(
        config_id=row["config_id"],
        edition_id=row["edition_id"],
        name=row["name"],
        enabled=row["enabled"],
        frequency=row["frequency"],
        day_of_week=row.get("day_of_week"),
        day_of_month=row.get("day_of_month"),
        time_of_day=row["time_of_day"],
        timezone=row.get("timezone") or "UTC",
        recipient_roles=_decode_json_list(
            row.get("recipient_roles"), list(DEFAULT_RECIPIENT_ROLES)
        ),
        recipients=[
            ReportRecipient.from_dict(r)
            for r in _decode_json_list(row.get("recipients"), [])
        ],
        sections=_decode_json_list(row.get("sections"), []),
        last_sent_at=row.get("last_sent_at"),
        next_scheduled_at=row.get("next_scheduled_at"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class ReportConfigRepository:
    """CRUD and due-date queries for the ``report_configs`` table.

    Args:
        database: Connected Database handle.
        clock: Source of "now" for schedule calculation.
    """

    def __init__(
        self,
        database: Database,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._db = database
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def create_table(self) -> None:
        """Create the report_configs table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Report config table ensured")

    async def create(self, config: ReportConfig) -> ReportConfig:
        """Insert a config with its first ``next_scheduled_at``.

        Raises:
            SchedulingError: The recurrence is incomplete or malformed.
        """
        next_at = calculate_next_scheduled_at(
            RecurrenceSpec.from_config(config), self._clock(),
        )
        sql = """
            INSERT INTO report_configs (
                config_id, edition_id, name, enabled, frequency, day_of_week,
                day_of_month, time_of_day, timezone, recipient_roles,
                recipients, sections, next_scheduled_at, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15)
            RETURNING *
        """
        row = await self._db.fetchrow(
            sql,
            config.config_id,
            config.edition_id,
            config.name,
            config.enabled,
            config.frequency,
            config.day_of_week,
            config.day_of_month,
            config.time_of_day,
            config.timezone,
            json.dumps(config.recipient_roles or list(DEFAULT_RECIPIENT_ROLES)),
            json.dumps([r.to_dict() for r in config.recipients]),
            json.dumps(config.sections),
            next_at,
            config.created_at,
            config.updated_at,
        )
        logger.info(
            "Report config %s created, next run %s", config.config_id, next_at.isoformat(),
        )
        return _row_to_config(row)

    async def get_by_id(self, config_id: str) -> ReportConfig | None:
        row = await self._db.fetchrow(
            "SELECT * FROM report_configs WHERE config_id = $1", config_id
        )
        return _row_to_config(row) if row is not None else None

    async def find_by_edition(
        self,
        edition_id: str,
        *,
        enabled_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ReportConfig]:
        """Configs of an edition, newest first."""
        sql = "SELECT * FROM report_configs WHERE edition_id = $1"
        if enabled_only:
            sql += " AND enabled = TRUE"
        sql += " ORDER BY created_at DESC LIMIT $2 OFFSET $3"
        rows = await self._db.fetch(sql, edition_id, limit, offset)
        return [_row_to_config(r) for r in rows]

    async def find_due_reports(self, before: datetime | None = None) -> list[ReportConfig]:
        """Enabled configs due at or before ``before``, earliest first."""
        rows = await self._db.fetch(
            """
            SELECT * FROM report_configs
            WHERE enabled = TRUE AND next_scheduled_at <= $1
            ORDER BY next_scheduled_at ASC
            """,
            before or self._clock(),
        )
        return [_row_to_config(r) for r in rows]

    async def update(self, config_id: str, **changes: Any) -> ReportConfig:
        """Apply a partial update.

        ``next_scheduled_at`` is recomputed from now when any recurrence
        field is among ``changes``.

        Raises:
            NotFoundError: No config with this id.
            ValidationError: An unknown field, or a changed value is invalid.
            SchedulingError: The resulting recurrence is malformed.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {sorted(unknown)}")

        current = await self.get_by_id(config_id)
        if current is None:
            raise NotFoundError("report config", config_id)

        updated = dataclasses.replace(current, **changes)
        next_at = current.next_scheduled_at
        if RECURRENCE_FIELDS & changes.keys():
            next_at = calculate_next_scheduled_at(
                RecurrenceSpec.from_config(updated), self._clock(),
            )

        sql = """
            UPDATE report_configs SET
                name = $2, enabled = $3, frequency = $4, day_of_week = $5,
                day_of_month = $6, time_of_day = $7, timezone = $8,
                recipient_roles = $9, recipients = $10, sections = $11,
                next_scheduled_at = $12, updated_at = NOW()
            WHERE config_id = $1
            RETURNING *
        """
        row = await self._db.fetchrow(
            sql,
            config_id,
            updated.name,
            updated.enabled,
            updated.frequency,
            updated.day_of_week,
            updated.day_of_month,
            updated.time_of_day,
            updated.timezone,
            json.dumps(updated.recipient_roles),
            json.dumps([r.to_dict() for r in updated.recipients]),
            json.dumps(updated.sections),
            next_at,
        )
        if row is None:
            raise NotFoundError("report config", config_id)
        return _row_to_config(row)

    async def mark_sent(self, config_id: str, sent_at: datetime | None = None) -> ReportConfig:
        """Record a send and advance ``next_scheduled_at`` past ``sent_at``.

        Raises:
            NotFoundError: No config with this id.
        """
        config = await self.get_by_id(config_id)
        if config is None:
            raise NotFoundError("report config", config_id)

        sent_at = sent_at or self._clock()
        next_at = calculate_next_scheduled_at(RecurrenceSpec.from_config(config), sent_at)
        row = await self._db.fetchrow(
            """
            UPDATE report_configs SET
                last_sent_at = $2, next_scheduled_at = $3, updated_at = NOW()
            WHERE config_id = $1
            RETURNING *
            """,
            config_id,
            sent_at,
            next_at,
        )
        if row is None:
            raise NotFoundError("report config", config_id)
        return _row_to_config(row)

    async def delete(self, config_id: str) -> bool:
        result = await self._db.fetchval(
            "DELETE FROM report_configs WHERE config_id = $1 RETURNING config_id",
            config_id,
        )
        return result is not None

    async def count_by_edition(self, edition_id: str) -> dict[str, int]:
        row = await self._db.fetchrow(
            """
            SELECT COUNT(*) AS total,
                   COUNT(*) FILTER (WHERE enabled) AS enabled
            FROM report_configs
            WHERE edition_id = $1
            """,
            edition_id,
        )
        if row is None:
            return {"total": 0, "enabled": 0}
        return {"total": row["total"], "enabled": row["enabled"]}
