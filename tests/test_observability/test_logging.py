"""Tests for structured logging setup."""

import logging

import structlog

from src.config.settings import get_settings
from src.observability.logging import bind_context, clear_context, get_logger, setup_logging


class TestSetupLogging:
    def test_level_override_and_noisy_loggers(self):
        get_settings.cache_clear()
        setup_logging("DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("asyncpg").level == logging.WARNING

    def test_get_logger(self):
        assert get_logger("src.reports") is not None


class TestContext:
    def test_bind_and_clear(self):
        clear_context()
        bind_context(edition_id="ed-1", run_id="run-1")
        assert structlog.contextvars.get_contextvars() == {"edition_id": "ed-1", "run_id": "run-1"}

        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
