"""Tests for environment-driven settings."""

import pytest

from src.alerts.config import AlertConfig
from src.config.settings import Settings, get_settings
from src.metrics.config import MetricsCacheConfig
from src.reports.config import ReportConfigSettings


class TestSettings:
    def test_defaults(self, test_settings):
        assert test_settings.is_production is False
        assert test_settings.db_pool_min_size == 2
        assert test_settings.app_name == "Edition Monitor"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("APP_NAME", "Conf HQ")
        settings = Settings()
        assert settings.is_production is True
        assert settings.app_name == "Conf HQ"

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestDomainSettings:
    def test_metrics_cache_prefix(self, monkeypatch):
        monkeypatch.setenv("METRICS_CACHE_DEFAULT_TTL_SECONDS", "60")
        monkeypatch.setenv("METRICS_CACHE_SINGLE_FLIGHT", "false")
        config = MetricsCacheConfig()
        assert config.default_ttl_seconds == 60
        assert config.single_flight is False

    def test_metrics_cache_rejects_non_positive_ttl(self):
        with pytest.raises(ValueError):
            MetricsCacheConfig(default_ttl_seconds=0)

    def test_dashboard_url(self):
        config = AlertConfig(app_url="https://bo.example.com/")
        assert config.dashboard_url("ed-1") == "https://bo.example.com/admin/reporting/ed-1"

    def test_report_settings_prefix(self, monkeypatch):
        monkeypatch.setenv("REPORTS_TEST_SUBJECT_PREFIX", "[DRY RUN]")
        settings = ReportConfigSettings()
        assert settings.test_subject_prefix == "[DRY RUN]"
        assert settings.upcoming_default_limit == 5
