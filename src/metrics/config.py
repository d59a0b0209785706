"""Metrics cache configuration.

All settings can be overridden via ``METRICS_CACHE_*`` environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MetricsCacheConfig(BaseSettings):
    """Configuration for the shared metrics snapshot cache."""

    model_config = SettingsConfigDict(
        env_prefix="METRICS_CACHE_",
        case_sensitive=False,
        extra="ignore",
    )

    default_ttl_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Lifetime of a cached snapshot when no TTL is given",
    )
    single_flight: bool = Field(
        default=True,
        description="Share one in-flight fetch between concurrent cold readers of a key",
    )
