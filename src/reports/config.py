"""Report scheduling configuration.

All settings can be overridden via ``REPORTS_*`` environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReportConfigSettings(BaseSettings):
    """Configuration for recurring report delivery."""

    model_config = SettingsConfigDict(
        env_prefix="REPORTS_",
        case_sensitive=False,
        extra="ignore",
    )

    test_subject_prefix: str = Field(
        default="[TEST]",
        description="Subject prefix for ad-hoc test sends",
    )
    upcoming_default_limit: int = Field(
        default=5,
        ge=1,
        description="Default number of configs returned by get_upcoming",
    )
