"""Alert service configuration.

Controls how alert notifications link back to the dashboard. All settings
can be overridden via ``ALERTS_*`` environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AlertConfig(BaseSettings):
    """Configuration for threshold alerting."""

    model_config = SettingsConfigDict(
        env_prefix="ALERTS_",
        case_sensitive=False,
        extra="ignore",
    )

    app_url: str = Field(
        default="http://localhost:5173",
        description="Public base URL of the back office",
    )
    dashboard_path: str = Field(
        default="/admin/reporting/{edition_id}",
        description="Dashboard path template; {edition_id} is substituted",
    )
    metrics_ttl_seconds: float | None = Field(
        default=None,
        gt=0,
        description="TTL for snapshots fetched during evaluation (None = cache default)",
    )

    def dashboard_url(self, edition_id: str) -> str:
        return self.app_url.rstrip("/") + self.dashboard_path.format(edition_id=edition_id)
