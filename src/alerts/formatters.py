"""Pure functions that render alert notification emails."""

from dataclasses import dataclass
from html import escape

from src.alerts.schemas import (
    Alert,
    get_severity_color,
    get_severity_label,
)
from src.core.validation import format_number
from src.metrics.schemas import get_metric_source_label


@dataclass(frozen=True)
class AlertEmailData:
    """Everything an alert email needs besides the recipient address."""

    alert: Alert
    edition_name: str
    dashboard_url: str
    recipient_name: str = ""


def alert_email_subject(data: AlertEmailData) -> str:
    """Subject line, e.g. "[Critical] Budget overrun - DevFest 2025"."""
    label = get_severity_label(data.alert.severity)
    return f"[{label}] {data.alert.title} - {data.edition_name}"


def render_alert_email_html(data: AlertEmailData, app_name: str) -> str:
    alert = data.alert
    color = get_severity_color(alert.severity)
    label = get_severity_label(alert.severity).upper()
    source = get_metric_source_label(alert.metric_source)
    title = escape(alert.title)
    dashboard = escape(data.dashboard_url, quote=True)

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Alert: {title}</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="border-left: 4px solid {color}; padding-left: 16px; margin-bottom: 20px;">
    <span style="background: {color}; color: white; padding: 4px 8px; border-radius: 4px; font-size: 12px; font-weight: bold;">{label}</span>
    <h1 style="color: {color}; margin: 16px 0 8px 0;">{title}</h1>
    <p style="color: #666; margin: 0;">{escape(source)} - {escape(data.edition_name)}</p>
  </div>
  <div style="background: #f8f9fa; padding: 16px; border-radius: 8px; margin-bottom: 20px;">
    <p style="margin: 0;"><strong>Current Value:</strong> {format_number(alert.current_value)}</p>
    <p style="margin: 8px 0 0 0;"><strong>Threshold:</strong> {format_number(alert.threshold_value)}</p>
  </div>
  <p>{escape(alert.message)}</p>
  <p>
    <a href="{dashboard}" style="display: inline-block; background: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px;">View Dashboard</a>
  </p>
  <hr style="border: none; border-top: 1px solid #eee; margin: 24px 0;">
  <p style="color: #666; font-size: 12px;">
    This alert was triggered by {escape(app_name)}.<br>
    You can manage your alert settings in the <a href="{dashboard}/alerts">dashboard</a>.
  </p>
</body>
</html>"""


def render_alert_email_text(data: AlertEmailData, app_name: str) -> str:
    alert = data.alert
    label = get_severity_label(alert.severity).upper()
    source = get_metric_source_label(alert.metric_source)

    return "\n".join([
        f"[{label}] {alert.title}",
        "",
        f"{source} - {data.edition_name}",
        "",
        f"Current Value: {format_number(alert.current_value)}",
        f"Threshold: {format_number(alert.threshold_value)}",
        "",
        alert.message,
        "",
        f"View Dashboard: {data.dashboard_url}",
        "",
        "---",
        f"This alert was triggered by {app_name}.",
        f"You can manage your alert settings in the dashboard: {data.dashboard_url}/alerts",
    ])
