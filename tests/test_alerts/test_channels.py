"""Tests for the HTTP email channel and status classification."""

import json

import httpx
import pytest
import respx

from src.alerts.channels import (
    EmailMessage,
    HttpEmailChannel,
    NotificationChannel,
    SendResult,
    classify_status,
)
from src.alerts.dispatcher import NotificationConfig
from src.core.exceptions import PermanentChannelError, RetryableChannelError

API_URL = "https://mail.example.com/emails"


# ── Fixtures ────────────────────────────────────────────


@pytest.fixture
def channel():
    return HttpEmailChannel(
        api_url=API_URL,
        from_address="alerts@example.com",
        api_key="secret-key",
        timeout=2.0,
    )


@pytest.fixture
def message():
    return EmailMessage(
        to="lead@example.com",
        subject="[Critical] Budget overrun - DevFest 2024",
        html="<p>Budget overrun</p>",
        text="Budget overrun",
    )


# ── Classification ─────────────────────────────────────


class TestClassifyStatus:
    @pytest.mark.parametrize("status", [429, 500, 502, 503])
    def test_retryable(self, status):
        error = classify_status(status)
        assert isinstance(error, RetryableChannelError)
        assert error.retryable is True
        assert error.status_code == status

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_permanent(self, status):
        error = classify_status(status, "bad request")
        assert isinstance(error, PermanentChannelError)
        assert error.retryable is False
        assert error.response_body == "bad request"

    def test_message_names_status(self):
        assert str(classify_status(503)) == "Channel returned HTTP 503"


# ── HttpEmailChannel ───────────────────────────────────


class TestHttpEmailChannel:
    def test_is_notification_channel(self, channel):
        assert isinstance(channel, NotificationChannel)
        assert channel.name == "email"

    @pytest.mark.asyncio
    @respx.mock
    async def test_successful_send(self, channel, message):
        route = respx.post(API_URL).mock(return_value=httpx.Response(200, json={"id": "m-1"}))

        result = await channel.send(message)

        assert result == SendResult(success=True)
        assert route.called
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer secret-key"
        payload = json.loads(request.content)
        assert payload == {
            "from": "alerts@example.com",
            "to": "lead@example.com",
            "subject": "[Critical] Budget overrun - DevFest 2024",
            "html": "<p>Budget overrun</p>",
            "text": "Budget overrun",
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_auth_header_without_key(self, message):
        channel = HttpEmailChannel(api_url=API_URL, from_address="alerts@example.com")
        route = respx.post(API_URL).mock(return_value=httpx.Response(202))

        result = await channel.send(message)

        assert result.success is True
        assert "Authorization" not in route.calls.last.request.headers

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error_is_retryable_failure(self, channel, message):
        respx.post(API_URL).mock(return_value=httpx.Response(503, text="unavailable"))

        result = await channel.send(message)

        assert result.success is False
        assert result.retryable is True
        assert "503" in result.error

    @pytest.mark.asyncio
    @respx.mock
    async def test_rate_limit_is_retryable_failure(self, channel, message):
        respx.post(API_URL).mock(return_value=httpx.Response(429))
        result = await channel.send(message)
        assert result.retryable is True

    @pytest.mark.asyncio
    @respx.mock
    async def test_client_error_is_permanent_failure(self, channel, message):
        respx.post(API_URL).mock(return_value=httpx.Response(422, json={"error": "bad to"}))

        result = await channel.send(message)

        assert result.success is False
        assert result.retryable is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_is_retryable_failure(self, channel, message):
        respx.post(API_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        result = await channel.send(message)

        assert result.success is False
        assert result.retryable is True
        assert "timed out" in result.error

    @pytest.mark.asyncio
    @respx.mock
    async def test_connect_error_is_retryable_failure(self, channel, message):
        respx.post(API_URL).mock(side_effect=httpx.ConnectError("refused"))

        result = await channel.send(message)

        assert result.success is False
        assert result.retryable is True

    @pytest.mark.asyncio
    @respx.mock
    async def test_built_from_notification_config(self, monkeypatch, message):
        monkeypatch.setenv("NOTIFICATIONS_EMAIL_API_URL", API_URL)
        monkeypatch.setenv("NOTIFICATIONS_EMAIL_FROM", "digest@example.com")
        route = respx.post(API_URL).mock(return_value=httpx.Response(200))

        channel = NotificationConfig().build_email_channel()
        result = await channel.send(message)

        assert result.success is True
        assert json.loads(route.calls.last.request.content)["from"] == "digest@example.com"
