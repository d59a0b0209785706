"""Tests for the shared exception hierarchy and input checks."""

import pytest

from src.core.exceptions import (
    ChannelError,
    InvalidTransitionError,
    MonitoringError,
    NotFoundError,
    PermanentChannelError,
    RetryableChannelError,
    SchedulingError,
    ValidationError,
)
from src.core.validation import format_number, is_valid_email, is_valid_time_of_day


class TestHierarchy:
    def test_validation_errors_are_value_errors(self):
        assert issubclass(ValidationError, ValueError)
        assert issubclass(SchedulingError, ValidationError)

    def test_not_found(self):
        error = NotFoundError("alert", "alert-1")
        assert isinstance(error, LookupError)
        assert isinstance(error, MonitoringError)
        assert str(error) == "Alert not found: alert-1"
        assert (error.resource, error.resource_id) == ("alert", "alert-1")

    def test_invalid_transition(self):
        error = InvalidTransitionError("alert-1", "resolved", "acknowledge")
        assert str(error) == "Cannot acknowledge alert alert-1 in status 'resolved'"
        assert error.current_status == "resolved"

    def test_channel_errors(self):
        assert ChannelError("x").retryable is False
        assert RetryableChannelError("x", status_code=503).retryable is True
        assert PermanentChannelError("x", status_code=400).retryable is False


class TestValidation:
    @pytest.mark.parametrize("value", ["a@example.com", "first.last+tag@mail.example.org"])
    def test_valid_emails(self, value):
        assert is_valid_email(value)

    @pytest.mark.parametrize("value", ["", "invalid-email", "a@b", "a b@example.com", None])
    def test_invalid_emails(self, value):
        assert not is_valid_email(value)

    @pytest.mark.parametrize("value,expected", [
        ("00:00", True),
        ("23:59", True),
        ("9:00", False),
        ("24:00", False),
        ("12:5", False),
    ])
    def test_time_of_day(self, value, expected):
        assert is_valid_time_of_day(value) is expected

    def test_format_number(self):
        assert format_number(15.0) == "15"
        assert format_number(15) == "15"
        assert format_number(3.8) == "3.8"
