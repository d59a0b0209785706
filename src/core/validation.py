"""Small input checks shared by the domain schemas."""

import re

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_TIME_OF_DAY_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def is_valid_email(value: str) -> bool:
    """Syntactic check only; deliverability is the mail provider's problem."""
    return isinstance(value, str) and bool(_EMAIL_RE.match(value))


def is_valid_time_of_day(value: str) -> bool:
    """True for zero-padded 24-hour ``HH:MM`` strings."""
    return isinstance(value, str) and bool(_TIME_OF_DAY_RE.match(value))


def format_number(value: float) -> str:
    """Render a number without a trailing ``.0`` for whole values."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
