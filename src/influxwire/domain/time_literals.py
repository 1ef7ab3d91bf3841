"""
InfluxQL time literals: RFC3339 dates and duration tokens.
"""

import re
from datetime import datetime, timezone
from typing import Any

DURATION_UNITS = ("ns", "u", "ms", "s", "m", "h", "d", "w")

_DURATION_RE = re.compile(r"^(\d+)(" + "|".join(DURATION_UNITS) + r")$")
_RFC3339_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(\.\d+)?(Z|[+-]\d{2}:\d{2})$"
)


def is_duration(value: Any) -> bool:
    """True for a duration token such as ``30s``, ``15m`` or ``1w``."""
    return isinstance(value, str) and _DURATION_RE.match(value) is not None


def is_integer_literal(value: Any) -> bool:
    """True for a non-negative int or a string made only of ASCII digits."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value >= 0
    return isinstance(value, str) and value.isascii() and value.isdigit()


def is_rfc3339(value: Any) -> bool:
    """True when value is an RFC3339 timestamp with a real calendar date."""
    if not isinstance(value, str):
        return False
    match = _RFC3339_RE.match(value)
    if match is None:
        return False
    year, month, day, hour, minute, second = (int(part) for part in match.groups()[:6])
    try:
        datetime(year, month, day, hour, minute, second)
    except ValueError:
        return False
    return True


def create_date(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> str:
    """RFC3339 text (UTC) for the given calendar values."""
    moment = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
    return moment.isoformat().replace("+00:00", "Z")


def create_date_from_timestamp(timestamp: int) -> str:
    """RFC3339 text (UTC) for a unix timestamp in seconds."""
    moment = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    return moment.isoformat().replace("+00:00", "Z")
