"""
Timestamp decoding for CircleCI payloads.

CircleCI sends ISO-8601 instants, usually with milliseconds
(``2024-05-01T12:00:00.123Z``) and sometimes without. The fractional form is
tried first. Fractions finer than microseconds are truncated.
"""
import re
from datetime import datetime, timezone

_FRACTIONAL_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"
_PLAIN_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# strptime's %f accepts at most six digits
_LONG_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value) -> datetime:
    """
    Decode an ISO-8601 string into an aware UTC datetime.

    Raises
    ------
    ValueError
        If neither the fractional nor the plain form matches.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str):
        raise ValueError(f"Cannot decode date: {value!r}")

    text = _LONG_FRACTION.sub(r"\1", value, count=1)
    for fmt in (_FRACTIONAL_FORMAT, _PLAIN_FORMAT):
        try:
            return datetime.strptime(text, fmt).astimezone(timezone.utc)
        except ValueError:
            continue
    raise ValueError(f"Cannot decode date: {value}")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
