"""Timestamp helpers.

Formats use ``strftime`` tokens (``%Y-%m-%d %H:%M:%S``) and timezones are
IANA names such as ``Asia/Shanghai``.
"""

from __future__ import annotations

import datetime as dt
import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import TimeParseError


def current_timestamp() -> int:
    """Return the current Unix timestamp in whole seconds."""
    return int(time.time())


def _parse(value: str, fmt: str) -> dt.datetime:
    try:
        return dt.datetime.strptime(value, fmt)
    except ValueError as exc:
        raise TimeParseError(f"Unable to parse {value!r} with format {fmt!r}: {exc}") from exc


def get_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise TimeParseError(f"Unknown timezone {name!r}") from exc


def from_str(value: str, fmt: str) -> dt.datetime:
    """Parse ``value`` as a wall-clock time in the local timezone.

    Returns:
        An aware datetime carrying the local UTC offset.

    Raises:
        TimeParseError: if ``value`` does not match ``fmt``.
    """
    return _parse(value, fmt).astimezone()


def from_str_with_timezone(value: str, fmt: str, tz_name: str) -> dt.datetime:
    """Parse ``value`` as a wall-clock time in the named timezone.

    Raises:
        TimeParseError: if ``value`` does not match ``fmt`` or ``tz_name`` is unknown.
    """
    zone = get_timezone(tz_name)
    parsed = _parse(value, fmt)
    if parsed.tzinfo is not None:
        # %z in the format wins over the zone name for the instant
        return parsed.astimezone(zone)
    return parsed.replace(tzinfo=zone)


def to_timestamp(value: str, fmt: str, tz_name: str | None = None) -> int:
    """Convert a formatted time string to a Unix timestamp in seconds.

    The string is read as local time unless ``tz_name`` is given.
    """
    if tz_name:
        parsed = from_str_with_timezone(value, fmt, tz_name)
    else:
        parsed = from_str(value, fmt)
    return int(parsed.timestamp())
