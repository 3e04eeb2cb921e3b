"""
Timestamp parsing and freshness window checks.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from .errors import InvalidTimestampError

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_INTEGER = re.compile(r"[+-]?\d+")

# 13+ digits is milliseconds (1e12 ms is September 2001)
MILLISECONDS_MIN_DIGITS = 13


def parse_timestamp(value: str) -> datetime:
    """
    Parse a timestamp header into an aware UTC datetime.

    Accepts unix seconds, unix milliseconds (13 or more digits) or an
    ISO-8601 string; ISO values without an offset are taken as UTC.

    Raises:
        InvalidTimestampError: If no supported format matches

    Examples:
        >>> parse_timestamp("1700000000")
        datetime.datetime(2023, 11, 14, 22, 13, 20, tzinfo=datetime.timezone.utc)
        >>> parse_timestamp("1700000000000") == parse_timestamp("1700000000")
        True
    """
    text = value.strip()

    if _INTEGER.fullmatch(text):
        number = int(text)
        digits = len(text.lstrip("+-"))
        try:
            if digits >= MILLISECONDS_MIN_DIGITS:
                return _EPOCH + timedelta(milliseconds=number)
            return _EPOCH + timedelta(seconds=number)
        except OverflowError:
            raise InvalidTimestampError("Timestamp out of range") from None

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidTimestampError("Unrecognized timestamp format") from None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        raise InvalidTimestampError("Timestamp out of range") from None


def is_within_window(
    declared: datetime,
    now: datetime,
    allowed_skew: timedelta,
    max_age: timedelta | None = None,
) -> bool:
    """
    Check a declared send time against ``now``.

    ``|now - declared|`` must not exceed ``allowed_skew``, and when
    ``max_age`` is set, ``now - declared`` must not exceed it either.
    Both bounds are inclusive.
    """
    delta = now - declared
    if delta > allowed_skew or delta < -allowed_skew:
        return False
    if max_age is not None and delta > max_age:
        return False
    return True
