"""
Time expression normalization.

Turns whatever a feed puts in a date field (epoch numbers, parsed time tuples,
RFC 822 / ISO 8601 strings, or relative phrases like "3 days ago") into a
single float of seconds since the Unix epoch. Normalization never fails: an
expression that cannot be understood resolves to the current time.
"""

import calendar
import numbers
import re
import time
from collections.abc import Callable
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from feedparser.datetimes import _parse_date as _parse_feed_date

from .logging_config import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]

# Seconds per duration unit; months and years are averages
DURATION_UNITS: dict[str, float] = {
    "microsec": 1e-6,
    "microsecond": 1e-6,
    "millisec": 1e-3,
    "millisecond": 1e-3,
    "sec": 1.0,
    "second": 1.0,
    "min": 60.0,
    "minute": 60.0,
    "hour": 3600.0,
    "day": 86400.0,
    "week": 604800.0,
    "fortnight": 1209600.0,
    "month": 2592000.0,
    "year": 31557600.0,
}

# Matches substrings, so "Chicago" becomes "Chic "
_FILLER_RE = re.compile(r"ago|old|-", re.IGNORECASE)
_ALPHA_RE = re.compile(r"[^\W\d_]")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")
_DURATION_TERM_RE = re.compile(r"[\s,]*(\d+(?:\.\d+)?|\.\d+)?\s*([a-z]*[a-rt-z])s?[\s,]*")
_SIMPLE_ISO_RE = re.compile(
    r"^\s*(\d{4})-?(\d{2})-?(\d{2})(?:[T ](\d{2}):?(\d{2})(?::?(\d{2}))?Z?)?\s*$"
)


def strip_filler_words(text: str) -> str:
    """Blank out the "ago", "old" and "-" fillers used in relative phrasing."""
    return _FILLER_RE.sub(" ", text)


def parse_duration(text: str) -> float | None:
    """
    Parse a duration such as "3 days", "1 hour 30 min" or "2weeks".

    Args:
        text: Duration text. A bare number is a count of seconds and blank
            text is a zero duration.

    Returns:
        Duration in seconds, or None if the text is not a duration.
    """
    text = text.strip().lower()
    if not text:
        return 0.0
    if _NUMBER_RE.fullmatch(text):
        return float(text)

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_TERM_RE.match(text, pos)
        if match is None or match.end() == pos:
            return None
        unit_seconds = DURATION_UNITS.get(match.group(2))
        if unit_seconds is None:
            return None
        count = float(match.group(1)) if match.group(1) else 1.0
        total += count * unit_seconds
        pos = match.end()
    return total


def _struct_to_epoch(value: time.struct_time | tuple[int, ...]) -> float:
    return float(calendar.timegm(tuple(value[:6]) + (0, 0, 0)))


def parse_absolute(text: str) -> float | None:
    """
    Parse an absolute calendar date.

    Uses feedparser's date handlers, which cover RFC 822, W3DTF/ISO 8601,
    asctime and several localized formats. Parsed times are UTC.

    Args:
        text: Date text.

    Returns:
        Seconds since the epoch, or None if no handler understood the text.
    """
    try:
        parsed = _parse_feed_date(text)
        if parsed is None:
            return None
        return _struct_to_epoch(parsed)
    except (ValueError, OverflowError, TypeError, IndexError):
        return None


def parse_simple_iso_8601(text: str) -> float | None:
    """
    Parse a strict ISO 8601 date, with an optional time, as UTC.

    Accepts "2024-03-01", "20240301" and "2024-03-01T12:30[:45][Z]".
    """
    match = _SIMPLE_ISO_RE.match(text)
    if match is None:
        return None
    parts = [int(p) if p else 0 for p in match.groups()]
    try:
        return datetime(*parts, tzinfo=timezone.utc).timestamp()
    except ValueError:
        return None


def _structured_to_epoch(value: Any) -> float | None:
    try:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return value.timestamp()
        if isinstance(value, date):
            return float(calendar.timegm(value.timetuple()))
        if isinstance(value, time.struct_time):
            return _struct_to_epoch(value)
        if (
            isinstance(value, (tuple, list))
            and len(value) >= 6
            and all(isinstance(v, int) and not isinstance(v, bool) for v in value)
        ):
            return _struct_to_epoch(tuple(value))
    except (ValueError, OverflowError, OSError):
        return None
    return None


def resolve_time(expression: Any, *, now: Clock | None = None) -> float | None:
    """
    Resolve a time expression without falling back to the current time.

    Args:
        expression: Number, structured time value or text.
        now: Clock used for relative durations. Defaults to time.time.

    Returns:
        Seconds since the epoch, or None if the expression is not understood.
    """
    if isinstance(expression, bool):
        return None
    # Decimal is not registered as numbers.Real
    if isinstance(expression, (numbers.Real, Decimal)):
        try:
            return float(expression)
        except (ValueError, OverflowError):
            return None
    if isinstance(expression, str):
        # Relative phrases need a unit word; "2024-01-01" must not become seconds
        if _ALPHA_RE.search(expression):
            duration = parse_duration(strip_filler_words(expression))
            if duration is not None:
                return (now or time.time)() - duration
        return parse_absolute(expression)
    if expression is None:
        return None
    return _structured_to_epoch(expression)


def float_time(expression: Any = None, *, now: Clock | None = None) -> float:
    """
    Normalize a time expression to seconds since the epoch.

    Resolution order:
    1. Numbers are already epoch seconds.
    2. datetime, date, struct_time and time tuples are converted directly.
    3. Text containing a letter is tried as a relative duration after the
       "ago", "old" and "-" fillers are blanked ("3 days ago" is now minus
       3 days).
    4. Text is then tried as an absolute date.
    5. Anything else resolves to the current time.

    Args:
        expression: Time expression to normalize.
        now: Clock returning the current epoch seconds. Defaults to time.time.

    Returns:
        Seconds since the epoch. Never raises.
    """
    clock = now or time.time
    resolved = resolve_time(expression, now=clock)
    if resolved is None:
        if expression is not None:
            logger.debug(
                "Unrecognized time expression; using current time",
                extra={"expression": repr(expression)[:200]},
            )
        return clock()
    return resolved


def new_date_for_entry(old_date: float | None, new_date: Any, *, now: Clock | None = None) -> float:
    """
    Decide the date of a refetched entry.

    A usable new date wins. Otherwise an existing entry keeps its old date and
    a new entry gets the current time.

    Args:
        old_date: Stored date of the entry, or None for a new entry.
        new_date: Date expression from the latest fetch.
        now: Clock returning the current epoch seconds.

    Returns:
        Seconds since the epoch.
    """
    clock = now or time.time
    resolved = resolve_time(new_date, now=clock) if new_date is not None else None
    if resolved is not None:
        return resolved
    if old_date is not None:
        return float(old_date)
    return clock()
