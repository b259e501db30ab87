"""
Timestamp parsing and display formatting for sheet rows.

The spreadsheet backend is inconsistent about dates: Apps Script serializes
cells as ISO-8601 while hand-edited or gateway-written cells keep the
locale format. Everything is reduced to epoch milliseconds, with ``0`` as
the "unknown" sentinel.
"""
import logging
import time
from typing import Any, Optional

import pandas as pd

from levelwatch.config import config

logger = logging.getLogger(__name__)

# Returned for null, empty or unrecognized input. Never a valid instant.
UNKNOWN_TIME = 0

# Tried in order after ISO-8601. Day-first unless an AM/PM marker is present.
LOCALE_FORMATS = (
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y, %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y, %H:%M",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y, %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y, %I:%M %p",
    # Month-first 24h only reached when the day-first reading is impossible
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y, %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y, %H:%M",
    "%d-%b-%Y %H:%M:%S",
    "%d-%b-%Y %H:%M",
)


def _to_timestamp(text: str) -> Optional[pd.Timestamp]:
    """Return the first format that parses ``text`` exactly, or None."""
    for fmt in ("ISO8601",) + LOCALE_FORMATS:
        try:
            ts = pd.to_datetime(text, format=fmt)
        except (ValueError, TypeError, OverflowError):
            continue
        if not pd.isna(ts):
            return ts
    return None


def parse_date(value: Any, tz: Optional[str] = None) -> int:
    """
    Parse a sheet date/time value into epoch milliseconds.

    Args:
        value: Raw cell value (string, datetime, or anything else)
        tz: Timezone applied to naive values; defaults to the configured
            source timezone

    Returns:
        Epoch milliseconds, or UNKNOWN_TIME (0) when the value cannot be
        parsed. Never raises.
    """
    if value is None:
        return UNKNOWN_TIME

    try:
        if isinstance(value, pd.Timestamp) or hasattr(value, "tzinfo"):
            ts = pd.Timestamp(value)
        else:
            text = str(value).strip()
            if not text:
                return UNKNOWN_TIME
            ts = _to_timestamp(text)
            if ts is None:
                logger.debug(f"Unrecognized date value: {text!r}")
                return UNKNOWN_TIME

        if ts.tzinfo is None:
            # Repeated fall-back hour reads as standard time; spring-gap
            # times move to the first valid instant after the gap.
            ts = ts.tz_localize(
                tz or config.timezone,
                ambiguous=False,
                nonexistent="shift_forward",
            )

        millis = int(ts.value // 1_000_000)
    except Exception as e:
        logger.debug(f"Failed to parse date {value!r}: {e}")
        return UNKNOWN_TIME

    return millis if millis > 0 else UNKNOWN_TIME


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def _as_millis(value: Any, tz: Optional[str] = None) -> int:
    """Epoch ms from an already-parsed int or from a raw sheet value."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value if value > 0 else UNKNOWN_TIME
    return parse_date(value, tz=tz)


def format_date_time(value: Any, tz: Optional[str] = None) -> str:
    """
    Render a sheet date (or epoch ms) as "05 Mar 2024, 14:30" in the source
    timezone.

    Unparseable but non-empty text is returned as-is so the log view still
    shows what the gateway wrote.
    """
    millis = _as_millis(value, tz=tz)
    if millis == UNKNOWN_TIME:
        if isinstance(value, int):
            return "Unknown"
        text = "" if value is None else str(value).strip()
        return text or "Unknown"

    ts = pd.Timestamp(millis, unit="ms", tz="UTC").tz_convert(tz or config.timezone)
    return ts.strftime("%d %b %Y, %H:%M")


def time_ago(value: Any, now: Optional[int] = None) -> str:
    """
    Relative age of a sheet date, e.g. "5 mins ago".

    Args:
        value: Raw sheet date, or epoch milliseconds as int
        now: Reference time in epoch milliseconds (defaults to wall clock)
    """
    millis = _as_millis(value)
    if millis == UNKNOWN_TIME:
        return "Unknown"

    reference = now_ms() if now is None else now
    seconds = max(0, (reference - millis) // 1000)
    if seconds < 60:
        return "Just now"

    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} min{'s' if minutes != 1 else ''} ago"

    hours = minutes // 60
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"

    days = hours // 24
    if days < 7:
        return f"{days} day{'s' if days != 1 else ''} ago"

    ts = pd.Timestamp(millis, unit="ms", tz="UTC").tz_convert(config.timezone)
    return ts.strftime("%d %b %Y")
