"""
time_utils.py

What this file does:
  - Single place for parsing health-export timestamps into tz-aware UTC datetimes.
  - Parses the store's display dates ("1/28/2026" or "2026-01-28...") into
    canonical YYYY-MM-DD strings.
  - Computes calendar-day windows in a given timezone.

This file does NOT:
  - Query databases
  - Decide which rows belong to a query
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Optional, Tuple

# Health Auto Export writes "2026-01-28 06:49:53 -0500"; older rows use
# the en-US locale string "1/28/2026, 4:26:57 PM".
TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M:%S",
    "%m/%d/%Y, %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
)

ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")


def parse_time_utc(t: Any) -> datetime:
    """Parse a timestamp (str, datetime or epoch seconds) into a tz-aware UTC datetime."""
    if isinstance(t, datetime):
        return t.replace(tzinfo=timezone.utc) if t.tzinfo is None else t.astimezone(timezone.utc)

    if isinstance(t, (int, float)) and not isinstance(t, bool):
        # epoch seconds
        return datetime.fromtimestamp(float(t), tz=timezone.utc)

    if isinstance(t, str):
        s = t.strip()
        for fmt in TIMESTAMP_FORMATS:
            try:
                dt = datetime.strptime(s, fmt)
            except ValueError:
                continue
            return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)

        # RFC3339 from Influx commonly ends in 'Z'
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
        return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)

    raise TypeError(f"Unsupported time type: {type(t)}")


def try_parse_time_utc(t: Any) -> Optional[datetime]:
    """Like parse_time_utc, but returns None for empty or unparsable input."""
    if t is None or t == "":
        return None
    try:
        return parse_time_utc(t)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def parse_display_date(date_str: Any) -> Optional[date]:
    """Parse a row's display date ("M/D/YYYY" or "YYYY-MM-DD...")."""
    if not isinstance(date_str, str):
        return None
    s = date_str.strip()

    m = US_DATE.match(s)
    if m:
        month, day, year = (int(g) for g in m.groups())
    else:
        m = ISO_DATE.match(s)
        if not m:
            return None
        year, month, day = (int(g) for g in m.groups())

    try:
        return date(year, month, day)
    except ValueError:
        return None


def normalize_display_date(date_str: Any) -> Optional[str]:
    """Canonical YYYY-MM-DD for a display date, or None."""
    d = parse_display_date(date_str)
    return d.isoformat() if d is not None else None


def shift_iso_date(iso_date: str, days: int) -> str:
    return (date.fromisoformat(iso_date) + timedelta(days=days)).isoformat()


def day_window_utc(iso_date: str, tz: tzinfo = timezone.utc) -> Tuple[datetime, datetime]:
    """[midnight, next midnight) of a local calendar day, as UTC datetimes."""
    d = date.fromisoformat(iso_date)
    start_local = datetime(d.year, d.month, d.day, tzinfo=tz)
    nxt = d + timedelta(days=1)
    end_local = datetime(nxt.year, nxt.month, nxt.day, tzinfo=tz)
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)


def local_date(instant: datetime, tz: tzinfo = timezone.utc) -> str:
    return instant.astimezone(tz).date().isoformat()


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0
