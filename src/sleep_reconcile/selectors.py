"""
selectors.py

What this file does:
  - Chooses the "current" storage date (usually the most recent) from a snapshot
  - Determines which storage dates a single-day or range query must read
  - Builds the date-membership predicates the engine filters rows with

Windows:
  - single day D   -> rows stored under D-1 .. D+1
      (D-1 carries cross-midnight sleep into D, D+1 supplies spillover blocks)
  - range S..E     -> rows stored under S-1 .. E+1
      (same padding, so a range and a single day see the same evidence)

This file does NOT:
  - Query databases
  - Parse payloads
"""

from __future__ import annotations

import re
from datetime import date
from typing import Callable, Iterable, List, Optional, Tuple

from .records import SLEEP_SESSION, SLEEP_STAGE, RawEventRow, canonical_metric
from .time_utils import normalize_display_date, shift_iso_date

ISO_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateWindow = Tuple[str, str]


def is_iso_date(s: str) -> bool:
    if not isinstance(s, str) or not ISO_DATE_ONLY.match(s):
        return False
    try:
        date.fromisoformat(s)
    except ValueError:
        return False
    return True


def single_day_window(iso_date: str) -> DateWindow:
    return shift_iso_date(iso_date, -1), shift_iso_date(iso_date, 1)


def range_window(start: str, end: str) -> DateWindow:
    return shift_iso_date(start, -1), shift_iso_date(end, 1)


def storage_date_predicate(
    first: str,
    last: str,
    normalize_date: Callable[[str], Optional[str]] = normalize_display_date,
) -> Callable[[str], bool]:
    """Predicate over raw display dates: True when the normalized date is in [first, last]."""

    def in_range(display_date: str) -> bool:
        iso = normalize_date(display_date)
        return iso is not None and first <= iso <= last

    return in_range


def latest_storage_date(
    rows: Iterable[RawEventRow],
    normalize_date: Callable[[str], Optional[str]] = normalize_display_date,
) -> Optional[str]:
    """Most recent storage date that has any sleep rows."""
    latest: Optional[str] = None
    for r in rows:
        if canonical_metric(r.metric_kind) not in (SLEEP_SESSION, SLEEP_STAGE):
            continue
        iso = normalize_date(r.display_date)
        if iso is not None and (latest is None or iso > latest):
            latest = iso
    return latest


def day_range(start: str, end: str) -> List[str]:
    """Every ISO date from start to end, inclusive."""
    out: List[str] = []
    d = start
    while d <= end:
        out.append(d)
        d = shift_iso_date(d, 1)
    return out
