"""
daily.py

What this file does:
  - Clips resolved intervals to calendar days and sums per-stage minutes into
    one DayTotals per date.

Attribution:
  - An interval covering parts of several days is split by the fraction of
    its span that falls on each day.
  - An interval stored under date K only counts toward days >= K. A session
    stored under D+1 that starts late on D is still drawn on D's timeline
    (as a spillover block) but adds nothing to D's totals.
  - Minutes are summed as floats and rounded once per day and bucket.

This file does NOT:
  - Decide which sessions are canonical
  - Build the per-minute timeline
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .resolver import ResolvedInterval
from .time_utils import day_window_utc, local_date, minutes_between

BUCKETS = ("total", "deep", "rem", "core", "awake")


@dataclass(frozen=True)
class DayTotals:
    date: str
    total_min: int = 0
    deep_min: int = 0
    rem_min: int = 0
    core_min: int = 0
    awake_min: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalMin": self.total_min,
            "deepMin": self.deep_min,
            "remMin": self.rem_min,
            "coreMin": self.core_min,
            "awakeMin": self.awake_min,
        }


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def clip_minutes(start: datetime, end: datetime, lo: datetime, hi: datetime) -> float:
    s = max(start, lo)
    e = min(end, hi)
    if e <= s:
        return 0.0
    return minutes_between(s, e)


def iter_local_days(start: datetime, end: datetime, tz: tzinfo = timezone.utc) -> Iterator[str]:
    """Local dates touched by [start, end)."""
    first = date.fromisoformat(local_date(start, tz))
    last = date.fromisoformat(local_date(end - timedelta(microseconds=1), tz))
    d = first
    while d <= last:
        yield d.isoformat()
        d += timedelta(days=1)


def split_by_day(interval: ResolvedInterval, tz: tzinfo = timezone.utc) -> List[Tuple[str, float]]:
    """[(iso_date, fraction_of_span)] for each day the interval counts toward."""
    span = interval.span_min
    if span <= 0:
        return []

    out: List[Tuple[str, float]] = []
    for day in iter_local_days(interval.start, interval.end, tz):
        if interval.storage_date and day < interval.storage_date:
            # spillover: visible on the earlier day, counted on the storage day onward
            continue
        lo, hi = day_window_utc(day, tz)
        clipped = clip_minutes(interval.start, interval.end, lo, hi)
        if clipped > 0:
            out.append((day, clipped / span))
    return out


def aggregate(
    intervals: Iterable[ResolvedInterval],
    tz: tzinfo = timezone.utc,
    dates: Optional[Iterable[str]] = None,
) -> Dict[str, DayTotals]:
    """
    Sum resolved intervals into {iso_date: DayTotals}.

    dates, when given, restricts the output (the sums themselves do not
    depend on it).
    """
    wanted = set(dates) if dates is not None else None
    sums: Dict[str, Dict[str, float]] = defaultdict(lambda: dict.fromkeys(BUCKETS, 0.0))

    for interval in intervals:
        for day, frac in split_by_day(interval, tz):
            if wanted is not None and day not in wanted:
                continue
            acc = sums[day]
            acc["total"] += interval.total_min * frac
            acc["deep"] += interval.deep_min * frac
            acc["rem"] += interval.rem_min * frac
            acc["core"] += interval.core_min * frac
            acc["awake"] += interval.awake_min * frac

    out: Dict[str, DayTotals] = {}
    for day in sorted(sums):
        acc = sums[day]
        if not any(v > 0 for v in acc.values()):
            continue
        out[day] = DayTotals(
            date=day,
            total_min=round_half_up(acc["total"]),
            deep_min=round_half_up(acc["deep"]),
            rem_min=round_half_up(acc["rem"]),
            core_min=round_half_up(acc["core"]),
            awake_min=round_half_up(acc["awake"]),
        )
    return out
