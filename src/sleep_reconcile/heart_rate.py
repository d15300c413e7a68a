"""
heart_rate.py

What this file does:
  - Splits each day's heart-rate samples into "asleep" and "awake" using the
    reconciled sleep intervals of the same snapshot, and averages both.

A sample is asleep when its instant falls inside any asleep resolved
interval ([start, end)). Samples are grouped by the date they are stored
under, like the daily sheet columns this replaces.

This file does NOT:
  - Score awake-likelihood (see awake.py)
"""

from __future__ import annotations

import bisect
from collections import defaultdict
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .daily import round_half_up
from .engine import reconcile
from .records import RawEventRow
from .resolver import ResolvedInterval
from .time_utils import normalize_display_date


def _merged_asleep_spans(intervals: Iterable[ResolvedInterval]) -> List[Tuple[datetime, datetime]]:
    spans = sorted((i.start, i.end) for i in intervals if i.asleep)
    merged: List[Tuple[datetime, datetime]] = []
    for s, e in spans:
        if merged and s <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], e))
        else:
            merged.append((s, e))
    return merged


def _is_during(instant: datetime, spans: List[Tuple[datetime, datetime]], starts: List[datetime]) -> bool:
    i = bisect.bisect_right(starts, instant) - 1
    return i >= 0 and spans[i][0] <= instant < spans[i][1]


def hr_awake_asleep_by_date(
    rows: Iterable[RawEventRow],
    in_range: Optional[Callable[[str], bool]] = None,
    normalize_date: Callable[[str], Optional[str]] = normalize_display_date,
    dates: Optional[Iterable[str]] = None,
) -> Dict[str, Dict[str, Optional[int]]]:
    """
    {iso_date: {"avgHrAwake": int|None, "avgHrAsleep": int|None}}

    in_range should cover the day before the first wanted date so sleep that
    started the previous evening is known; dates then trims the output.
    """
    wanted = set(dates) if dates is not None else None
    rec = reconcile(rows, in_range=in_range, normalize_date=normalize_date)
    spans = _merged_asleep_spans(rec.intervals)
    starts = [s for s, _ in spans]

    awake: Dict[str, List[float]] = defaultdict(list)
    asleep: Dict[str, List[float]] = defaultdict(list)
    for sample in rec.parsed.heart_rate:
        if wanted is not None and sample.storage_date not in wanted:
            continue
        if _is_during(sample.instant, spans, starts):
            asleep[sample.storage_date].append(sample.value)
        else:
            awake[sample.storage_date].append(sample.value)

    out: Dict[str, Dict[str, Optional[int]]] = {}
    for day in sorted(set(awake) | set(asleep)):
        a = awake.get(day, [])
        s = asleep.get(day, [])
        out[day] = {
            "avgHrAwake": round_half_up(sum(a) / len(a)) if a else None,
            "avgHrAsleep": round_half_up(sum(s) / len(s)) if s else None,
        }
    return out
