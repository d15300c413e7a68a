"""
views.py

What this file does:
  - Batch view: {iso_date: DayTotals} for a date range.
  - Expanded single-day view: a 1440-slot ASLEEP/BLANK minute array, the
    merged sleep blocks drawn on it, and the day's totals.

Both views run the same engine over the same snapshot and take their totals
from the same Day Aggregator output, so they always agree for a shared date.
The minute array is an occupancy mask (a canonical session is drawn across
its whole span, awake time included); it is not what the totals are counted
from.

This file does NOT:
  - Query databases
  - Render charts
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .daily import DayTotals, aggregate
from .engine import reconcile
from .records import RawEventRow
from .resolver import ResolvedInterval
from .selectors import range_window, single_day_window, storage_date_predicate
from .time_utils import day_window_utc, minutes_between, normalize_display_date

ASLEEP = "ASLEEP"
BLANK = "BLANK"
MINUTES_PER_DAY = 1440


@dataclass
class SleepBlock:
    start_minute: int
    end_minute: int
    session_start: datetime
    session_end: datetime
    full_duration_min: float
    spillover: bool = False

    @property
    def minutes(self) -> int:
        return self.end_minute - self.start_minute


@dataclass
class DayTimeline:
    date: str
    minutes: List[str] = field(default_factory=lambda: [BLANK] * MINUTES_PER_DAY)
    blocks: List[SleepBlock] = field(default_factory=list)
    totals: Optional[DayTotals] = None
    dropped: Dict[str, int] = field(default_factory=dict)

    @property
    def asleep_minutes(self) -> int:
        return sum(1 for m in self.minutes if m == ASLEEP)


def totals_for_range(
    rows: Iterable[RawEventRow],
    start: str,
    end: str,
    tz: tzinfo = timezone.utc,
    normalize_date: Callable[[str], Optional[str]] = normalize_display_date,
) -> Dict[str, DayTotals]:
    """Batch form: totals for every day in start..end that has sleep."""
    first, last = range_window(start, end)
    rec = reconcile(rows, storage_date_predicate(first, last, normalize_date), normalize_date)
    totals = aggregate(rec.intervals, tz=tz)
    return {d: t for d, t in totals.items() if start <= d <= end}


def _minute_offsets(start: datetime, end: datetime, day_start: datetime) -> Tuple[int, int]:
    lo = max(0, math.floor(minutes_between(day_start, start)))
    hi = min(MINUTES_PER_DAY, math.floor(minutes_between(day_start, end)))
    return lo, hi


@dataclass
class _PendingBlock:
    start_minute: int
    end_minute: int
    spillover: bool
    origins: Dict[Tuple[datetime, datetime], float]

    def to_block(self) -> SleepBlock:
        starts = [k[0] for k in self.origins]
        ends = [k[1] for k in self.origins]
        return SleepBlock(
            start_minute=self.start_minute,
            end_minute=self.end_minute,
            session_start=min(starts),
            session_end=max(ends),
            full_duration_min=sum(self.origins.values()),
            spillover=self.spillover,
        )


def _merge_blocks(pending: List[_PendingBlock]) -> List[SleepBlock]:
    pending.sort(key=lambda b: (b.start_minute, b.end_minute))
    merged: List[_PendingBlock] = []
    for b in pending:
        if merged and b.spillover == merged[-1].spillover and b.start_minute <= merged[-1].end_minute:
            cur = merged[-1]
            cur.end_minute = max(cur.end_minute, b.end_minute)
            cur.origins.update(b.origins)
        else:
            merged.append(b)
    return [b.to_block() for b in merged]


def draw_intervals(
    timeline: DayTimeline,
    intervals: Iterable[ResolvedInterval],
    tz: tzinfo = timezone.utc,
) -> None:
    """Mark asleep intervals on the timeline's minute array and collect its blocks."""
    day_start, day_end = day_window_utc(timeline.date, tz)
    pending: List[_PendingBlock] = []

    for interval in intervals:
        if not interval.asleep:
            continue
        if interval.end <= day_start or interval.start >= day_end:
            continue
        lo, hi = _minute_offsets(interval.start, interval.end, day_start)
        if hi <= lo:
            continue

        for m in range(lo, hi):
            timeline.minutes[m] = ASLEEP

        origin = (interval.origin_start or interval.start, interval.origin_end or interval.end)
        pending.append(
            _PendingBlock(
                start_minute=lo,
                end_minute=hi,
                spillover=bool(interval.storage_date) and interval.storage_date > timeline.date,
                origins={origin: interval.origin_full_duration_min},
            )
        )

    timeline.blocks = _merge_blocks(pending)


def expand_day(
    rows: Iterable[RawEventRow],
    iso_date: str,
    tz: tzinfo = timezone.utc,
    normalize_date: Callable[[str], Optional[str]] = normalize_display_date,
) -> DayTimeline:
    """Expanded single-day form for iso_date."""
    first, last = single_day_window(iso_date)
    rec = reconcile(rows, storage_date_predicate(first, last, normalize_date), normalize_date)

    timeline = DayTimeline(date=iso_date, dropped=dict(rec.dropped))
    draw_intervals(timeline, rec.intervals, tz)
    timeline.totals = aggregate(rec.intervals, tz=tz).get(iso_date, DayTotals(date=iso_date))
    return timeline
