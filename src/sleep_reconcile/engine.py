"""
engine.py

What this file does:
  - Runs the parser and resolver over one row snapshot and returns every
    resolved interval, each tagged with its storage date.
  - Provides the batch "validated sleep by date" entry point used by the
    range views and the CLIs.

Each storage date is resolved on its own: its sessions are clustered
together (or replaced by its granular stages; a date that had any stage row
stays granular even when deduplication moved all of them to an earlier
date). Heart-rate and step evidence
is taken from the whole snapshot, since the awake validator filters by time
anyway and a cross-midnight gap's samples are often stored under the
previous date.

This file does NOT:
  - Query databases
  - Format anything
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from typing import Callable, Dict, Iterable, List, Optional

from .daily import DayTotals, aggregate
from .records import ParsedRows, RawEventRow, parse_rows
from .resolver import ResolvedInterval, resolve_day
from .time_utils import normalize_display_date


@dataclass
class Reconciliation:
    intervals: List[ResolvedInterval] = field(default_factory=list)
    parsed: ParsedRows = field(default_factory=ParsedRows)

    @property
    def dropped(self) -> Dict[str, int]:
        return self.parsed.dropped


def reconcile(
    rows: Iterable[RawEventRow],
    in_range: Optional[Callable[[str], bool]] = None,
    normalize_date: Callable[[str], Optional[str]] = normalize_display_date,
) -> Reconciliation:
    parsed = parse_rows(rows, in_range=in_range, normalize_date=normalize_date)

    hr = sorted(parsed.heart_rate, key=lambda s: s.instant)
    steps = sorted(parsed.steps, key=lambda s: s.instant)

    intervals: List[ResolvedInterval] = []
    for storage_date in parsed.storage_dates:
        intervals.extend(
            resolve_day(
                parsed.sessions.get(storage_date, []),
                parsed.stages.get(storage_date, []),
                hr,
                steps,
                granular=parsed.is_granular(storage_date),
            )
        )
    intervals.sort(key=lambda r: (r.start, r.end))
    return Reconciliation(intervals=intervals, parsed=parsed)


def validated_sleep_by_date(
    rows: Iterable[RawEventRow],
    in_range: Optional[Callable[[str], bool]] = None,
    normalize_date: Callable[[str], Optional[str]] = normalize_display_date,
    tz: tzinfo = timezone.utc,
    dates: Optional[Iterable[str]] = None,
) -> Dict[str, DayTotals]:
    """{iso_date: DayTotals} for every day that received sleep minutes."""
    rec = reconcile(rows, in_range=in_range, normalize_date=normalize_date)
    return aggregate(rec.intervals, tz=tz, dates=dates)
