"""
report_text.py

Deterministic plain-text rendering of reconciled sleep.

Public API:
    format_minutes(minutes) -> str           "7h 30m", "45m", "8h", "--"
    format_clock(minute_of_day) -> str       "11:30 PM"
    build_totals_text(totals_by_date, hr_by_date=None) -> str
    build_timeline_text(timeline) -> str

Formatting rules:
- Durations are whole minutes shown as hours+minutes.
- A day without sleep data still gets a line when it is listed in the input.
- Spillover blocks are marked; their minutes are not part of the day's total.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from .daily import DayTotals
from .views import DayTimeline


def format_minutes(minutes: Optional[float]) -> str:
    if minutes is None:
        return "--"
    m_total = int(round(minutes))
    h, m = divmod(m_total, 60)
    if h == 0:
        return f"{m}m"
    if m == 0:
        return f"{h}h"
    return f"{h}h {m}m"


def format_clock(minute_of_day: int) -> str:
    h, m = divmod(int(minute_of_day) % 1440, 60)
    period = "PM" if h >= 12 else "AM"
    h12 = 12 if h == 0 else h - 12 if h > 12 else h
    return f"{h12}:{m:02d} {period}"


def totals_line(t: DayTotals) -> str:
    return (
        f"{t.date}: slept {format_minutes(t.total_min)} "
        f"(deep {format_minutes(t.deep_min)}, REM {format_minutes(t.rem_min)}, "
        f"core {format_minutes(t.core_min)}, awake {format_minutes(t.awake_min)})"
    )


def build_totals_text(
    totals_by_date: Mapping[str, DayTotals],
    hr_by_date: Optional[Mapping[str, Mapping[str, Optional[int]]]] = None,
) -> str:
    """One line per date, oldest first."""
    if not totals_by_date:
        return "No sleep data for this range."

    lines: List[str] = []
    for day in sorted(totals_by_date):
        line = totals_line(totals_by_date[day])
        hr = (hr_by_date or {}).get(day)
        if hr:
            awake = hr.get("avgHrAwake")
            asleep = hr.get("avgHrAsleep")
            line += f"; HR awake {awake if awake is not None else '--'}, asleep {asleep if asleep is not None else '--'}"
        lines.append(line)
    return "\n".join(lines)


def build_timeline_text(timeline: DayTimeline) -> str:
    lines: List[str] = []
    totals = timeline.totals or DayTotals(date=timeline.date)

    if not timeline.blocks and totals == DayTotals(date=timeline.date):
        lines.append(f"{timeline.date}: no data for this day.")
    else:
        lines.append(totals_line(totals))
        for b in timeline.blocks:
            note = " [spillover, counted on the next day]" if b.spillover else ""
            lines.append(
                f"  {format_clock(b.start_minute)} - {format_clock(b.end_minute)} "
                f"({format_minutes(b.minutes)} on this day; session "
                f"{b.session_start.isoformat()} -> {b.session_end.isoformat()}, "
                f"{format_minutes(b.full_duration_min)} incl. awake){note}"
            )

    dropped: Dict[str, int] = {k: v for k, v in timeline.dropped.items() if k != "out_of_range"}
    if dropped:
        parts = ", ".join(f"{v} {k}" for k, v in sorted(dropped.items()))
        lines.append(f"  (skipped rows: {parts})")
    return "\n".join(lines)
