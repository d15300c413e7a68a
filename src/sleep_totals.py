#!/usr/bin/env python3
"""
sleep_totals.py

Entry-point script for reconciled sleep totals straight from the event store.

What it does:
  1) Pulls raw health rows (heart rate, steps, sleep sessions, sleep stages)
     from InfluxDB for the requested storage dates (+ neighbouring days)
  2) Either:
       - expands a single day via --day YYYY-MM-DD (minute timeline + blocks), OR
       - rolls up a range via --start/--end (default: the 7 days ending yesterday)
  3) Prints plain text, or JSON with --json

Influx env vars (see sleep_reconcile/config.py):
  - INFLUXDB_HOST, INFLUXDB_PORT, INFLUXDB_DATABASE
  - INFLUXDB_USERNAME, INFLUXDB_PASSWORD, INFLUXDB_SSL
  - HEALTH_MEASUREMENT
Day boundaries use LOCAL_TIMEZONE (or --tz).
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date, datetime, timedelta
from typing import Any, Dict, List

from sleep_reconcile.config import resolve_local_timezone
from sleep_reconcile.heart_rate import hr_awake_asleep_by_date
from sleep_reconcile.influx_fetch import connect_influx, fetch_event_rows
from sleep_reconcile.report_text import build_timeline_text, build_totals_text
from sleep_reconcile.selectors import (
    day_range,
    is_iso_date,
    range_window,
    single_day_window,
    storage_date_predicate,
)
from sleep_reconcile.views import DayTimeline, expand_day, totals_for_range


def log(msg: str) -> None:
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print(f"[sleep_totals {ts}] {msg}", file=sys.stderr, flush=True)


def timeline_to_json(timeline: DayTimeline) -> Dict[str, Any]:
    return {
        "date": timeline.date,
        "minutes": timeline.minutes,
        "blocks": [
            {
                "startMinute": b.start_minute,
                "endMinute": b.end_minute,
                "sessionStart": b.session_start.isoformat(),
                "sessionEnd": b.session_end.isoformat(),
                "fullDurationMin": round(b.full_duration_min),
                "spillover": b.spillover,
            }
            for b in timeline.blocks
        ],
        "totals": timeline.totals.to_dict() if timeline.totals else None,
        "dropped": timeline.dropped,
    }


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconciled sleep totals from the health event store.")
    parser.add_argument("--day", type=str, default=None, help="Expand a single day (YYYY-MM-DD).")
    parser.add_argument("--start", type=str, default=None, help="Range start (YYYY-MM-DD).")
    parser.add_argument("--end", type=str, default=None, help="Range end (YYYY-MM-DD).")
    parser.add_argument("--tz", type=str, default=None, help="IANA timezone for day boundaries.")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text.")
    return parser.parse_args(argv)


def resolve_range(args: argparse.Namespace, today: date) -> tuple[str, str]:
    end = args.end or (today - timedelta(days=1)).isoformat()
    if not is_iso_date(end):
        raise SystemExit(f"Invalid --end '{end}'. Use YYYY-MM-DD.")
    start = args.start or (date.fromisoformat(end) - timedelta(days=6)).isoformat()
    if not is_iso_date(start):
        raise SystemExit(f"Invalid --start '{start}'. Use YYYY-MM-DD.")
    if start > end:
        raise SystemExit("--start must be <= --end")
    return start, end


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    tz_name, tz = resolve_local_timezone(args.tz)

    client = connect_influx()

    if args.day is not None:
        if not is_iso_date(args.day):
            raise SystemExit(f"Invalid --day '{args.day}'. Use YYYY-MM-DD.")
        first, last = single_day_window(args.day)
        rows = fetch_event_rows(client, first, last)
        log(f"Fetched {len(rows)} rows for {args.day} ({tz_name}).")

        timeline = expand_day(rows, args.day, tz=tz)
        print(json.dumps(timeline_to_json(timeline)) if args.json else build_timeline_text(timeline))
        return 0

    start, end = resolve_range(args, datetime.now(tz).date())
    first, last = range_window(start, end)
    rows = fetch_event_rows(client, first, last)
    log(f"Fetched {len(rows)} rows for {start}..{end} ({tz_name}).")

    totals = totals_for_range(rows, start, end, tz=tz)
    hr = hr_awake_asleep_by_date(rows, in_range=storage_date_predicate(first, last), dates=day_range(start, end))

    if args.json:
        days = [
            {
                "date": d,
                "sleep": totals[d].to_dict() if d in totals else None,
                **(hr.get(d) or {"avgHrAwake": None, "avgHrAsleep": None}),
            }
            for d in sorted(set(totals) | set(hr))
        ]
        print(json.dumps({"startDate": start, "endDate": end, "days": days, "count": len(days)}))
    else:
        print(build_totals_text(totals, hr))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
