#!/usr/bin/env python3
"""
demo.py

Loads a sample snapshot of raw health rows from:
  data/Demo_HealthHourly.jsonl

Then:
- picks the most recent storage date that has sleep rows
- prints that day's expanded timeline (blocks + totals)
- prints the reconciled totals and HR awake/asleep split for the week ending on it

Each JSONL line is one row: {"timestamp", "date", "metric", "value", "rawData"}.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List

from sleep_reconcile.config import demo_jsonl_path, resolve_local_timezone
from sleep_reconcile.heart_rate import hr_awake_asleep_by_date
from sleep_reconcile.records import RawEventRow
from sleep_reconcile.report_text import build_timeline_text, build_totals_text
from sleep_reconcile.selectors import day_range, latest_storage_date, range_window, storage_date_predicate
from sleep_reconcile.time_utils import shift_iso_date
from sleep_reconcile.views import expand_day, totals_for_range


def iter_jsonl(path: Path) -> Iterable[Dict]:
    with path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise RuntimeError(f"Invalid JSON on line {line_no} in {path}") from e


def load_rows(path: Path) -> List[RawEventRow]:
    return [RawEventRow.from_point(obj) for obj in iter_jsonl(path) if isinstance(obj, dict)]


def main() -> None:
    # override the sample file if desired:
    #   DEMO_HEALTH_JSONL=/app/data/Demo_HealthHourly.jsonl python demo.py
    data_path = demo_jsonl_path()

    if not data_path.exists():
        raise SystemExit(
            f"Could not find demo file: {data_path}\n"
            f"Tip: run from the repo root so data/Demo_HealthHourly.jsonl is found."
        )

    rows = load_rows(data_path)
    current = latest_storage_date(rows)
    if current is None:
        raise SystemExit(f"No sleep rows found in {data_path}")

    _, tz = resolve_local_timezone()

    print(build_timeline_text(expand_day(rows, current, tz=tz)))
    print()

    start = shift_iso_date(current, -6)
    first, last = range_window(start, current)
    totals = totals_for_range(rows, start, current, tz=tz)
    hr = hr_awake_asleep_by_date(rows, in_range=storage_date_predicate(first, last), dates=day_range(start, current))
    print(build_totals_text(totals, hr))


if __name__ == "__main__":
    main()
