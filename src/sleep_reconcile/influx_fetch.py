"""
influx_fetch.py

What this file does:
  - Establishes an InfluxDB connection from the env vars in config.py
  - Fetches raw health event rows (heart rate, steps, sleep sessions, sleep
    stages) for a range of storage dates

Points are expected to carry the row as fields/tags:
  timestamp, date, metric, value, rawData

The time window is padded by a day on each side because a row's storage date
and its point time can differ across midnight; the engine filters by storage
date itself.

This file does NOT:
  - Parse payloads
  - Resolve sessions
  - Write anything
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from influxdb import InfluxDBClient

from . import config
from .records import RawEventRow


def connect_influx(database: Optional[str] = None) -> InfluxDBClient:
    """v1 client for the health event store, switched to database (default INFLUXDB_DATABASE)."""
    client = InfluxDBClient(**config.influx_client_settings())
    client.switch_database(database or config.INFLUXDB_DATABASE)
    return client


def _rfc3339(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def fetch_window_utc(first_date: str, last_date: str) -> tuple[datetime, datetime]:
    """[first_date - 1d, last_date + 2d) at UTC midnight."""
    first = date.fromisoformat(first_date) - timedelta(days=1)
    last = date.fromisoformat(last_date) + timedelta(days=2)
    return (
        datetime(first.year, first.month, first.day, tzinfo=timezone.utc),
        datetime(last.year, last.month, last.day, tzinfo=timezone.utc),
    )


def fetch_event_rows(
    client: InfluxDBClient,
    first_date: str,
    last_date: str,
    *,
    measurement: str = config.HEALTH_MEASUREMENT,
) -> List[RawEventRow]:
    """Fetch raw event rows whose storage dates may fall in [first_date, last_date]."""
    start_utc, end_utc = fetch_window_utc(first_date, last_date)
    q = (
        f'SELECT * FROM "{measurement}" '
        f"WHERE time >= '{_rfc3339(start_utc)}' AND time < '{_rfc3339(end_utc)}' ORDER BY time ASC"
    )
    result = client.query(q)
    return [RawEventRow.from_point(p) for p in result.get_points()]
