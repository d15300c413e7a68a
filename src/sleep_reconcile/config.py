"""
config.py

What this file does:
  - Reads the project's env vars (optionally from a local .env) in one place.
  - Resolves the local timezone used for calendar-day boundaries.

Env vars:
  - INFLUXDB_HOST, INFLUXDB_PORT, INFLUXDB_DATABASE
  - INFLUXDB_USERNAME, INFLUXDB_PASSWORD, INFLUXDB_SSL
  - HEALTH_MEASUREMENT   measurement holding the raw event rows
  - LOCAL_TIMEZONE / TZ  IANA name for day boundaries (then /etc/timezone, then UTC)
  - DEMO_HEALTH_JSONL    snapshot file for demo.py
"""

from __future__ import annotations

import os
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()


INFLUXDB_HOST = os.getenv("INFLUXDB_HOST", "localhost")
INFLUXDB_PORT = int(os.getenv("INFLUXDB_PORT", "8086"))
INFLUXDB_DATABASE = os.getenv("INFLUXDB_DATABASE", "HealthExport")
INFLUXDB_USERNAME = os.getenv("INFLUXDB_USERNAME", "") or None
INFLUXDB_PASSWORD = os.getenv("INFLUXDB_PASSWORD", "") or None
INFLUXDB_SSL = os.getenv("INFLUXDB_SSL", "false").lower() in ("1", "true", "yes", "y")

HEALTH_MEASUREMENT = os.getenv("HEALTH_MEASUREMENT", "HealthHourly")

INFLUX_TIMEOUT_S = 30
INFLUX_RETRIES = 3

DEFAULT_DEMO_JSONL = Path("data") / "Demo_HealthHourly.jsonl"


def influx_client_settings() -> Dict[str, Any]:
    """Keyword arguments for influxdb.InfluxDBClient."""
    return {
        "host": INFLUXDB_HOST,
        "port": INFLUXDB_PORT,
        "username": INFLUXDB_USERNAME,
        "password": INFLUXDB_PASSWORD,
        "ssl": INFLUXDB_SSL,
        "verify_ssl": INFLUXDB_SSL,
        "timeout": INFLUX_TIMEOUT_S,
        "retries": INFLUX_RETRIES,
    }


def read_etc_timezone(path: Path = Path("/etc/timezone")) -> Optional[str]:
    if not path.exists():
        return None
    try:
        tz = path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return tz or None


def resolve_local_timezone(name: Optional[str] = None) -> Tuple[str, tzinfo]:
    """(tz_name, tzinfo); explicit name, then LOCAL_TIMEZONE, TZ, /etc/timezone, UTC."""
    tz_name = (
        (name or "").strip()
        or (os.getenv("LOCAL_TIMEZONE", "") or "").strip()
        or (os.getenv("TZ", "") or "").strip()
        or read_etc_timezone()
        or "UTC"
    )

    if tz_name.upper() == "UTC":
        return "UTC", timezone.utc

    try:
        return tz_name, ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return "UTC", timezone.utc


def demo_jsonl_path() -> Path:
    return Path(os.getenv("DEMO_HEALTH_JSONL", str(DEFAULT_DEMO_JSONL)))
