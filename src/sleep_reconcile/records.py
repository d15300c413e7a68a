"""
records.py

What this file does:
  - Defines the typed records the engine works on (sessions, stage intervals,
    heart-rate and step samples) and the raw event row they come from.
  - Parses raw rows into those records. Every parser returns None for a row it
    cannot use; nothing here raises on bad data.
  - Deduplicates granular stage intervals by (start, end, stage).

Row layout (as written by the ingestion webhook):
  [timestamp, date, hour, metric, value, min, max, source, rawData]

Payloads (rawData JSON):
  sleep_session: {"sleepStart", "sleepEnd", "totalSleep", "asleep", "deep",
                  "rem", "core", "awake"}          (durations in HOURS)
  sleep_stage:   {"startDate", "endDate", "stage", "durationMins"}
  heart_rate:    {"date", "Avg" | "avg", ...}
  step_count:    {"date", "qty"}

This file does NOT:
  - Query databases
  - Resolve overlapping sessions
"""

from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .time_utils import minutes_between, normalize_display_date, try_parse_time_utc

HEART_RATE = "heart_rate"
STEP_COUNT = "step_count"
SLEEP_SESSION = "sleep_session"
SLEEP_STAGE = "sleep_stage"

# the sheet store names aggregate sessions "sleep_analysis"
METRIC_ALIASES = {"sleep_analysis": SLEEP_SESSION}

STAGE_CORE = "core"
STAGE_DEEP = "deep"
STAGE_REM = "rem"
STAGE_AWAKE = "awake"
STAGE_IN_BED = "inBed"

SLEEP_STAGES = frozenset({STAGE_CORE, STAGE_DEEP, STAGE_REM})

STAGE_ALIASES = {
    "core": STAGE_CORE,
    "asleepcore": STAGE_CORE,
    "asleep": STAGE_CORE,
    "asleepunspecified": STAGE_CORE,
    "deep": STAGE_DEEP,
    "asleepdeep": STAGE_DEEP,
    "rem": STAGE_REM,
    "asleeprem": STAGE_REM,
    "awake": STAGE_AWAKE,
    "inbed": STAGE_IN_BED,
    "in_bed": STAGE_IN_BED,
}

# drop reasons reported in ParsedRows.dropped
MALFORMED = "malformed"
DUPLICATE = "duplicate"
OUT_OF_RANGE = "out_of_range"


@dataclass(frozen=True)
class RawEventRow:
    display_timestamp: str
    display_date: str
    metric_kind: str
    numeric_value: Optional[float]
    raw_payload: Any = None

    @classmethod
    def from_sheet_row(cls, row: Sequence[Any]) -> "RawEventRow":
        """Build from the 9-column store layout; short rows are padded."""
        cells = list(row) + [""] * (9 - len(row))
        return cls(
            display_timestamp=str(cells[0] or ""),
            display_date=str(cells[1] or ""),
            metric_kind=canonical_metric(cells[3]),
            numeric_value=_to_float(cells[4]),
            raw_payload=cells[8] or None,
        )

    @classmethod
    def from_point(cls, point: Mapping[str, Any]) -> "RawEventRow":
        """Build from an InfluxDB point or a JSONL object."""
        return cls(
            display_timestamp=str(point.get("timestamp") or point.get("time") or ""),
            display_date=str(point.get("date") or ""),
            metric_kind=canonical_metric(point.get("metric")),
            numeric_value=_to_float(point.get("value")),
            raw_payload=point.get("rawData"),
        )


@dataclass(frozen=True)
class SleepSessionRecord:
    start: datetime
    end: datetime
    total_asleep_min: float
    deep_min: float = 0.0
    rem_min: float = 0.0
    core_min: float = 0.0
    awake_min: float = 0.0
    storage_date: str = ""

    @property
    def full_duration_min(self) -> float:
        return self.total_asleep_min + self.awake_min

    @property
    def span_min(self) -> float:
        return minutes_between(self.start, self.end)


@dataclass(frozen=True)
class SleepStageInterval:
    start: datetime
    end: datetime
    stage: str
    duration_min: float
    storage_date: str = ""

    @property
    def is_asleep(self) -> bool:
        return self.stage in SLEEP_STAGES

    @property
    def dedupe_key(self) -> Tuple[datetime, datetime, str]:
        return (self.start, self.end, self.stage)


@dataclass(frozen=True)
class HeartRateSample:
    instant: datetime
    value: float
    storage_date: str = ""


@dataclass(frozen=True)
class StepSample:
    instant: datetime
    value: float
    storage_date: str = ""


@dataclass
class ParsedRows:
    sessions: Dict[str, List[SleepSessionRecord]] = field(default_factory=dict)
    stages: Dict[str, List[SleepStageInterval]] = field(default_factory=dict)
    heart_rate: List[HeartRateSample] = field(default_factory=list)
    steps: List[StepSample] = field(default_factory=list)
    dropped: Dict[str, int] = field(default_factory=dict)
    # every date that had a parsed stage row, including ones whose stages
    # were all dropped as duplicates of an earlier date
    stage_dates: Set[str] = field(default_factory=set)

    @property
    def storage_dates(self) -> List[str]:
        return sorted(set(self.sessions) | set(self.stages) | self.stage_dates)

    def is_granular(self, storage_date: str) -> bool:
        return storage_date in self.stage_dates


def canonical_metric(name: Any) -> str:
    s = str(name or "").strip()
    return METRIC_ALIASES.get(s, s)


def canonical_stage(name: Any) -> Optional[str]:
    if not isinstance(name, str):
        return None
    return STAGE_ALIASES.get(name.strip().lower())


def _to_float(v: Any) -> Optional[float]:
    if v is None or v == "" or isinstance(v, bool):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _hours(payload: Mapping[str, Any], key: str) -> float:
    return _to_float(payload.get(key)) or 0.0


def decode_payload(raw: Any) -> Optional[Dict[str, Any]]:
    """rawData is usually a JSON string; already-decoded mappings pass through."""
    if isinstance(raw, Mapping):
        return dict(raw)
    if not isinstance(raw, (str, bytes)) or not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def parse_sleep_session(raw: Any, storage_date: str = "") -> Optional[SleepSessionRecord]:
    payload = decode_payload(raw)
    if payload is None:
        return None

    start = try_parse_time_utc(payload.get("sleepStart"))
    end = try_parse_time_utc(payload.get("sleepEnd"))
    if start is None or end is None or start >= end:
        return None

    total_h = _hours(payload, "totalSleep")
    asleep_h = _hours(payload, "asleep")
    deep_h = _hours(payload, "deep")
    rem_h = _hours(payload, "rem")
    core_h = _hours(payload, "core")

    if total_h > 0:
        total_min = total_h * 60
    elif asleep_h > 0:
        total_min = asleep_h * 60
    else:
        total_min = (deep_h + rem_h + core_h) * 60

    return SleepSessionRecord(
        start=start,
        end=end,
        total_asleep_min=total_min,
        deep_min=deep_h * 60,
        rem_min=rem_h * 60,
        core_min=core_h * 60,
        awake_min=_hours(payload, "awake") * 60,
        storage_date=storage_date,
    )


def parse_sleep_stage(raw: Any, storage_date: str = "") -> Optional[SleepStageInterval]:
    payload = decode_payload(raw)
    if payload is None:
        return None

    start = try_parse_time_utc(payload.get("startDate"))
    end = try_parse_time_utc(payload.get("endDate"))
    stage = canonical_stage(payload.get("stage"))
    if start is None or end is None or stage is None or start >= end:
        return None

    duration = _to_float(payload.get("durationMins"))
    if duration is None or duration < 0:
        duration = minutes_between(start, end)

    return SleepStageInterval(start=start, end=end, stage=stage, duration_min=duration, storage_date=storage_date)


def _sample_instant_and_value(row: RawEventRow, value_keys: Sequence[str]) -> Optional[Tuple[datetime, float]]:
    payload = decode_payload(row.raw_payload) or {}

    instant = try_parse_time_utc(payload.get("date")) or try_parse_time_utc(row.display_timestamp)
    if instant is None:
        return None

    value: Optional[float] = None
    for key in value_keys:
        value = _to_float(payload.get(key))
        if value is not None:
            break
    if value is None:
        value = row.numeric_value
    if value is None:
        return None
    return instant, value


def parse_heart_rate(row: RawEventRow, storage_date: str = "") -> Optional[HeartRateSample]:
    parsed = _sample_instant_and_value(row, ("Avg", "avg"))
    if parsed is None:
        return None
    return HeartRateSample(instant=parsed[0], value=parsed[1], storage_date=storage_date)


def parse_step(row: RawEventRow, storage_date: str = "") -> Optional[StepSample]:
    parsed = _sample_instant_and_value(row, ("qty",))
    if parsed is None:
        return None
    return StepSample(instant=parsed[0], value=parsed[1], storage_date=storage_date)


def dedupe_stages(stages: Iterable[SleepStageInterval]) -> Tuple[List[SleepStageInterval], int]:
    """Keep the first interval per (start, end, stage); returns (kept, duplicates)."""
    seen: Set[Tuple[datetime, datetime, str]] = set()
    kept: List[SleepStageInterval] = []
    dupes = 0
    for s in stages:
        if s.dedupe_key in seen:
            dupes += 1
            continue
        seen.add(s.dedupe_key)
        kept.append(s)
    return kept, dupes


def parse_rows(
    rows: Iterable[RawEventRow],
    in_range: Optional[Callable[[str], bool]] = None,
    normalize_date: Callable[[str], Optional[str]] = normalize_display_date,
) -> ParsedRows:
    """
    Parse a row snapshot into typed records grouped by storage date.

    in_range receives the raw display date (not the normalized one), matching
    how callers build their predicates from the store's own date column.
    """
    out = ParsedRows()
    dropped: Dict[str, int] = defaultdict(int)
    sessions: Dict[str, List[SleepSessionRecord]] = defaultdict(list)
    stages: Dict[str, List[SleepStageInterval]] = defaultdict(list)

    for row in rows:
        if in_range is not None and not in_range(row.display_date):
            dropped[OUT_OF_RANGE] += 1
            continue
        storage_date = normalize_date(row.display_date)
        if not storage_date:
            dropped[MALFORMED] += 1
            continue

        kind = canonical_metric(row.metric_kind)
        if kind == SLEEP_SESSION:
            session = parse_sleep_session(row.raw_payload, storage_date)
            if session is None:
                dropped[MALFORMED] += 1
            else:
                sessions[storage_date].append(session)
        elif kind == SLEEP_STAGE:
            stage = parse_sleep_stage(row.raw_payload, storage_date)
            if stage is None:
                dropped[MALFORMED] += 1
            else:
                stages[storage_date].append(stage)
        elif kind == HEART_RATE:
            hr = parse_heart_rate(row, storage_date)
            if hr is None:
                dropped[MALFORMED] += 1
            else:
                out.heart_rate.append(hr)
        elif kind == STEP_COUNT:
            step = parse_step(row, storage_date)
            if step is None:
                dropped[MALFORMED] += 1
            else:
                out.steps.append(step)
        # other metrics (hrv, resting hr, ...) are not evidence for sleep

    out.stage_dates = set(stages)

    # the same interval can be re-synced under a neighbouring date too;
    # the earliest storage date keeps it, the later date stays granular
    ordered = [s for d in sorted(stages) for s in stages[d]]
    kept, dupes = dedupe_stages(ordered)
    if dupes:
        dropped[DUPLICATE] += dupes
    for s in kept:
        out.stages.setdefault(s.storage_date, []).append(s)

    out.sessions = dict(sessions)
    out.dropped = dict(dropped)
    return out
