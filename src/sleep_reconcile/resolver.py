"""
resolver.py

What this file does:
  - Picks the canonical session for each cluster of overlapping sessions.
  - Turns one storage day's records into ResolvedIntervals, using granular
    stage data when the day has any (no heuristic needed then).

Nested clusters (one session spans the others):
  Walk from the innermost (shortest) session outward. Each step scores the
  exclusive leading gap [outer.start, inner.start); an asleep-looking gap
  (score < 3) promotes the outer session, the first awake-looking gap stops
  the walk. Larger sessions past that point are discarded.

Sequential clusters (partial overlaps):
  The session with the most asleep minutes wins.

This file does NOT:
  - Clip to calendar days
  - Parse rows
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from .awake import awake_score, is_awake
from .clusters import ClusterShape, cluster_sessions, cluster_shape
from .records import (
    STAGE_AWAKE,
    STAGE_CORE,
    STAGE_DEEP,
    STAGE_REM,
    HeartRateSample,
    SleepSessionRecord,
    SleepStageInterval,
    StepSample,
)
from .time_utils import minutes_between


@dataclass(frozen=True)
class ResolvedInterval:
    """
    A stretch of time with the minutes it contributes per bucket.

    Buckets describe the whole [start, end) range; the day aggregator clips
    them proportionally. origin_* describe what the interval came from, for
    timeline annotations.
    """

    start: datetime
    end: datetime
    total_min: float
    deep_min: float
    rem_min: float
    core_min: float
    awake_min: float
    asleep: bool
    storage_date: str
    granular: bool = False
    origin_start: datetime | None = None
    origin_end: datetime | None = None
    origin_full_duration_min: float = 0.0

    @property
    def span_min(self) -> float:
        return minutes_between(self.start, self.end)


def resolve_cluster(
    cluster: Sequence[SleepSessionRecord],
    hr_samples: Sequence[HeartRateSample],
    step_samples: Sequence[StepSample],
) -> SleepSessionRecord:
    """
    Canonical session of one cluster.

    cluster must be non-empty (cluster_sessions never yields an empty one);
    an empty cluster is a caller bug and raises ValueError.
    """
    if not cluster:
        raise ValueError("Cannot resolve an empty cluster.")
    if len(cluster) == 1:
        return cluster[0]

    if cluster_shape(list(cluster)) is ClusterShape.SEQUENTIAL:
        return _resolve_sequential(cluster)
    return _resolve_nested(cluster, hr_samples, step_samples)


def _resolve_sequential(cluster: Sequence[SleepSessionRecord]) -> SleepSessionRecord:
    ordered = sorted(cluster, key=lambda s: s.start)
    best = ordered[0]
    for s in ordered[1:]:
        if s.total_asleep_min > best.total_asleep_min:
            best = s
    return best


def _resolve_nested(
    cluster: Sequence[SleepSessionRecord],
    hr_samples: Sequence[HeartRateSample],
    step_samples: Sequence[StepSample],
) -> SleepSessionRecord:
    # longest span first; the last one is the innermost candidate
    by_span = sorted(cluster, key=lambda s: s.end - s.start, reverse=True)

    best = by_span[-1]
    for i in range(len(by_span) - 2, -1, -1):
        outer = by_span[i]
        inner = by_span[i + 1]
        if outer.start >= inner.start:
            # no exclusive leading gap to validate
            continue

        score = awake_score(outer.start, inner.start, hr_samples, step_samples)
        if is_awake(score):
            break
        best = outer
    return best


def resolve_sessions(
    sessions: Sequence[SleepSessionRecord],
    hr_samples: Sequence[HeartRateSample],
    step_samples: Sequence[StepSample],
) -> List[SleepSessionRecord]:
    """One canonical session per cluster, in start order."""
    return [resolve_cluster(c, hr_samples, step_samples) for c in cluster_sessions(sessions)]


def session_interval(session: SleepSessionRecord) -> ResolvedInterval:
    return ResolvedInterval(
        start=session.start,
        end=session.end,
        total_min=session.total_asleep_min,
        deep_min=session.deep_min,
        rem_min=session.rem_min,
        core_min=session.core_min,
        awake_min=session.awake_min,
        asleep=True,
        storage_date=session.storage_date,
        origin_start=session.start,
        origin_end=session.end,
        origin_full_duration_min=session.full_duration_min,
    )


def stage_interval(stage: SleepStageInterval) -> ResolvedInterval:
    d = stage.duration_min
    return ResolvedInterval(
        start=stage.start,
        end=stage.end,
        total_min=d if stage.is_asleep else 0.0,
        deep_min=d if stage.stage == STAGE_DEEP else 0.0,
        rem_min=d if stage.stage == STAGE_REM else 0.0,
        core_min=d if stage.stage == STAGE_CORE else 0.0,
        awake_min=d if stage.stage == STAGE_AWAKE else 0.0,
        asleep=stage.is_asleep,
        storage_date=stage.storage_date,
        granular=True,
        origin_start=stage.start,
        origin_end=stage.end,
        origin_full_duration_min=d,
    )


def resolve_day(
    sessions: Sequence[SleepSessionRecord],
    stages: Sequence[SleepStageInterval],
    hr_samples: Sequence[HeartRateSample],
    step_samples: Sequence[StepSample],
    granular: Optional[bool] = None,
) -> List[ResolvedInterval]:
    """
    Resolve one storage day. Granular stages, when present, replace the sessions entirely.

    granular overrides the "any stages" test: a day whose stage rows were all
    deduplicated into an earlier date is still granular and yields nothing here.
    """
    if granular is None:
        granular = bool(stages)
    if granular:
        out = [stage_interval(s) for s in stages if s.is_asleep or s.stage == STAGE_AWAKE]
        out.sort(key=lambda r: r.start)
        return out
    return [session_interval(s) for s in resolve_sessions(sessions, hr_samples, step_samples)]
