"""
awake.py

What this file does:
  - Scores a time range for "awake-likelihood" from heart-rate and step samples.

Score (0..7, lower = more likely asleep, >= 3 = awake):
  2 if avg HR > 70
  1 if max HR > 85
  2 if significant step samples (> 2 steps) per hour > 1
  2 if steps per hour > 20

Ranges longer than 30 minutes with fewer than 2 HR samples per hour are too
sparse to judge and get the fixed INCONCLUSIVE_SCORE (counts as awake).

This file does NOT:
  - Decide which session wins a cluster
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from .records import HeartRateSample, StepSample
from .time_utils import minutes_between

AWAKE_THRESHOLD = 3
INCONCLUSIVE_SCORE = 3

SPARSE_MIN_SPAN_MIN = 30
MIN_HR_SAMPLES_PER_HOUR = 2

AVG_HR_AWAKE_BPM = 70
MAX_HR_AWAKE_BPM = 85
SIGNIFICANT_STEP_QTY = 2
SIGNIFICANT_STEPS_PER_HOUR = 1
STEPS_PER_HOUR_AWAKE = 20


@dataclass(frozen=True)
class AwakeEvidence:
    span_min: float
    hr_count: int
    avg_hr: Optional[float]
    max_hr: Optional[float]
    total_steps: float
    significant_steps: int
    steps_per_hour: float
    significant_steps_per_hour: float

    @property
    def sparse(self) -> bool:
        return (
            self.span_min > SPARSE_MIN_SPAN_MIN
            and self.hr_count < MIN_HR_SAMPLES_PER_HOUR * (self.span_min / 60.0)
        )


def gather_evidence(
    start: datetime,
    end: datetime,
    hr_samples: Sequence[HeartRateSample],
    step_samples: Sequence[StepSample],
) -> AwakeEvidence:
    hrs = [h.value for h in hr_samples if start <= h.instant < end]
    steps = [s.value for s in step_samples if start <= s.instant < end]
    span_min = minutes_between(start, end)

    total_steps = sum(steps)
    significant = sum(1 for q in steps if q > SIGNIFICANT_STEP_QTY)

    return AwakeEvidence(
        span_min=span_min,
        hr_count=len(hrs),
        avg_hr=sum(hrs) / len(hrs) if hrs else None,
        max_hr=max(hrs) if hrs else None,
        total_steps=total_steps,
        significant_steps=significant,
        steps_per_hour=(total_steps / span_min) * 60 if span_min > 0 else 0.0,
        significant_steps_per_hour=(significant / span_min) * 60 if span_min > 0 else 0.0,
    )


def score_evidence(ev: AwakeEvidence) -> int:
    if ev.sparse:
        return INCONCLUSIVE_SCORE

    score = 0
    if ev.avg_hr is not None and ev.avg_hr > AVG_HR_AWAKE_BPM:
        score += 2
    if ev.max_hr is not None and ev.max_hr > MAX_HR_AWAKE_BPM:
        score += 1
    if ev.significant_steps_per_hour > SIGNIFICANT_STEPS_PER_HOUR:
        score += 2
    if ev.steps_per_hour > STEPS_PER_HOUR_AWAKE:
        score += 2
    return score


def awake_score(
    start: datetime,
    end: datetime,
    hr_samples: Sequence[HeartRateSample],
    step_samples: Sequence[StepSample],
) -> int:
    """Awake score for [start, end); see module docstring."""
    return score_evidence(gather_evidence(start, end, hr_samples, step_samples))


def is_awake(score: int) -> bool:
    return score >= AWAKE_THRESHOLD
