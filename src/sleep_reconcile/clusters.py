"""
clusters.py

What this file does:
  - Groups aggregate sleep sessions into clusters of overlapping time ranges.
  - Classifies a cluster as NESTED (one session spans the rest) or SEQUENTIAL.

Overlap is strict: a session joins the running cluster only if it starts
before the cluster's current end. Back-to-back sessions (B.start == A.end)
stay in separate clusters, so two naps are never merged.

This file does NOT:
  - Look at heart-rate or step evidence
  - Pick a canonical session
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List

from .records import SleepSessionRecord


class ClusterShape(Enum):
    NESTED = "nested"
    SEQUENTIAL = "sequential"


def cluster_sessions(sessions: Iterable[SleepSessionRecord]) -> List[List[SleepSessionRecord]]:
    ordered = sorted(sessions, key=lambda s: s.start)
    if not ordered:
        return []

    clusters: List[List[SleepSessionRecord]] = []
    current = [ordered[0]]
    cluster_end = ordered[0].end

    for s in ordered[1:]:
        if s.start < cluster_end:
            current.append(s)
            cluster_end = max(cluster_end, s.end)
        else:
            clusters.append(current)
            current = [s]
            cluster_end = s.end
    clusters.append(current)
    return clusters


def cluster_shape(cluster: List[SleepSessionRecord]) -> ClusterShape:
    """NESTED iff the earliest-starting session ends no earlier than the latest-starting one."""
    if len(cluster) < 2:
        return ClusterShape.SEQUENTIAL
    # equal starts: the longer session counts as the earlier one
    ordered = sorted(cluster, key=lambda s: (s.start, s.start - s.end))
    if ordered[0].end >= ordered[-1].end:
        return ClusterShape.NESTED
    return ClusterShape.SEQUENTIAL
