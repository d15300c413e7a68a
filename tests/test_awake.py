"""
Awake-likelihood scoring.
Run with: python3 -m pytest tests/
"""

from factories import at, hr, steps

from sleep_reconcile.awake import (
    INCONCLUSIVE_SCORE,
    awake_score,
    gather_evidence,
    is_awake,
)

START = at("2026-01-27 22:00")
END = at("2026-01-27 23:00")


class TestAwakeScore:
    def test_quiet_hour_scores_zero(self):
        samples = [hr("2026-01-27 22:10", 50), hr("2026-01-27 22:40", 52)]
        assert awake_score(START, END, samples, []) == 0
        assert not is_awake(0)

    def test_active_hour_scores_maximum(self):
        samples = [hr("2026-01-27 22:10", 90), hr("2026-01-27 22:40", 95)]
        walking = [steps("2026-01-27 22:15", 30), steps("2026-01-27 22:45", 40)]
        assert awake_score(START, END, samples, walking) == 7

    def test_heart_rate_only(self):
        samples = [hr("2026-01-27 22:10", 75), hr("2026-01-27 22:40", 80)]
        assert awake_score(START, END, samples, []) == 2

    def test_sparse_range_is_inconclusive_regardless_of_steps(self):
        samples = [hr("2026-01-27 22:10", 50)]
        walking = [steps("2026-01-27 22:15", 500), steps("2026-01-27 22:30", 500)]
        assert awake_score(START, END, samples, walking) == INCONCLUSIVE_SCORE
        assert awake_score(START, END, samples, []) == INCONCLUSIVE_SCORE
        assert is_awake(INCONCLUSIVE_SCORE)

    def test_short_range_is_never_sparse(self):
        end = at("2026-01-27 22:30")
        assert awake_score(START, end, [], []) == 0

    def test_samples_outside_range_are_ignored(self):
        samples = [hr("2026-01-27 21:59", 120), hr("2026-01-27 23:00", 120),
                   hr("2026-01-27 22:00", 50), hr("2026-01-27 22:30", 50)]
        ev = gather_evidence(START, END, samples, [steps("2026-01-27 23:00", 100)])
        assert ev.hr_count == 2
        assert ev.max_hr == 50
        assert ev.total_steps == 0

    def test_small_step_samples_are_not_significant(self):
        walking = [steps("2026-01-27 22:15", 2), steps("2026-01-27 22:45", 1)]
        ev = gather_evidence(START, END, [], walking)
        assert ev.significant_steps == 0
        assert ev.steps_per_hour == 3

    def test_score_stays_in_range(self):
        for bpm in (40, 72, 90, 140):
            for qty in (0, 3, 50):
                samples = [hr("2026-01-27 22:05", bpm), hr("2026-01-27 22:35", bpm)]
                walking = [steps("2026-01-27 22:20", qty)]
                score = awake_score(START, END, samples, walking)
                assert isinstance(score, int)
                assert 0 <= score <= 7
