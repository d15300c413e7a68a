"""
Heart-rate awake/asleep split.
Run with: python3 -m pytest tests/
"""

from factories import hr_row, session_row

from sleep_reconcile.heart_rate import hr_awake_asleep_by_date
from sleep_reconcile.selectors import storage_date_predicate

ROWS = [
    session_row("2026-01-28", "2026-01-27 22:00", "2026-01-28 06:00", 7.5),
    hr_row("2026-01-27", "2026-01-27 12:00", 80),
    hr_row("2026-01-27", "2026-01-27 23:00", 55),
    hr_row("2026-01-28", "2026-01-28 03:00", 50),
    hr_row("2026-01-28", "2026-01-28 03:30", 51),
    hr_row("2026-01-28", "2026-01-28 09:00", 70),
]


class TestHrSplit:
    def test_split_by_storage_date(self):
        out = hr_awake_asleep_by_date(ROWS)
        assert out == {
            "2026-01-27": {"avgHrAwake": 80, "avgHrAsleep": 55},
            "2026-01-28": {"avgHrAwake": 70, "avgHrAsleep": 51},
        }

    def test_dates_trim_output_only(self):
        out = hr_awake_asleep_by_date(ROWS, dates=["2026-01-27"])
        assert out == {"2026-01-27": {"avgHrAwake": 80, "avgHrAsleep": 55}}

    def test_without_sleep_everything_is_awake(self):
        out = hr_awake_asleep_by_date(ROWS, in_range=storage_date_predicate("2026-01-27", "2026-01-27"))
        assert out == {"2026-01-27": {"avgHrAwake": 68, "avgHrAsleep": None}}

    def test_sleep_end_is_exclusive(self):
        rows = ROWS[:1] + [hr_row("2026-01-28", "2026-01-28 06:00", 66)]
        assert hr_awake_asleep_by_date(rows) == {"2026-01-28": {"avgHrAwake": 66, "avgHrAsleep": None}}

    def test_empty(self):
        assert hr_awake_asleep_by_date([]) == {}
