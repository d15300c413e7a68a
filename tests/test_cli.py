"""
Entry-point scripts: sleep_totals.py and demo.py.
Run with: python3 -m pytest tests/
"""

import json
from datetime import date
from pathlib import Path

import pytest

from factories import session_row

import demo
import sleep_totals

REPO_ROOT = Path(__file__).resolve().parent.parent

ROWS = [session_row("2026-01-28", "2026-01-27 23:30", "2026-01-28 01:30", 2.0)]


class FakeClient:
    def __init__(self, rows):
        self.points = [
            {
                "timestamp": r.display_timestamp,
                "date": r.display_date,
                "metric": r.metric_kind,
                "value": r.numeric_value,
                "rawData": r.raw_payload,
            }
            for r in rows
        ]

    def query(self, q):
        return self

    def get_points(self):
        return iter(self.points)


@pytest.fixture
def fake_influx(monkeypatch):
    monkeypatch.setenv("LOCAL_TIMEZONE", "UTC")
    monkeypatch.setattr(sleep_totals, "connect_influx", lambda: FakeClient(ROWS))


class TestResolveRange:
    def test_defaults_to_week_ending_yesterday(self):
        args = sleep_totals.parse_args([])
        assert sleep_totals.resolve_range(args, date(2026, 1, 30)) == ("2026-01-23", "2026-01-29")

    def test_explicit(self):
        args = sleep_totals.parse_args(["--start", "2026-01-01", "--end", "2026-01-03"])
        assert sleep_totals.resolve_range(args, date(2026, 1, 30)) == ("2026-01-01", "2026-01-03")

    def test_invalid_dates(self):
        with pytest.raises(SystemExit):
            sleep_totals.resolve_range(sleep_totals.parse_args(["--end", "01/03/2026"]), date(2026, 1, 30))
        with pytest.raises(SystemExit):
            sleep_totals.resolve_range(
                sleep_totals.parse_args(["--start", "2026-01-05", "--end", "2026-01-03"]), date(2026, 1, 30)
            )


class TestSleepTotalsMain:
    def test_day_json(self, fake_influx, capsys):
        assert sleep_totals.main(["--day", "2026-01-27", "--json"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["date"] == "2026-01-27"
        assert len(out["minutes"]) == 1440
        assert out["blocks"][0]["spillover"] is True
        assert out["blocks"][0]["startMinute"] == 1410
        assert out["totals"]["totalMin"] == 0

    def test_range_json(self, fake_influx, capsys):
        assert sleep_totals.main(["--start", "2026-01-27", "--end", "2026-01-28", "--json"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["count"] == 1
        day = out["days"][0]
        assert day["date"] == "2026-01-28"
        assert day["sleep"]["totalMin"] == 90
        assert day["avgHrAwake"] is None

    def test_range_text(self, fake_influx, capsys):
        sleep_totals.main(["--start", "2026-01-27", "--end", "2026-01-28"])
        assert capsys.readouterr().out.startswith("2026-01-28: slept 1h 30m")

    def test_bad_day(self, fake_influx):
        with pytest.raises(SystemExit):
            sleep_totals.main(["--day", "yesterday"])


class TestDemo:
    def test_load_rows(self, tmp_path):
        p = tmp_path / "rows.jsonl"
        p.write_text(
            json.dumps({"timestamp": "t", "date": "2026-01-28", "metric": "heart_rate", "value": 60})
            + "\n\n",
            encoding="utf-8",
        )
        rows = demo.load_rows(p)
        assert len(rows) == 1
        assert rows[0].numeric_value == 60.0

    def test_invalid_json_names_the_line(self, tmp_path):
        p = tmp_path / "rows.jsonl"
        p.write_text('{"date": "2026-01-28"}\n{oops\n', encoding="utf-8")
        with pytest.raises(RuntimeError, match="line 2"):
            demo.load_rows(p)

    def test_main_on_bundled_snapshot(self, monkeypatch, capsys):
        monkeypatch.setenv("DEMO_HEALTH_JSONL", str(REPO_ROOT / "data" / "Demo_HealthHourly.jsonl"))
        monkeypatch.setenv("LOCAL_TIMEZONE", "UTC")
        demo.main()
        out = capsys.readouterr().out
        assert "2026-01-29: slept 6h 15m" in out
        assert "1 duplicate" in out

    def test_main_missing_file(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DEMO_HEALTH_JSONL", str(tmp_path / "nope.jsonl"))
        with pytest.raises(SystemExit):
            demo.main()
