"""
InfluxDB row fetching against a stand-in client.
Run with: python3 -m pytest tests/
"""

from datetime import datetime, timezone

from sleep_reconcile import config, influx_fetch
from sleep_reconcile.influx_fetch import connect_influx, fetch_event_rows, fetch_window_utc
from sleep_reconcile.records import SLEEP_SESSION


class FakeResult:
    def __init__(self, points):
        self._points = points

    def get_points(self):
        return iter(self._points)


class FakeClient:
    def __init__(self, points):
        self.points = points
        self.queries = []

    def query(self, q):
        self.queries.append(q)
        return FakeResult(self.points)


class TestFetch:
    def test_window_is_padded(self):
        lo, hi = fetch_window_utc("2026-01-27", "2026-01-28")
        assert lo == datetime(2026, 1, 26, tzinfo=timezone.utc)
        assert hi == datetime(2026, 1, 30, tzinfo=timezone.utc)

    def test_query_and_rows(self):
        client = FakeClient([
            {"time": "2026-01-28T06:00:00Z", "timestamp": "2026-01-28 06:00:00 +0000", "date": "2026-01-28",
             "metric": "sleep_analysis", "value": 7.5, "rawData": "{}"},
            {"time": "2026-01-28T07:00:00Z", "date": "2026-01-28", "metric": "heart_rate", "value": 61},
        ])
        rows = fetch_event_rows(client, "2026-01-27", "2026-01-28", measurement="Health")

        q = client.queries[0]
        assert q.startswith('SELECT * FROM "Health"')
        assert "time >= '2026-01-26T00:00:00Z'" in q
        assert "time < '2026-01-30T00:00:00Z'" in q
        assert q.endswith("ORDER BY time ASC")

        assert len(rows) == 2
        assert rows[0].metric_kind == SLEEP_SESSION
        assert rows[1].display_timestamp == "2026-01-28T07:00:00Z"
        assert rows[1].numeric_value == 61.0


class RecordingClient:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.database = None

    def switch_database(self, name):
        self.database = name


class TestConnect:
    def test_uses_config_settings(self, monkeypatch):
        monkeypatch.setattr(influx_fetch, "InfluxDBClient", RecordingClient)
        client = connect_influx()
        assert client.kwargs == config.influx_client_settings()
        assert client.database == config.INFLUXDB_DATABASE

    def test_database_override(self, monkeypatch):
        monkeypatch.setattr(influx_fetch, "InfluxDBClient", RecordingClient)
        assert connect_influx("Other").database == "Other"
