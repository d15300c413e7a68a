"""
Env-driven configuration.
Run with: python3 -m pytest tests/
"""

from datetime import timezone
from pathlib import Path

from sleep_reconcile import config


class TestTimezone:
    def test_explicit_utc(self):
        assert config.resolve_local_timezone("UTC") == ("UTC", timezone.utc)

    def test_unknown_zone_falls_back_to_utc(self):
        assert config.resolve_local_timezone("Not/AZone") == ("UTC", timezone.utc)

    def test_env_var_is_used(self, monkeypatch):
        monkeypatch.setenv("LOCAL_TIMEZONE", "utc")
        assert config.resolve_local_timezone() == ("UTC", timezone.utc)

    def test_read_etc_timezone(self, tmp_path):
        p = tmp_path / "timezone"
        p.write_text("Europe/Berlin\n", encoding="utf-8")
        assert config.read_etc_timezone(p) == "Europe/Berlin"

    def test_read_etc_timezone_missing_or_empty(self, tmp_path):
        assert config.read_etc_timezone(tmp_path / "missing") is None
        p = tmp_path / "timezone"
        p.write_text("\n", encoding="utf-8")
        assert config.read_etc_timezone(p) is None


class TestPaths:
    def test_demo_path_default(self, monkeypatch):
        monkeypatch.delenv("DEMO_HEALTH_JSONL", raising=False)
        assert config.demo_jsonl_path() == Path("data") / "Demo_HealthHourly.jsonl"

    def test_demo_path_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DEMO_HEALTH_JSONL", str(tmp_path / "x.jsonl"))
        assert config.demo_jsonl_path() == tmp_path / "x.jsonl"


class TestInfluxSettings:
    def test_client_settings(self):
        settings = config.influx_client_settings()
        assert settings["host"] == config.INFLUXDB_HOST
        assert settings["port"] == config.INFLUXDB_PORT
        assert settings["verify_ssl"] == settings["ssl"]
        assert settings["timeout"] == 30
        assert settings["retries"] == 3
