"""
Unit Tests for Settings
=======================
"""

import pytest

from influxwire.core.config import Settings


@pytest.mark.unit
class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("INFLUXDB_HOST", "INFLUXDB_PORT", "RESULT_STREAM_THRESHOLD_BYTES", "WRITE_PRECISION"):
            monkeypatch.delenv(name, raising=False)

        config = Settings(_env_file=None)

        assert config.INFLUXDB_HOST == "localhost"
        assert config.INFLUXDB_PORT == 8086
        assert config.RESULT_STREAM_THRESHOLD_BYTES == 1_000_000
        assert config.WRITE_PRECISION == "ns"
        assert config.influxdb_base_url == "http://localhost:8086"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("INFLUXDB_HOST", "influx.internal")
        monkeypatch.setenv("influxdb_port", "9086")
        monkeypatch.setenv("RESULT_STREAM_THRESHOLD_BYTES", "2048")

        config = Settings(_env_file=None)

        assert config.influxdb_base_url == "http://influx.internal:9086"
        assert config.RESULT_STREAM_THRESHOLD_BYTES == 2048

    def test_auth_requires_both_parts(self, monkeypatch):
        monkeypatch.setenv("INFLUXDB_USERNAME", "admin")
        monkeypatch.delenv("INFLUXDB_PASSWORD", raising=False)

        assert Settings(_env_file=None).influxdb_auth is None

        monkeypatch.setenv("INFLUXDB_PASSWORD", "secret")

        assert Settings(_env_file=None).influxdb_auth == ("admin", "secret")

    def test_repr_hides_credentials(self, monkeypatch):
        monkeypatch.setenv("INFLUXDB_PASSWORD", "secret")

        assert "secret" not in repr(Settings(_env_file=None))
