"""Tests for settings and logging setup."""

from __future__ import annotations

import pytest
import structlog

from graph_tables import NetworkModel
from graph_tables.config import Settings, get_settings
from graph_tables.logging import configure_logging, get_logger


@pytest.fixture
def clean_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("DEFAULT_DELIMITER", "INSTANCE_SAMPLE_SIZE", "MAX_STATIC_TABLE_MB", "LOG_LEVEL"):
            monkeypatch.delenv(f"GRAPH_TABLES_{name}", raising=False)
        settings = Settings(_env_file=None)
        assert settings.default_delimiter == ","
        assert settings.instance_sample_size == 5
        assert settings.max_static_table_mb == 30.0
        assert settings.log_level == "INFO"

    def test_environment_override(self, monkeypatch, clean_settings):
        monkeypatch.setenv("GRAPH_TABLES_DEFAULT_DELIMITER", ";")
        monkeypatch.setenv("GRAPH_TABLES_INSTANCE_SAMPLE_SIZE", "2")
        settings = get_settings()
        assert settings.default_delimiter == ";"
        assert settings.instance_sample_size == 2
        assert get_settings() is settings

    def test_model_uses_cached_settings(self, monkeypatch, clean_settings):
        monkeypatch.setenv("GRAPH_TABLES_DEFAULT_DELIMITER", "|")
        model = NetworkModel()
        table = model.create_table("StaticTable", name="t", data=[{"x": "a|b"}])
        assert table.expand("x").to_raw_object()["delimiter"] == "|"


class TestLogging:
    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        """Loggers configured here write to capsys streams that close after each test."""
        yield
        structlog.reset_defaults()

    @pytest.mark.parametrize("log_format", ["console", "json"])
    def test_configure_logging(self, log_format, capsys):
        configure_logging(log_level="DEBUG", log_format=log_format, color=False)
        get_logger("tests").info("table_created", table_id="table1")
        assert "table_created" in capsys.readouterr().err

    def test_level_filtering(self, capsys):
        configure_logging(log_level="WARNING", color=False)
        get_logger("tests").info("quiet_event")
        assert "quiet_event" not in capsys.readouterr().err
