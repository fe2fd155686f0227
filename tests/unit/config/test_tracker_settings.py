"""
Unit tests for Settings loading and validation (offline-only).
"""

from __future__ import annotations

import logging

import pytest

from funding_stages.config.settings import (
    Settings,
    StageSeedSettings,
    TrackerSettings,
    _deep_merge,
    get_settings,
)
from funding_stages.domain.catalog import DEFAULT_STAGE_CATALOG


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("FUNDING_DB_PATH", "FUNDING_LOG_LEVEL", "FUNDING_ENV"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestFromYaml:
    def test_packaged_config_loads_default_catalog(self):
        settings = Settings.from_yaml("development")

        assert settings.env == "development"
        assert [s.id for s in settings.tracker.seeds()] == [s.id for s in DEFAULT_STAGE_CATALOG]
        assert settings.tracker.auto_complete_on_full_progress is True
        assert settings.validate_config() == []

    def test_env_overlay_is_deep_merged(self, tmp_path):
        (tmp_path / "config.yaml").write_text(
            "database:\n  path: base.db\n  wal_mode: true\nlogging:\n  level: INFO\n",
            encoding="utf-8",
        )
        (tmp_path / "staging.yaml").write_text("database:\n  path: staging.db\n", encoding="utf-8")

        settings = Settings.from_yaml("staging", path=tmp_path / "config.yaml")

        assert settings.database.path == "staging.db"
        assert settings.database.wal_mode is True
        assert settings.env == "staging"

    def test_env_var_shortcuts_override_yaml(self, tmp_path, monkeypatch):
        (tmp_path / "config.yaml").write_text("database:\n  path: base.db\n", encoding="utf-8")
        monkeypatch.setenv("FUNDING_DB_PATH", "/tmp/override.db")
        monkeypatch.setenv("FUNDING_LOG_LEVEL", "DEBUG")

        settings = Settings.from_yaml(path=tmp_path / "config.yaml")

        assert settings.database.path == "/tmp/override.db"
        assert settings.logging.level == "DEBUG"

    def test_nested_env_vars_override_yaml(self, tmp_path, monkeypatch):
        (tmp_path / "config.yaml").write_text(
            "database:\n  path: base.db\n  busy_timeout_ms: 5000\ntracker:\n  history_limit: 50\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("FUNDING_DATABASE__BUSY_TIMEOUT_MS", "1234")
        monkeypatch.setenv("FUNDING_TRACKER__HISTORY_LIMIT", "7")

        settings = Settings.from_yaml("development", path=tmp_path / "config.yaml")

        assert settings.database.busy_timeout_ms == 1234
        assert settings.tracker.history_limit == 7
        assert settings.database.path == "base.db"

    def test_unknown_keys_are_warned(self, tmp_path, caplog):
        (tmp_path / "config.yaml").write_text("tracker:\n  histroy_limit: 5\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            Settings.from_yaml(path=tmp_path / "config.yaml")

        assert "tracker.histroy_limit" in caplog.text

    def test_custom_stage_list(self, tmp_path):
        (tmp_path / "config.yaml").write_text(
            "tracker:\n  default_stages:\n    - id: angel\n      name: Angel\n      target_amount: 5\n",
            encoding="utf-8",
        )

        seeds = Settings.from_yaml(path=tmp_path / "config.yaml").tracker.seeds()

        assert [(s.id, s.name, s.target_amount) for s in seeds] == [("angel", "Angel", 5)]

    def test_get_settings_is_cached(self):
        assert get_settings("development") is get_settings("development")


class TestValidateConfig:
    def test_empty_catalog(self):
        settings = Settings(tracker=TrackerSettings(default_stages=[]))
        assert any("at least one stage" in e for e in settings.validate_config())

    def test_duplicate_stage_ids(self):
        stage = StageSeedSettings(id="seed", name="Seed")
        settings = Settings(tracker=TrackerSettings(default_stages=[stage, stage]))
        assert any("duplicate ids" in e for e in settings.validate_config())

    def test_bad_log_level(self):
        settings = Settings()
        settings.logging.level = "LOUD"
        assert any("logging.level" in e for e in settings.validate_config())

    def test_negative_stage_target_rejected_by_model(self):
        with pytest.raises(ValueError):
            StageSeedSettings(id="seed", name="Seed", target_amount=-1)


def test_deep_merge_keeps_untouched_keys():
    merged = _deep_merge({"a": {"b": 1, "c": 2}, "d": 3}, {"a": {"b": 9}})
    assert merged == {"a": {"b": 9, "c": 2}, "d": 3}
