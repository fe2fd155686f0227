"""
Settings management using Pydantic.

Loads configuration from YAML files and environment variables.
Environment variables (FUNDING_ prefix, "__" nesting) override YAML values.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, EnvSettingsSource

from funding_stages.domain.catalog import DEFAULT_STAGE_CATALOG
from funding_stages.domain.models import StageSeed

logger = logging.getLogger(__name__)


class StageSeedSettings(BaseModel):
    """One stage of the configured default catalog."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    target_amount: int = Field(default=0, ge=0)
    description: str = ""

    def to_seed(self) -> StageSeed:
        return StageSeed(
            id=self.id,
            name=self.name,
            target_amount=self.target_amount,
            description=self.description,
        )


def _default_stages() -> list[StageSeedSettings]:
    return [
        StageSeedSettings(
            id=seed.id,
            name=seed.name,
            target_amount=seed.target_amount,
            description=seed.description,
        )
        for seed in DEFAULT_STAGE_CATALOG
    ]


class TrackerSettings(BaseModel):
    """Funding tracker behaviour."""

    default_stages: list[StageSeedSettings] = Field(default_factory=_default_stages)
    # Stage edits that reach 100% progress complete the current stage.
    auto_complete_on_full_progress: bool = True
    history_limit: int = Field(default=50, ge=1)

    def seeds(self) -> list[StageSeed]:
        return [stage.to_seed() for stage in self.default_stages]


class DatabaseSettings(BaseModel):
    """Database settings."""

    path: str = "data/funding_stages.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class LoggingSettings(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    file_enabled: bool = False
    log_dir: str = "logs"
    json_enabled: bool = False
    json_file: str = "logs/funding_stages.jsonl"
    # Set to 0 to disable rotation.
    json_max_bytes: int = 10_000_000
    json_backup_count: int = 3


class Settings(BaseSettings):
    """
    Main settings container.

    Loads from YAML file, then applies env var overrides.
    """

    env: str = Field(default="development", alias="FUNDING_ENV")
    testing_mode: bool = False

    tracker: TrackerSettings = Field(default_factory=TrackerSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = {
        "env_prefix": "FUNDING_",
        "env_nested_delimiter": "__",
        "extra": "ignore",
        "populate_by_name": True,
    }

    def validate_config(self) -> list[str]:
        """
        Check cross-field constraints pydantic cannot express.

        Returns a list of error messages. Empty list means valid.
        """
        errors = []

        if not self.tracker.default_stages:
            errors.append("tracker.default_stages must contain at least one stage")

        ids = [stage.id for stage in self.tracker.default_stages]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            errors.append(f"tracker.default_stages has duplicate ids: {duplicates}")

        if not self.database.path:
            errors.append("Database path is required")

        if self.logging.level.upper() not in logging.getLevelNamesMapping():
            errors.append(f"logging.level {self.logging.level!r} is not a logging level")

        return errors

    @classmethod
    def from_yaml(cls, env: str = "development", path: Path | None = None) -> Settings:
        """
        Load settings from config.yaml (plus optional `<env>.yaml` overlay).

        Nested FUNDING_<SECTION>__<KEY> variables override the YAML values;
        FUNDING_DB_PATH and FUNDING_LOG_LEVEL are honoured as shortcuts.
        """
        config_dir = Path(__file__).parent
        yaml_file = path or config_dir / "config.yaml"

        data: dict = {}
        if yaml_file.exists():
            with open(yaml_file, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

        env_file = yaml_file.with_name(f"{env}.yaml")
        if env_file.exists():
            with open(env_file, encoding="utf-8") as f:
                env_data = yaml.safe_load(f) or {}
            data = _deep_merge(data, env_data)

        data = _deep_merge(data, _env_overrides(cls))

        if os.getenv("FUNDING_DB_PATH"):
            data.setdefault("database", {})["path"] = os.getenv("FUNDING_DB_PATH")
        if os.getenv("FUNDING_LOG_LEVEL"):
            data.setdefault("logging", {})["level"] = os.getenv("FUNDING_LOG_LEVEL")

        data["env"] = env

        # Warn about unknown keys before creating model (helps catch typos in config.yaml)
        _warn_unknown_keys(data, cls)

        return cls(**data)


def _env_overrides(settings_cls: type[Settings]) -> dict:
    """Nested env values (FUNDING_DATABASE__PATH etc.) as a dict shaped like the YAML."""
    overrides = EnvSettingsSource(settings_cls)()
    # env is chosen by the caller, not the environment
    for key in ("env", "FUNDING_ENV", "funding_env"):
        overrides.pop(key, None)
    return overrides


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts, override wins on conflicts."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _collect_all_keys(data: dict, prefix: str = "") -> set[str]:
    """
    Recursively collect all keys from a nested dict.

    Returns keys in dot-notation format (e.g., "tracker.history_limit").
    Lists (such as the stage catalog) are not descended into.
    """
    keys = set()
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else key
        keys.add(full_key)
        if isinstance(value, dict):
            keys.update(_collect_all_keys(value, full_key))
    return keys


def _collect_model_fields(model_class: type[BaseModel], prefix: str = "") -> set[str]:
    """
    Recursively collect all field names from a Pydantic model.

    Returns field names in dot-notation format.
    """
    fields = set()
    for field_name, field_info in model_class.model_fields.items():
        full_key = f"{prefix}.{field_name}" if prefix else field_name
        fields.add(full_key)

        annotation = field_info.annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            fields.update(_collect_model_fields(annotation, full_key))

    return fields


def _warn_unknown_keys(data: dict, model_class: type[BaseModel]) -> None:
    """
    Warn about unknown keys in YAML config that don't match model fields.

    This prevents silent config bugs where typos in key names are ignored.
    """
    yaml_keys = _collect_all_keys(data)
    model_fields = _collect_model_fields(model_class)

    unknown_keys = yaml_keys - model_fields

    if unknown_keys:
        logger.warning(
            f"Unknown configuration keys found (will be ignored due to extra='ignore'): {sorted(unknown_keys)}. "
            f"This may indicate typos in config.yaml or outdated config keys."
        )


@lru_cache(maxsize=4)
def get_settings(env: str | None = None) -> Settings:
    """Get cached settings instance."""
    resolved_env = env or os.getenv("FUNDING_ENV", "development")
    return Settings.from_yaml(env=resolved_env)
