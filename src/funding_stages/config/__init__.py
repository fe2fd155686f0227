"""Configuration: pydantic settings loaded from YAML + environment."""

from funding_stages.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
