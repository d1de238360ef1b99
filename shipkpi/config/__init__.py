"""Configuration loading (YAML + JSON schema)."""

from .loader import ConfigError, DashboardConfig, default_config, load_config

__all__ = ["ConfigError", "DashboardConfig", "default_config", "load_config"]
