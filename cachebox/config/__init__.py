"""Configuration module: exports Settings, the provider config and the YAML loader."""

from cachebox.config.durations import parse_duration
from cachebox.config.loader import load_config, load_settings
from cachebox.config.settings import CacheProviderConfig, Settings

__all__ = ["CacheProviderConfig", "Settings", "load_config", "load_settings", "parse_duration"]
