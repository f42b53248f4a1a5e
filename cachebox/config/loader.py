"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# The provider configuration is resolved in layers (later layers win):
#
#   1. config/cache.yaml  : the ``cache:`` section checked into the repo
#   2. .env file          : local developer overrides (not committed)
#   3. Environment vars   : CACHE_APP_PREFIX, CACHE_CONNECTION_STRING,
#                           CACHE_TIMEOUT set at deploy time
#
# Example cache.yaml:
#
#   cache:
#     appPrefix: MyApp
#     connectionString: data/cache.db
#     timeout: "0:10:00"
#
# If no layer provides a cache section the configuration is considered
# missing and ConfigurationError is raised; the caller abandons provider
# setup instead of running with an accidental default.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from cachebox.config.settings import CacheProviderConfig, Settings
from cachebox.utils.errors import ConfigurationError

CONFIG_SECTION = "cache"

_DEFAULT_CONFIG_PATH = "config/cache.yaml"


def load_config(
    path: str | Path = _DEFAULT_CONFIG_PATH,
    settings: Settings | None = None,
) -> CacheProviderConfig:
    """Load the ``cache`` section from YAML and merge environment overrides.

    Args:
        path: Path to the YAML configuration file.  A missing file is not an
            error by itself; environment variables may supply everything.
        settings: Pre-built Settings; read from the environment when omitted.

    Returns:
        The immutable provider configuration.

    Raises:
        ConfigurationError: If no cache section exists in any layer, or the
            section is malformed.
    """
    section = _read_section(Path(path))

    if settings is None:
        settings = load_settings()
    env_overrides = settings.provider_overrides()

    if section is None and not env_overrides:
        raise ConfigurationError(
            f"Configuration section '{CONFIG_SECTION}' is missing from {path} and the environment"
        )

    merged: dict[str, Any] = dict(section or {})
    _deep_merge(merged, env_overrides)

    try:
        return CacheProviderConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Configuration section '{CONFIG_SECTION}' is invalid: {exc.error_count()} error(s)"
        ) from exc


def _read_section(config_path: Path) -> dict[str, Any] | None:
    """Return the cache section of *config_path*, or ``None`` if absent."""
    if not config_path.exists():
        return None

    with open(config_path, encoding="utf-8") as f:
        try:
            document = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse {config_path}: {exc}") from exc

    if not isinstance(document, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping at the top level")

    # Section lookup is case-insensitive so "Cache:" works as well.
    for key, value in document.items():
        if isinstance(key, str) and key.lower() == CONFIG_SECTION:
            if value is None:
                return {}
            if not isinstance(value, dict):
                raise ConfigurationError(
                    f"Configuration section '{CONFIG_SECTION}' must be a mapping"
                )
            return value
    return None


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def load_settings() -> Settings:
    """Read :class:`Settings` from the environment and ``.env``.

    Raises:
        ConfigurationError: If an environment value is invalid, e.g. an
            unknown ``CACHE_PROVIDER`` or a non-positive sweep interval.
    """
    try:
        return Settings()
    except ValidationError as exc:
        fields = ", ".join(str(error["loc"][0]) for error in exc.errors() if error["loc"])
        raise ConfigurationError(f"Invalid cache settings: {fields or exc.error_count()}") from exc
