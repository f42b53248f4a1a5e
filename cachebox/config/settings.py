"""Cache settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ───────────────────────────────────────────────
#
# Two objects live here:
#
#   * ``Settings`` reads process-wide options from the environment and a
#     local ``.env`` file.  Every field maps to an upper-cased variable with
#     the ``CACHE_`` prefix, e.g. ``provider`` <- ``CACHE_PROVIDER``.
#
#   * ``CacheProviderConfig`` is the immutable value object a provider is
#     constructed from.  It mirrors the language-agnostic config shape
#
#         { appPrefix?: string, connectionString?: string, timeout?: string }
#
#     and accepts both those camelCase names and snake_case field names.
#
# A provider reads its CacheProviderConfig once in the constructor and never
# looks at configuration again.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cachebox.config.durations import parse_duration
from cachebox.utils.keys import normalize_prefix

ProviderName = Literal["memory", "sqlite", "redis", "tinydb"]


class CacheProviderConfig(BaseModel):
    """Configuration for a single cache provider instance.

    Attributes
    ----------
    app_prefix:
        Global key prefix shared by every key this provider writes.  Empty
        means no prefix segment at all.
    connection_string:
        Backend-specific connection target: a file path for SQLite and
        TinyDB, a ``redis://`` URL for Redis.  Ignored by the in-memory
        provider.  Blank or missing disables engine-backed providers.
    timeout:
        Default TTL as a duration string (see
        :func:`cachebox.config.durations.parse_duration`).  Missing or
        unparsable means records without an explicit timeout never expire.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    app_prefix: str = Field(
        default="",
        validation_alias=AliasChoices("app_prefix", "appPrefix", "AppPrefix"),
    )
    connection_string: str | None = Field(
        default=None,
        validation_alias=AliasChoices("connection_string", "connectionString", "ConnectionString"),
    )
    timeout: str | None = Field(
        default=None,
        validation_alias=AliasChoices("timeout", "Timeout"),
    )

    @field_validator("timeout", mode="before")
    @classmethod
    def _numeric_timeout_is_seconds(cls, value: object) -> object:
        # YAML reads unquoted 0:10:00 as the base-60 integer 600.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return f"{value}s"
        return value

    @property
    def prefix(self) -> str:
        """The app prefix with its trailing separator (``""`` when unset)."""
        return normalize_prefix(self.app_prefix)

    @property
    def default_timeout(self) -> timedelta | None:
        """The parsed default TTL, or ``None`` for "never expires"."""
        return parse_duration(self.timeout)

    @property
    def has_connection_string(self) -> bool:
        return bool(self.connection_string and self.connection_string.strip())


class Settings(BaseSettings):
    """Process-wide cache settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Backend selection ===
    provider: ProviderName = "memory"

    # === Provider configuration ===
    # Empty string = "not set"; the YAML file (if any) supplies the value.
    app_prefix: str = ""
    connection_string: str = ""
    timeout: str = ""

    # === In-memory sweeper ===
    sweep_interval_seconds: float = Field(default=10.0, gt=0)

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    @field_validator("provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def provider_overrides(self) -> dict[str, str]:
        """Return the provider config values that were actually set."""
        overrides: dict[str, str] = {}
        if self.app_prefix:
            overrides["app_prefix"] = self.app_prefix
        if self.connection_string:
            overrides["connection_string"] = self.connection_string
        if self.timeout:
            overrides["timeout"] = self.timeout
        return overrides
