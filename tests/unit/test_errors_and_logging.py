"""Unit tests for the exception hierarchy and logging setup."""

from __future__ import annotations

import io
import json
import logging

import pytest
import structlog

from cachebox.utils.errors import (
    BackendUnavailableError,
    CacheBoxError,
    ConfigurationError,
    DecodeError,
    InvalidArgumentError,
    NotConnectedError,
)
from cachebox.utils.logging import configure_logging, get_logger


class TestErrorHierarchy:
    @pytest.mark.parametrize(
        "error_cls",
        [
            ConfigurationError,
            NotConnectedError,
            InvalidArgumentError,
            DecodeError,
            BackendUnavailableError,
        ],
    )
    def test_subclasses_share_base(self, error_cls: type[CacheBoxError]) -> None:
        error = error_cls()
        assert isinstance(error, CacheBoxError)
        assert error.message

    def test_invalid_argument_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            raise InvalidArgumentError("Cache key must be a non-empty string")

    def test_str_prefixes_provider_name(self) -> None:
        error = NotConnectedError(provider_name="redis")

        assert error.provider_name == "redis"
        assert str(error) == "[redis] Cache provider is not connected"

    def test_str_without_provider(self) -> None:
        assert str(ConfigurationError("bad section")) == "bad section"


class TestLogging:
    def test_console_renderer_in_development(self) -> None:
        configure_logging(log_level="DEBUG")

        assert structlog.is_configured()
        renderer = structlog.get_config()["processors"][-1]
        assert isinstance(renderer, structlog.dev.ConsoleRenderer)

    def test_json_renderer_in_production(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_ENV", "production")
        configure_logging()

        renderer = structlog.get_config()["processors"][-1]
        assert isinstance(renderer, structlog.processors.JSONRenderer)

    def test_json_events_carry_library_and_fields(self) -> None:
        stream = io.StringIO()
        configure_logging(log_level="INFO", json_output=True, stream=stream)

        get_logger("cachebox.tests", provider="memory").info("cache_event", key="App:k")

        event = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert event["event"] == "cache_event"
        assert event["library"] == "cachebox"
        assert event["provider"] == "memory"
        assert event["key"] == "App:k"
        assert event["level"] == "info"

    def test_level_filters_events(self) -> None:
        stream = io.StringIO()
        configure_logging(log_level="WARNING", json_output=True, stream=stream)

        get_logger("cachebox.tests").info("quiet")

        assert stream.getvalue() == ""

    def test_stdlib_bridge_is_scoped(self) -> None:
        stream = io.StringIO()
        root_handlers = list(logging.getLogger().handlers)
        configure_logging(log_level="INFO", json_output=True, stream=stream)

        logging.getLogger("redis.connection").warning("socket closed")

        assert logging.getLogger().handlers == root_handlers
        event = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert event["event"] == "socket closed"
        assert event["library"] == "cachebox"

    def test_get_logger_configures_on_demand(self) -> None:
        structlog.reset_defaults()
        assert not structlog.is_configured()

        assert get_logger("cachebox.tests") is not None
        assert structlog.is_configured()
