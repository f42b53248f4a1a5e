"""Structured logging setup for cachebox using structlog.

Two renderers share one processor chain: a coloured ConsoleRenderer while
developing and a JSONRenderer in production (``APP_ENV=production`` or
``json_output=True``).  Every event is stamped with ``library="cachebox"``
so cache events can be filtered out of a host application's log stream.

cachebox is a library, so the stdlib bridge only claims the loggers it owns
(``cachebox`` and the ``redis`` client) and leaves the root logger and the
host application's handlers alone.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO, Any

import structlog

#: Stdlib logger namespaces routed through the structlog formatter.
BRIDGED_LOGGERS = ("cachebox", "redis")

_LIBRARY = "cachebox"


def _add_library(
    _logger: Any, _method: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    event_dict.setdefault("library", _LIBRARY)
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: IO[str] | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and the bridged stdlib loggers.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output.  Otherwise JSON is used only when
            ``APP_ENV`` is ``production``.
        stream: Destination for rendered lines; defaults to stdout.

    Returns:
        A configured structlog BoundLogger.
    """
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    level = logging.getLevelName(log_level.upper())
    out = stream if stream is not None else sys.stdout

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_library,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=stream is None)
    )

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(out)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=shared_processors,
        )
    )
    for name in BRIDGED_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.setLevel(level)
        std_logger.propagate = False

    return structlog.get_logger()


def get_logger(name: str, **initial_values: Any) -> structlog.BoundLogger:
    """Return a structlog logger named *name* with *initial_values* bound.

    Configures logging with defaults if nothing has configured it yet.
    """
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name, **initial_values)
