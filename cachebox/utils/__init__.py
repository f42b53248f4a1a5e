"""Utility modules for cachebox.

- **errors** -- exception hierarchy rooted at CacheBoxError.
- **keys** -- composed-key derivation (app prefix, namespace, key).
- **codec** -- string passthrough / pydantic JSON value encoding.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from cachebox.utils.errors import (
    BackendUnavailableError,
    CacheBoxError,
    ConfigurationError,
    DecodeError,
    InvalidArgumentError,
    NotConnectedError,
)

# -- Key composition and value codec ---------------------------------------
from cachebox.utils.codec import decode, encode
from cachebox.utils.keys import compose_key, normalize_prefix

# -- Structured logging setup ----------------------------------------------
from cachebox.utils.logging import configure_logging, get_logger

__all__ = [
    "BackendUnavailableError",
    "CacheBoxError",
    "ConfigurationError",
    "DecodeError",
    "InvalidArgumentError",
    "NotConnectedError",
    "compose_key",
    "configure_logging",
    "decode",
    "encode",
    "get_logger",
    "normalize_prefix",
]
