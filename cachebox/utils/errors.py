"""Custom exception hierarchy for cachebox.

All library exceptions inherit from :class:`CacheBoxError`, which carries an
optional ``provider_name`` so error handlers can tell which backend
(e.g. "memory", "sqlite", "redis") raised the failure.

    CacheBoxError  (base -- catch-all for any cachebox error)
    +-- ConfigurationError       (missing / malformed cache configuration)
    +-- NotConnectedError        (provider never established its storage handle)
    +-- InvalidArgumentError     (absent key or value)
    +-- DecodeError              (stored payload does not fit the requested type)
    +-- BackendUnavailableError  (engine failed mid-operation)

``DecodeError`` never reaches callers of the provider API: providers report
it as a cache miss.  ``BackendUnavailableError`` is raised as-is and never
retried internally; whether a retry is safe is the caller's decision.
"""


class CacheBoxError(Exception):
    """Base exception for all cachebox errors.

    ``str(error)`` prefixes the provider name in brackets for structured log
    output, e.g. ``[redis] Cache provider is not connected``.  Subclasses
    only override :attr:`default_message`.
    """

    default_message = "An unexpected cache error occurred"

    def __init__(self, message: str | None = None, provider_name: str | None = None) -> None:
        self.message = message or self.default_message
        self.provider_name = provider_name
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.provider_name:
            return f"[{self.provider_name}] {self.message}"
        return self.message


# Startup

class ConfigurationError(CacheBoxError):
    """Raised when the ``cache`` configuration section is missing or invalid."""

    default_message = "Configuration section 'cache' is missing or invalid"


# Per-operation

class NotConnectedError(CacheBoxError):
    """Raised by every operation on a provider whose backend failed to start.

    A disconnected provider stays disconnected for its whole lifetime; there
    is no reconnection attempt.
    """

    default_message = "Cache provider is not connected"


class InvalidArgumentError(CacheBoxError, ValueError):
    """Raised when a required argument (key, value, timeout) is absent or malformed."""

    default_message = "Invalid argument"


class DecodeError(CacheBoxError):
    """Raised by the codec when a stored payload cannot become the requested type."""

    default_message = "Cached value could not be decoded"


class BackendUnavailableError(CacheBoxError):
    """Raised when a connected provider's engine fails during an operation.

    Typical causes are a dropped Redis connection or a locked / corrupt
    database file.  The engine exception is chained as ``__cause__``.
    """

    default_message = "Cache backend is unavailable"
