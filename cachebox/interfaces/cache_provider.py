"""Abstract base class for cache service providers.

Defines the contract for key-value caching with per-item time-to-live.
Implementations may use an in-process map, SQLite, Redis, TinyDB or any other
storage backend; callers hold an :class:`ICacheProvider` and never depend on
which one was chosen at startup.

Every key passed to these methods is an *application* key.  Providers compose
the storage key from their configured app prefix, the optional ``namespace``
and the application key before touching the backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, TypeVar

_T = TypeVar("_T")


class ICacheProvider(ABC):
    """Contract for key-value cache services.

    All operations are async to allow for network-backed stores (e.g. Redis)
    without blocking the event loop.

    A provider whose backend failed to initialize reports
    ``is_connected == False`` for its whole lifetime, and every operation on
    it raises :class:`~cachebox.utils.errors.NotConnectedError`.
    """

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """``True`` iff the provider established its storage handle."""

    @abstractmethod
    async def get(self, key: str, namespace: str | None = None) -> str | None:
        """Retrieve the raw stored string under *key*.

        Parameters
        ----------
        key:
            The application key to look up.
        namespace:
            Optional segment separating identical keys used by different
            callers, e.g. ``type(self).__name__``.

        Returns
        -------
        str or None
            The stored value if present and not expired; ``None`` otherwise.
            Reading an expired record also removes it.
        """

    @abstractmethod
    async def get_as(
        self,
        key: str,
        model: type[_T],
        namespace: str | None = None,
    ) -> _T | None:
        """Retrieve the value under *key* decoded as *model*.

        ``model=str`` returns the stored text unchanged.  A payload that
        cannot be decoded as *model* is reported as a miss (``None``), since
        an incompatible cached shape is as good as absent.
        """

    @abstractmethod
    async def remove(self, key: str, namespace: str | None = None) -> bool:
        """Remove the entry stored under *key*.

        Returns ``True`` whether or not the key existed; removal is
        idempotent.
        """

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        timeout: timedelta | float | None = None,
        namespace: str | None = None,
    ) -> None:
        """Store *value* under *key*, replacing any previous record.

        Parameters
        ----------
        key:
            The application key.
        value:
            The value to store.  Strings are stored verbatim; other values
            are JSON-encoded.  ``None`` is rejected.
        timeout:
            Time-to-live as a timedelta or seconds.  ``None`` uses the
            provider's configured default; with no default the entry never
            expires.
        namespace:
            Optional caller segment, see :meth:`get`.
        """

    async def close(self) -> None:
        """Release the storage handle and stop background work.

        The default implementation does nothing.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
