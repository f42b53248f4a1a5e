"""Composed-key derivation.

Every backend stores records under a single string key built from three
parts::

    <app prefix>:<namespace>:<application key>

The namespace segment is optional and disappears entirely (separator
included) when it is not supplied.  Keys are case-sensitive and byte-exact,
so the same inputs always map to the same storage slot.
"""

from __future__ import annotations

from cachebox.utils.errors import InvalidArgumentError

KEY_SEPARATOR = ":"


def normalize_prefix(app_prefix: str | None) -> str:
    """Return *app_prefix* with a trailing separator, or ``""`` when unset."""
    if not app_prefix:
        return ""
    return f"{app_prefix}{KEY_SEPARATOR}"


def compose_key(key: str, namespace: str | None = None, prefix: str = "") -> str:
    """Build the storage key for *key*.

    Parameters
    ----------
    key:
        The application key.  Must be a non-empty string.
    namespace:
        Optional caller segment used to keep identical application keys
        from different callers apart (e.g. a class or feature name).
    prefix:
        The already-normalized application prefix (see
        :func:`normalize_prefix`).

    Raises
    ------
    InvalidArgumentError
        If *key* is ``None``, not a string, or empty.
    """
    if not isinstance(key, str) or not key:
        raise InvalidArgumentError("Cache key must be a non-empty string")
    if namespace:
        return f"{prefix}{namespace}{KEY_SEPARATOR}{key}"
    return f"{prefix}{key}"
