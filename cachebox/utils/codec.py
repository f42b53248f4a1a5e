"""Value codec: application values to/from the stored string form.

Strings are stored verbatim so cached text stays human-readable and is not
double-quoted.  Everything else goes through pydantic's JSON serializer,
which understands pydantic models, dataclasses, mappings, sequences,
numbers, booleans and datetimes.

Decoding is driven by the type the *caller* asks for, not by inspecting the
stored payload: ``decode(raw, str)`` returns the raw text, any other type is
validated from JSON with a cached :class:`pydantic.TypeAdapter`.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from cachebox.utils.errors import DecodeError, InvalidArgumentError

_T = TypeVar("_T")


@lru_cache(maxsize=256)
def _adapter_for(model: Any) -> TypeAdapter[Any]:
    return TypeAdapter(model)


def encode(value: Any) -> str:
    """Serialize *value* for storage.

    Raises
    ------
    InvalidArgumentError
        If *value* is ``None`` or cannot be serialized to JSON.
    """
    if value is None:
        raise InvalidArgumentError("Cache value must not be None")
    if isinstance(value, str):
        return value
    try:
        return to_json(value).decode("utf-8")
    except PydanticSerializationError as exc:
        raise InvalidArgumentError(
            f"Value of type {type(value).__name__} is not serializable: {exc}"
        ) from exc


def decode(raw: str, model: type[_T]) -> _T:
    """Convert a stored payload into an instance of *model*.

    Raises
    ------
    DecodeError
        If the payload is not valid JSON or does not validate as *model*.
    """
    if model is str:
        return raw  # type: ignore[return-value]
    try:
        return _adapter_for(model).validate_json(raw)
    except ValidationError as exc:
        raise DecodeError(
            f"Cached payload does not decode as {getattr(model, '__name__', model)!s}: "
            f"{exc.error_count()} validation error(s)"
        ) from exc
