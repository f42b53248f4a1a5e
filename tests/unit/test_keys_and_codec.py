"""Unit tests for key composition, the value codec and cache records."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import BaseModel, ValidationError

from cachebox.models.cache_record import (
    NEVER_EXPIRES,
    CacheRecord,
    expiry_from,
    format_instant,
    parse_instant,
)
from cachebox.utils.codec import decode, encode
from cachebox.utils.errors import DecodeError, InvalidArgumentError
from cachebox.utils.keys import compose_key, normalize_prefix


class Artist(BaseModel):
    name: str
    aliases: list[str] = []


# ======================================================================
# Keys
# ======================================================================


class TestComposeKey:
    def test_prefix_namespace_and_key(self) -> None:
        assert compose_key("user:1", "Users", normalize_prefix("App")) == "App:Users:user:1"

    def test_without_namespace(self) -> None:
        assert compose_key("user:1", None, "App:") == "App:user:1"

    def test_empty_namespace_is_omitted(self) -> None:
        assert compose_key("user:1", "", "App:") == "App:user:1"

    def test_without_prefix(self) -> None:
        assert compose_key("k", "NS") == "NS:k"
        assert compose_key("k") == "k"

    def test_keys_are_case_sensitive(self) -> None:
        assert compose_key("Key", "ns") != compose_key("key", "ns")

    @pytest.mark.parametrize("key", ["", None, 5])
    def test_invalid_key_rejected(self, key: object) -> None:
        with pytest.raises(InvalidArgumentError):
            compose_key(key)  # type: ignore[arg-type]

    @pytest.mark.parametrize(("prefix", "expected"), [("App", "App:"), ("", ""), (None, "")])
    def test_normalize_prefix(self, prefix: str | None, expected: str) -> None:
        assert normalize_prefix(prefix) == expected


# ======================================================================
# Codec
# ======================================================================


class TestCodec:
    def test_strings_stored_verbatim(self) -> None:
        assert encode("hello") == "hello"
        assert encode('{"a": 1}') == '{"a": 1}'

    def test_structured_values_become_json(self) -> None:
        assert encode(Artist(name="Jeff Mills")) == '{"name":"Jeff Mills","aliases":[]}'
        assert encode({"n": 1}) == '{"n":1}'
        assert encode(True) == "true"

    def test_none_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            encode(None)

    def test_unserializable_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            encode(object())

    def test_decode_as_requested_type(self) -> None:
        raw = '{"name":"Jeff Mills","aliases":["The Wizard"]}'

        assert decode(raw, Artist) == Artist(name="Jeff Mills", aliases=["The Wizard"])
        assert decode(raw, str) == raw
        assert decode(raw, dict) == {"name": "Jeff Mills", "aliases": ["The Wizard"]}

    def test_decode_mismatch_raises(self) -> None:
        with pytest.raises(DecodeError):
            decode('{"aliases": []}', Artist)
        with pytest.raises(DecodeError):
            decode("plain text", int)


# ======================================================================
# Records
# ======================================================================


class TestCacheRecord:
    NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_expiry_from_timeout(self) -> None:
        assert expiry_from(self.NOW, timedelta(seconds=10)) == self.NOW + timedelta(seconds=10)

    def test_no_timeout_never_expires(self) -> None:
        assert expiry_from(self.NOW, None) == NEVER_EXPIRES

    def test_overflow_is_clamped(self) -> None:
        assert expiry_from(self.NOW, timedelta.max) == NEVER_EXPIRES
        assert expiry_from(self.NOW, timedelta.min) == datetime.min.replace(tzinfo=timezone.utc)

    def test_is_expired(self) -> None:
        record = CacheRecord(key="k", value="v", valid_until=self.NOW)

        assert record.is_expired(self.NOW - timedelta(microseconds=1)) is False
        assert record.is_expired(self.NOW + timedelta(microseconds=1)) is True

    def test_records_are_frozen(self) -> None:
        record = CacheRecord(key="k", value="v", valid_until=self.NOW)
        with pytest.raises(ValidationError):
            record.value = "other"  # type: ignore[misc]

    def test_instant_text_is_sortable(self) -> None:
        early = format_instant(self.NOW)
        late = format_instant(NEVER_EXPIRES)

        assert early == "2026-01-01T12:00:00.000000Z"
        assert late == "9999-12-31T23:59:59.999999Z"
        assert early < late
        assert format_instant(datetime(5, 1, 1, tzinfo=timezone.utc)) < early
        assert parse_instant(early) == self.NOW
        assert parse_instant(late) == NEVER_EXPIRES
