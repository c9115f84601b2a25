"""
Schemas & Canonicalization
File: tests/unit/test_canonical_json.py

Purpose: Unit tests for canonical JSON serialization.
These tests ensure deterministic serialization across runs, which the
Merkle leaves and the DID codec's size decision both depend on.
"""

import math
from datetime import datetime, timedelta, timezone
from enum import Enum

import pytest
from pydantic import BaseModel, ConfigDict

from core.schemas import (
    CanonicalizationException,
    DIDDocument,
    Entry,
    canonical_bytes,
    canonical_equals,
    canonicalize_value,
    dumps_canonical,
    ensure_utc,
    format_datetime_canonical,
    loads_canonical,
)


# =============================================================================
# Test Fixtures
# =============================================================================


class SampleEnum(str, Enum):
    """Sample enum for testing."""
    OPTION_A = "option_a"
    OPTION_B = "option_b"


class SampleModel(BaseModel):
    """Sample Pydantic model for testing."""
    model_config = ConfigDict(extra="forbid")

    name: str
    value: int
    optional_field: str | None = None


@pytest.fixture
def sample_datetime_naive() -> datetime:
    """A naive datetime (no timezone info)."""
    return datetime(2026, 1, 27, 21, 35, 0)


@pytest.fixture
def sample_datetime_utc() -> datetime:
    """A UTC-aware datetime."""
    return datetime(2026, 1, 27, 21, 35, 0, tzinfo=timezone.utc)


# =============================================================================
# Datetime handling
# =============================================================================


class TestDatetimes:

    def test_naive_treated_as_utc(self, sample_datetime_naive, sample_datetime_utc):
        assert ensure_utc(sample_datetime_naive) == sample_datetime_utc

    def test_aware_converted_to_utc(self):
        plus_two = datetime(2026, 1, 27, 23, 35, 0, tzinfo=timezone(timedelta(hours=2)))
        assert ensure_utc(plus_two).hour == 21
        assert ensure_utc(plus_two).tzinfo == timezone.utc

    def test_format_without_microseconds(self, sample_datetime_utc):
        assert format_datetime_canonical(sample_datetime_utc) == "2026-01-27T21:35:00Z"

    def test_format_with_microseconds(self):
        dt = datetime(2026, 1, 27, 21, 35, 0, 1500, tzinfo=timezone.utc)
        assert format_datetime_canonical(dt) == "2026-01-27T21:35:00.001500Z"


# =============================================================================
# dumps_canonical
# =============================================================================


class TestDumpsCanonical:

    def test_sorted_keys_no_whitespace(self):
        assert dumps_canonical({"b": 2, "a": 1}) == '{"a":1,"b":2}'

    def test_nested_keys_sorted(self):
        assert dumps_canonical({"z": {"y": 1, "x": 2}}) == '{"z":{"x":2,"y":1}}'

    def test_none_values_dropped(self):
        assert dumps_canonical({"a": 1, "b": None}) == '{"a":1}'

    def test_unicode_kept(self):
        assert dumps_canonical({"mood": "été"}) == '{"mood":"été"}'
        assert canonical_bytes({"mood": "été"}) == '{"mood":"été"}'.encode("utf-8")

    def test_bytes_as_hex(self):
        assert dumps_canonical({"h": b"\x01\xff"}) == '{"h":"01ff"}'

    def test_enum_value(self):
        assert dumps_canonical({"e": SampleEnum.OPTION_B}) == '{"e":"option_b"}'

    def test_datetime(self, sample_datetime_naive):
        assert dumps_canonical({"t": sample_datetime_naive}) == '{"t":"2026-01-27T21:35:00Z"}'

    def test_pydantic_model_excludes_none(self):
        model = SampleModel(name="n", value=1)
        assert dumps_canonical(model) == '{"name":"n","value":1}'

    def test_document_uses_wire_aliases(self):
        text = dumps_canonical(DIDDocument(id="did:xrpl:1:rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh"))
        assert '"@context"' in text
        assert '"publicKey":[]' in text

    def test_tuples_as_lists(self):
        assert dumps_canonical({"t": (1, 2)}) == '{"t":[1,2]}'

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_floats_rejected(self, value):
        with pytest.raises(CanonicalizationException):
            dumps_canonical({"x": value})

    def test_unsupported_type_rejected(self):
        with pytest.raises(CanonicalizationException, match="set"):
            canonicalize_value({1, 2})


class TestDeterminism:

    def test_same_object_same_bytes(self):
        obj = {"b": [3, {"d": 1, "c": 2}], "a": "x"}
        assert dumps_canonical(obj) == dumps_canonical(dict(reversed(list(obj.items()))))

    def test_entry_canonical_form_stable(self):
        entry = Entry.from_content("e-1", "content", 1_700_000_000_000, tags=["b", "a"])
        expected = (
            '{"contentHash":"' + entry.content_hash.hex() + '",'
            '"id":"e-1","tags":["b","a"],"timestamp":1700000000000}'
        )
        assert dumps_canonical(entry.canonical_form()) == expected

    def test_loads_round_trip(self):
        text = dumps_canonical({"a": [1, 2], "b": "c"})
        assert loads_canonical(text) == {"a": [1, 2], "b": "c"}
        assert loads_canonical(text.encode("utf-8")) == {"a": [1, 2], "b": "c"}

    def test_canonical_equals(self):
        assert canonical_equals({"a": 1, "b": 2}, {"b": 2, "a": 1})
        assert not canonical_equals({"a": 1}, {"a": 2})
        assert not canonical_equals({"a": math.nan}, {"a": math.nan})
