"""
Hashing Unit Tests
Tests for core/crypto/hashing.py

Tests:
- sha256 known values
- hash_canonical stability for dict key ordering differences
- order-normalized pair hashing
- to_hex/from_hex conversions
"""
import hashlib

import pytest

from core.crypto.hashing import (
    DIGEST_SIZE,
    from_hex,
    hash_canonical,
    hash_pair,
    is_digest,
    normalize_pair,
    sha256,
    to_hex,
)


class TestSha256:
    """Tests for sha256() function."""

    def test_sha256_known_value(self):
        expected = hashlib.sha256(b"hello").digest()
        result = sha256(b"hello")

        assert result == expected
        assert len(result) == DIGEST_SIZE

    def test_sha256_empty_bytes(self):
        assert sha256(b"") == hashlib.sha256(b"").digest()

    def test_sha256_different_inputs_different_outputs(self):
        assert sha256(b"input1") != sha256(b"input2")


class TestHashCanonical:
    """Tests for hash_canonical()."""

    def test_key_order_does_not_matter(self):
        assert hash_canonical({"b": 2, "a": 1}) == hash_canonical({"a": 1, "b": 2})

    def test_matches_manual_canonical_hash(self):
        expected = hashlib.sha256(b'{"a":1,"b":[1,2]}').digest()
        assert hash_canonical({"b": [1, 2], "a": 1}) == expected

    def test_list_order_matters(self):
        assert hash_canonical([1, 2]) != hash_canonical([2, 1])


class TestHashPair:
    """Tests for the order-normalized parent hash."""

    def test_commutative(self):
        a, b = sha256(b"a"), sha256(b"b")
        assert hash_pair(a, b) == hash_pair(b, a)

    def test_hashes_smaller_child_first(self):
        a, b = sha256(b"a"), sha256(b"b")
        low, high = sorted([a, b])
        assert hash_pair(a, b) == hashlib.sha256(low + high).digest()

    def test_normalize_pair_orders_bytes(self):
        assert normalize_pair(b"\x02", b"\x01") == (b"\x01", b"\x02")
        assert normalize_pair(b"\x01", b"\x02") == (b"\x01", b"\x02")


class TestHexConversions:
    """Tests for to_hex/from_hex."""

    def test_to_hex_prefixed(self):
        assert to_hex(bytes.fromhex("deadbeef")) == "0xdeadbeef"

    def test_from_hex_accepts_bare_and_prefixed(self):
        assert from_hex("0xdeadbeef") == from_hex("deadbeef") == b"\xde\xad\xbe\xef"

    def test_from_hex_rejects_odd_length(self):
        with pytest.raises(ValueError, match="even length"):
            from_hex("0xabc")

    def test_from_hex_rejects_invalid_characters(self):
        with pytest.raises(ValueError, match="Invalid hex"):
            from_hex("zz")

    def test_round_trip(self):
        digest = sha256(b"round trip")
        assert from_hex(to_hex(digest)) == digest


class TestIsDigest:

    def test_digest(self):
        assert is_digest(sha256(b"x"))

    def test_wrong_length_or_type(self):
        assert not is_digest(b"short")
        assert not is_digest(sha256(b"x").hex())
        assert not is_digest(None)
