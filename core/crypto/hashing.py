"""
Hashing Utilities

The single content-addressing primitive shared by the Merkle engine, the
DID codec and the anchoring service.

This module provides:
- SHA-256 hashing for raw bytes (the hash primitive H)
- Canonical hashing for objects (via dumps_canonical)
- Order-normalized pair hashing for Merkle parents
- Hex encoding/decoding with 0x prefix

Determinism Notes:
- Always hash raw bytes exactly as given
- Objects are hashed through canonical JSON only, never through repr/str
"""
from __future__ import annotations

import hashlib
from typing import Any

from core.schemas.canonical import canonical_bytes

# Width of every digest produced by H
DIGEST_SIZE: int = 32


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def hash_canonical(obj: Any) -> bytes:
    """
    Hash an object using canonical JSON serialization.

    Rule: sha256(dumps_canonical(obj).encode("utf-8"))

    Raises:
        CanonicalizationException: If the object has no canonical form.
    """
    return sha256(canonical_bytes(obj))


def normalize_pair(left: bytes, right: bytes) -> tuple[bytes, bytes]:
    """Order two child hashes lexicographically (byte order)."""
    if right < left:
        return right, left
    return left, right


def hash_pair(left: bytes, right: bytes) -> bytes:
    """
    Order-normalized parent hash: sha256(min(l, r) + max(l, r)).

    Swapping the children never changes the parent, so a proof verifier
    does not need to know which side each sibling sat on.
    """
    first, second = normalize_pair(left, right)
    return sha256(first + second)


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert a hexadecimal string to bytes.

    The 0x prefix is optional here: ledger fields and diary exports carry
    bare hex while internal references use to_hex().

    Raises:
        ValueError: On odd length or invalid hex characters.
    """
    hex_content = hex_string[2:] if hex_string.startswith(("0x", "0X")) else hex_string

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length, got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def is_digest(value: Any) -> bool:
    """True for a bytes value of exactly DIGEST_SIZE length."""
    return isinstance(value, bytes) and len(value) == DIGEST_SIZE


__all__ = [
    "DIGEST_SIZE",
    "sha256",
    "hash_canonical",
    "normalize_pair",
    "hash_pair",
    "to_hex",
    "from_hex",
    "is_digest",
]
