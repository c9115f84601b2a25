"""
Classic ledger addresses.

XRPL classic addresses are base58check strings over the ledger's own
alphabet: version byte 0x00, a 20-byte account ID, and a 4-byte
double-SHA-256 checksum. The leading zero byte is why every address
starts with "r".
"""
from __future__ import annotations

import re

import base58

from core.crypto.hashing import sha256

ACCOUNT_ID_PREFIX = b"\x00"
ACCOUNT_ID_SIZE = 20

CLASSIC_ADDRESS_PATTERN = re.compile(r"^r[1-9A-HJ-NP-Za-km-z]{24,33}$")


def encode_classic_address(account_id: bytes) -> str:
    """Encode a 20-byte account ID as a classic "r..." address."""
    if len(account_id) != ACCOUNT_ID_SIZE:
        raise ValueError(f"Account ID must be {ACCOUNT_ID_SIZE} bytes, got {len(account_id)}")
    encoded = base58.b58encode_check(ACCOUNT_ID_PREFIX + account_id, alphabet=base58.XRP_ALPHABET)
    return encoded.decode("ascii")


def decode_classic_address(address: str) -> bytes:
    """
    Decode a classic address back to its account ID.

    Raises:
        ValueError: On bad characters, wrong length, prefix or checksum.
    """
    try:
        payload = base58.b58decode_check(address, alphabet=base58.XRP_ALPHABET)
    except ValueError as e:
        raise ValueError(f"Invalid classic address {address!r}: {e}") from e
    if len(payload) != len(ACCOUNT_ID_PREFIX) + ACCOUNT_ID_SIZE:
        raise ValueError(f"Address decodes to {len(payload)} bytes")
    if not payload.startswith(ACCOUNT_ID_PREFIX):
        raise ValueError("Address has wrong version prefix")
    return payload[len(ACCOUNT_ID_PREFIX):]


def is_valid_classic_address(address: str) -> bool:
    """Shape check plus checksum check."""
    if not isinstance(address, str) or not CLASSIC_ADDRESS_PATTERN.match(address):
        return False
    try:
        decode_classic_address(address)
    except ValueError:
        return False
    return True


def simulated_account_id(public_key: bytes) -> bytes:
    """
    Account ID used by the in-memory ledger: first 20 bytes of SHA-256.

    Real ledgers assign addresses themselves (see XrplRpcGateway.generate_account).
    """
    return sha256(public_key)[:ACCOUNT_ID_SIZE]
