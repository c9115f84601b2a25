"""
Core cryptographic utilities.

Hashing (the shared hash primitive), secp256k1 key pairs and classic
ledger address encoding.
"""
from .hashing import (
    DIGEST_SIZE,
    sha256,
    hash_canonical,
    normalize_pair,
    hash_pair,
    to_hex,
    from_hex,
    is_digest,
)
from .addresses import (
    encode_classic_address,
    decode_classic_address,
    is_valid_classic_address,
)
from .signatures import (
    KeyPair,
    Signature,
    verify_signature,
)

__all__ = [
    "DIGEST_SIZE",
    "sha256",
    "hash_canonical",
    "normalize_pair",
    "hash_pair",
    "to_hex",
    "from_hex",
    "is_digest",
    "encode_classic_address",
    "decode_classic_address",
    "is_valid_classic_address",
    "KeyPair",
    "Signature",
    "verify_signature",
]
