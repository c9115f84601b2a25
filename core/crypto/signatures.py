"""
Key pairs and signatures for ledger accounts.

secp256k1 ECDSA (the curve behind XRPL "EcdsaKoblitzPublicKey" keys).
Public keys are exchanged as upper-case hex of the 33-byte compressed point,
the same form the ledger reports in account data.
"""
from __future__ import annotations

from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

SIGNATURE_SCHEME = "ecdsa-secp256k1"


@dataclass(frozen=True)
class Signature:
    signer_id: str
    signature_hex: str
    scheme: str = SIGNATURE_SCHEME


class KeyPair:
    """Holds a secp256k1 private key and exposes its compressed public key."""

    def __init__(self, private_key: ec.EllipticCurvePrivateKey):
        if not isinstance(private_key.curve, ec.SECP256K1):
            raise ValueError("Key must be on secp256k1")
        self.private_key = private_key
        self.public_key = private_key.public_key()

    @classmethod
    def generate(cls) -> "KeyPair":
        """Generate a fresh random key pair."""
        return cls(ec.generate_private_key(ec.SECP256K1()))

    @classmethod
    def from_secret(cls, secret: int) -> "KeyPair":
        """Derive a key pair from a private scalar (deterministic; for fixtures and simulators)."""
        return cls(ec.derive_private_key(secret, ec.SECP256K1()))

    @property
    def public_key_bytes(self) -> bytes:
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.CompressedPoint,
        )

    @property
    def public_key_hex(self) -> str:
        return self.public_key_bytes.hex().upper()

    def sign(self, data: bytes, signer_id: str = "") -> Signature:
        """Sign data with ECDSA/SHA-256; returns the DER signature as hex."""
        der = self.private_key.sign(data, ec.ECDSA(hashes.SHA256()))
        return Signature(signer_id=signer_id, signature_hex=der.hex())


def load_public_key(public_key_hex: str) -> ec.EllipticCurvePublicKey:
    """
    Load a compressed (or uncompressed) secp256k1 public key from hex.

    Raises:
        ValueError: If the hex does not encode a point on the curve.
    """
    return ec.EllipticCurvePublicKey.from_encoded_point(
        ec.SECP256K1(), bytes.fromhex(public_key_hex)
    )


def verify_signature(data: bytes, signature_hex: str, public_key_hex: str) -> bool:
    """
    Verify an ECDSA/SHA-256 signature produced by KeyPair.sign.

    Returns False for malformed keys or signatures instead of raising.
    """
    try:
        public_key = load_public_key(public_key_hex)
        public_key.verify(
            bytes.fromhex(signature_hex),
            data,
            ec.ECDSA(hashes.SHA256()),
        )
        return True
    except (InvalidSignature, ValueError):
        return False
