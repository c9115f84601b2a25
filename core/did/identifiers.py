"""
DID identifiers.

Identifiers have the form ``did:<ledger>:<version>:<address>``, e.g.
``did:xrpl:1:rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh``. The identifier is a pure
function of the controlling address and never changes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from core.crypto.addresses import is_valid_classic_address
from core.schemas.errors import InvalidFormatException
from core.schemas.versioning import DID_LEDGER, DID_METHOD_VERSION, is_supported_method_version

DID_PATTERN = re.compile(r"^did:(?P<ledger>[a-z0-9]+):(?P<version>[0-9]+):(?P<address>[^:]+)$")


@dataclass(frozen=True)
class DIDIdentifier:
    ledger: str
    version: str
    address: str

    def __str__(self) -> str:
        return f"did:{self.ledger}:{self.version}:{self.address}"


def validate_address(address: str) -> str:
    """
    Raises:
        InvalidFormatException: If address is not a checksummed classic address.
    """
    if not isinstance(address, str) or not is_valid_classic_address(address):
        raise InvalidFormatException("Invalid ledger address", value=str(address))
    return address


def format_did(
    address: str,
    *,
    ledger: str = DID_LEDGER,
    version: str = DID_METHOD_VERSION,
) -> str:
    """Derive the identifier for a controlling address."""
    validate_address(address)
    return str(DIDIdentifier(ledger=ledger, version=version, address=address))


def parse_did(did_id: str, *, ledger: str = DID_LEDGER) -> DIDIdentifier:
    """
    Parse and validate an identifier.

    Raises:
        InvalidFormatException: On wrong shape, foreign ledger, unsupported
            method version or a bad address.
    """
    if not isinstance(did_id, str):
        raise InvalidFormatException("DID must be a string")

    match = DID_PATTERN.match(did_id)
    if match is None:
        raise InvalidFormatException(
            "DID must have the form did:<ledger>:<version>:<address>",
            value=did_id,
        )
    if match["ledger"] != ledger:
        raise InvalidFormatException(f"DID is not a did:{ledger} identifier", value=did_id)
    if not is_supported_method_version(match["version"]):
        raise InvalidFormatException(
            f"Unsupported DID method version {match['version']}",
            value=did_id,
        )

    validate_address(match["address"])
    return DIDIdentifier(
        ledger=match["ledger"],
        version=match["version"],
        address=match["address"],
    )


def is_valid_did(did_id: str) -> bool:
    try:
        parse_did(did_id)
    except InvalidFormatException:
        return False
    return True


__all__ = [
    "DID_PATTERN",
    "DIDIdentifier",
    "validate_address",
    "format_did",
    "parse_did",
    "is_valid_did",
]
