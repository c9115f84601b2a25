"""
Schemas & Canonicalization
File: versioning.py

Purpose: Centralize DID method and document version constants.
Kept import-free so every other schema module can depend on it.
"""

from typing import Literal

# W3C DID context written into every document
DID_CONTEXT: str = "https://w3id.org/did/v1"

# DID method name and method-specific version: did:<ledger>:<version>:<address>
DID_LEDGER: str = "xrpl"
DID_METHOD_VERSION: str = "1"

# On-ledger ceiling for DIDDocument / URI fields (bytes)
LEDGER_FIELD_LIMIT: int = 256

# Schema version of persisted off-ledger records
RECORD_SCHEMA_VERSION: str = "v1"

RecordSchemaVersion = Literal["v1"]

SUPPORTED_METHOD_VERSIONS: frozenset[str] = frozenset({"1"})


def is_supported_method_version(version: str) -> bool:
    """Check if a DID method version is supported without raising."""
    return version in SUPPORTED_METHOD_VERSIONS
