"""
Schemas & Canonicalization
File: __init__.py

Purpose: Export the public API for the schemas module.
Schema modules must not import from core.crypto (hashing depends on
canonical serialization, not the other way round).
"""

# Version constants
from .versioning import (
    DID_CONTEXT,
    DID_LEDGER,
    DID_METHOD_VERSION,
    LEDGER_FIELD_LIMIT,
    RECORD_SCHEMA_VERSION,
    SUPPORTED_METHOD_VERSIONS,
    is_supported_method_version,
)

# Canonical serialization API
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonical_bytes,
    canonical_equals,
    canonicalize_value,
    dumps_canonical,
    ensure_utc,
    format_datetime_canonical,
    loads_canonical,
)

# Error models and exceptions
from .errors import (
    AlreadyTetheredException,
    CanonicalizationException,
    DIDNotVerifiedException,
    DocumentTooLargeException,
    EmptyInputException,
    ErrorCodes,
    IndexOutOfRangeException,
    InvalidFormatException,
    InvalidStateTransitionException,
    LedgerUnavailableException,
    NotFoundException,
    SettlementRejectedException,
    SignatureInvalidException,
    VioletteError,
    VioletteException,
)

# Domain models
from .accounts import LedgerAccount
from .entries import Entry
from .did import (
    DIDDocument,
    DIDRecord,
    DIDState,
    EncodingStrategy,
    PublicKey,
    ServiceEndpoint,
    UserMetadata,
    VerificationStatus,
)
from .tethering import (
    MirrorAssetRef,
    OriginalAssetRef,
    TetheringProof,
    TetheringRecord,
)
from .anchors import AnchorRecord, SnapshotLeaf
from .results import (
    AnchorResult,
    AnchorVerification,
    DIDCreationResult,
    DIDOperationResult,
    DIDResolutionResult,
)

__all__ = [
    # Versioning
    "DID_CONTEXT",
    "DID_LEDGER",
    "DID_METHOD_VERSION",
    "LEDGER_FIELD_LIMIT",
    "RECORD_SCHEMA_VERSION",
    "SUPPORTED_METHOD_VERSIONS",
    "is_supported_method_version",
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "canonical_bytes",
    "canonical_equals",
    "canonicalize_value",
    "dumps_canonical",
    "ensure_utc",
    "format_datetime_canonical",
    "loads_canonical",
    # Errors
    "AlreadyTetheredException",
    "CanonicalizationException",
    "DIDNotVerifiedException",
    "DocumentTooLargeException",
    "EmptyInputException",
    "ErrorCodes",
    "IndexOutOfRangeException",
    "InvalidFormatException",
    "InvalidStateTransitionException",
    "LedgerUnavailableException",
    "NotFoundException",
    "SettlementRejectedException",
    "SignatureInvalidException",
    "VioletteError",
    "VioletteException",
    # Domain
    "LedgerAccount",
    "Entry",
    "DIDDocument",
    "DIDRecord",
    "DIDState",
    "EncodingStrategy",
    "PublicKey",
    "ServiceEndpoint",
    "UserMetadata",
    "VerificationStatus",
    "MirrorAssetRef",
    "OriginalAssetRef",
    "TetheringProof",
    "TetheringRecord",
    "AnchorRecord",
    "SnapshotLeaf",
    # Results
    "AnchorResult",
    "AnchorVerification",
    "DIDCreationResult",
    "DIDOperationResult",
    "DIDResolutionResult",
]
