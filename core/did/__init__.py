"""
Decentralized Identifiers

Identifier parsing, document construction, the size-bounded ledger codec,
local identity records and the lifecycle manager that ties them to a
ledger gateway.

Usage:
    from core.did import DIDLifecycleManager, InMemoryRecordStore

    manager = DIDLifecycleManager(gateway, InMemoryRecordStore())
    created = await manager.create(metadata)
    resolved = await manager.resolve(created.did_id)
"""

from .identifiers import (
    DID_PATTERN,
    DIDIdentifier,
    validate_address,
    format_did,
    parse_did,
    is_valid_did,
)

from .documents import (
    KEY_TYPES,
    KEY_CURVE,
    DIARY_SERVICE_TYPE,
    DIARY_SERVICE_ENDPOINT,
    key_reference,
    build_public_key,
    diary_service,
    build_full_document,
    build_placeholder,
    build_thin_document,
)

from .codec import (
    DEFAULT_REFERENCE_BASE_URL,
    EncodedDocument,
    DecodedDocument,
    document_bytes,
    classify,
    DIDDocumentCodec,
)

from .store import (
    DIDRecordStore,
    InMemoryRecordStore,
    JsonFileRecordStore,
)

from .lifecycle import (
    TRANSITIONS,
    can_transition,
    check_transition,
    DIDLifecycleManager,
)

__all__ = [
    # Identifiers
    "DID_PATTERN",
    "DIDIdentifier",
    "validate_address",
    "format_did",
    "parse_did",
    "is_valid_did",
    # Documents
    "KEY_TYPES",
    "KEY_CURVE",
    "DIARY_SERVICE_TYPE",
    "DIARY_SERVICE_ENDPOINT",
    "key_reference",
    "build_public_key",
    "diary_service",
    "build_full_document",
    "build_placeholder",
    "build_thin_document",
    # Codec
    "DEFAULT_REFERENCE_BASE_URL",
    "EncodedDocument",
    "DecodedDocument",
    "document_bytes",
    "classify",
    "DIDDocumentCodec",
    # Records
    "DIDRecordStore",
    "InMemoryRecordStore",
    "JsonFileRecordStore",
    # Lifecycle
    "TRANSITIONS",
    "can_transition",
    "check_transition",
    "DIDLifecycleManager",
]
