"""
DID document builders.

The full document (published off-ledger, kept in the DIDRecord) and the
compact placeholder that rides on the ledger when the full body does not
fit.
"""

from __future__ import annotations

from core.schemas.did import DIDDocument, PublicKey, ServiceEndpoint, UserMetadata
from core.schemas.versioning import DID_CONTEXT

KEY_TYPES = ["CryptographicKey", "EcdsaKoblitzPublicKey"]
KEY_CURVE = "secp256k1"

DIARY_SERVICE_TYPE = "VioletteDiaryService"
DIARY_SERVICE_ENDPOINT = "https://violette.app/profile"

# Short key reference used in placeholders to stay under the ledger ceiling
PLACEHOLDER_KEY_ID = "#k1"


def key_reference(did_id: str) -> str:
    return f"{did_id}#keys-1"


def build_public_key(did_id: str, public_key_hex: str) -> PublicKey:
    return PublicKey(
        id=key_reference(did_id),
        type=list(KEY_TYPES),
        curve=KEY_CURVE,
        public_key_hex=public_key_hex,
    )


def diary_service(did_id: str) -> ServiceEndpoint:
    return ServiceEndpoint(
        id=f"{did_id}#violette-service",
        type=DIARY_SERVICE_TYPE,
        service_endpoint=DIARY_SERVICE_ENDPOINT,
    )


def build_full_document(did_id: str, public_key_hex: str, metadata: UserMetadata) -> DIDDocument:
    """
    Full identity document for a new DID.

    In anonymous mode no service endpoints are published at all; otherwise
    the diary service comes first, followed by any caller-supplied services.
    """
    services = None
    if not metadata.anonymous_mode:
        services = [diary_service(did_id), *metadata.services]

    return DIDDocument(
        context=DID_CONTEXT,
        id=did_id,
        public_keys=[build_public_key(did_id, public_key_hex)],
        authentication=[key_reference(did_id)],
        service=services,
    )


def build_placeholder(document: DIDDocument) -> DIDDocument:
    """
    Minimal stand-in: context, id and the first public key only.

    Service and authentication entries are stripped and the key is reduced
    to its type and material.
    """
    public_keys: list[PublicKey] = []
    if document.public_keys:
        first = document.public_keys[0]
        public_keys.append(
            PublicKey(
                id=PLACEHOLDER_KEY_ID,
                type=[first.type[-1]],
                public_key_hex=first.public_key_hex,
            )
        )
    return DIDDocument(context=document.context, id=document.id, public_keys=public_keys)


def build_thin_document(did_id: str) -> DIDDocument:
    """Identifier-only document, used when the ledger carries nothing but a locator."""
    return DIDDocument(context=DID_CONTEXT, id=did_id)


__all__ = [
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
]
