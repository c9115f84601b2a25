"""
Common test fixtures shared by all modules.

Provides factory functions for core ledger-core data structures:
- Entry lists (diary snapshots)
- UserMetadata / DIDDocument
- Asset references for tethering
- A lifecycle manager wired to the in-memory ledger

These are the foundational building blocks used by the unit tests.
"""

from datetime import datetime, timezone
from typing import Optional

from core.did.documents import build_full_document
from core.did.lifecycle import DIDLifecycleManager
from core.did.store import InMemoryRecordStore
from core.config.runtime import LedgerConfig
from core.crypto.addresses import encode_classic_address
from core.ledger.memory import InMemoryLedgerGateway
from core.schemas.did import DIDDocument, ServiceEndpoint, UserMetadata
from core.schemas.entries import Entry
from core.schemas.tethering import MirrorAssetRef, OriginalAssetRef


FIXED_NOW = datetime(2026, 3, 14, 9, 26, 53, tzinfo=timezone.utc)

# The genesis account: a real, checksummed classic address
GENESIS_ADDRESS = "rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh"
GENESIS_DID = f"did:xrpl:1:{GENESIS_ADDRESS}"

# A second, unrelated account
OTHER_ADDRESS = encode_classic_address(bytes(range(1, 21)))
OTHER_DID = f"did:xrpl:1:{OTHER_ADDRESS}"

SAMPLE_PUBLIC_KEY_HEX = "0330E7FC9D56BB25D6893BA3F317AE5BCF33B3291BD63DB32654A313222F7FD020"


def fixed_clock() -> datetime:
    return FIXED_NOW


# =============================================================================
# Entries
# =============================================================================

def make_entry(n: int, content: Optional[str] = None, tags: tuple[str, ...] = ()) -> Entry:
    return Entry.from_content(
        id=f"entry-{n:03d}",
        content=content if content is not None else f"Dear diary, day {n}.",
        timestamp=1_767_225_600_000 + n * 86_400_000,
        tags=tags,
    )


def make_entries(count: int) -> list[Entry]:
    """``count`` distinct entries in creation order."""
    return [make_entry(i) for i in range(1, count + 1)]


# =============================================================================
# Documents
# =============================================================================

def make_metadata(
    anonymized_id: str = "anon-7f3c",
    anonymous_mode: bool = False,
    services: Optional[list[ServiceEndpoint]] = None,
) -> UserMetadata:
    return UserMetadata(
        anonymized_id=anonymized_id,
        created_at=FIXED_NOW,
        anonymous_mode=anonymous_mode,
        services=services or [],
    )


def make_document(
    did_id: str = GENESIS_DID,
    public_key_hex: str = SAMPLE_PUBLIC_KEY_HEX,
    metadata: Optional[UserMetadata] = None,
) -> DIDDocument:
    """A full document; always larger than the ledger ceiling."""
    return build_full_document(did_id, public_key_hex, metadata or make_metadata())


def make_small_document(did_id: str = GENESIS_DID) -> DIDDocument:
    """Identifier-only document; small enough to be stored inline."""
    return DIDDocument(id=did_id)


def make_padded_document(target_size: int, did_id: str = GENESIS_DID) -> DIDDocument:
    """Document whose canonical form is at least ``target_size`` bytes."""
    from core.did.codec import document_bytes

    padding = "x"
    while True:
        document = DIDDocument(
            id=did_id,
            service=[ServiceEndpoint(id=f"{did_id}#pad", type="Padding", service_endpoint=padding)],
        )
        if len(document_bytes(document)) >= target_size:
            return document
        padding += "x" * (target_size - len(document_bytes(document)))


# =============================================================================
# Tethering
# =============================================================================

def make_original(token_id: str = "1", contract: str = "0xAbC0000000000000000000000000000000000001") -> OriginalAssetRef:
    return OriginalAssetRef(chain="ethereum", contract=contract, token_id=token_id)


def make_mirror(token_id: str = "1") -> MirrorAssetRef:
    return MirrorAssetRef(chain="xrpl", token_id=f"00080000{token_id:0>56}", tx_hash="AB" * 32)


# =============================================================================
# Lifecycle
# =============================================================================

def make_manager(
    gateway: Optional[InMemoryLedgerGateway] = None,
    store: Optional[InMemoryRecordStore] = None,
    **config_overrides,
) -> DIDLifecycleManager:
    """Manager over the in-memory ledger with short timeouts and no retry delay."""
    settings = {"timeout": 0.5, "retry_delay": 0.0, **config_overrides}
    config = LedgerConfig(**settings)
    return DIDLifecycleManager(
        gateway or InMemoryLedgerGateway(),
        store=store if store is not None else InMemoryRecordStore(),
        config=config,
        clock=fixed_clock,
    )
