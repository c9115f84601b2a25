"""
Tethering Recorder

Binds cross-chain asset references to a verified DID.

Ownership on the home chain and mirror minting are checked by external
collaborators; the recorder accepts their output, checks it against the
identity record, and appends an immutable TetheringRecord. It never talks
to a ledger.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, Union

from core.crypto.hashing import DIGEST_SIZE, from_hex, sha256, to_hex
from core.crypto.signatures import verify_signature
from core.did.identifiers import parse_did
from core.did.store import DIDRecordStore
from core.merkle import compute_merkle_root
from core.schemas.canonical import canonical_bytes, ensure_utc, format_datetime_canonical
from core.schemas.did import ServiceEndpoint
from core.schemas.errors import (
    AlreadyTetheredException,
    DIDNotVerifiedException,
    InvalidFormatException,
    NotFoundException,
    SignatureInvalidException,
)
from core.schemas.tethering import (
    MirrorAssetRef,
    OriginalAssetRef,
    TetheringProof,
    TetheringRecord,
)

logger = logging.getLogger(__name__)

REGISTRY_SERVICE_TYPE = "CrossChainNFTRegistry"

OriginalInput = Union[OriginalAssetRef, dict[str, Any]]
MirrorInput = Union[MirrorAssetRef, dict[str, Any]]


def compute_asset_root(original_asset_refs: Iterable[OriginalAssetRef]) -> bytes:
    """Merkle root over original asset references, in the given order."""
    leaves = [sha256(canonical_bytes(ref.model_dump())) for ref in original_asset_refs]
    return compute_merkle_root(leaves)


def tethering_message(
    did_id: str,
    merkle_root: bytes,
    original_asset_refs: Iterable[OriginalAssetRef],
    mirror_asset_refs: Iterable[MirrorAssetRef],
) -> bytes:
    """Bytes the cross-chain verifier signs."""
    return canonical_bytes({
        "didId": did_id,
        "merkleRoot": to_hex(merkle_root),
        "originalAssets": [ref.model_dump() for ref in original_asset_refs],
        "mirrorAssets": [ref.model_dump() for ref in mirror_asset_refs],
    })


class TetheringRecorder:
    """
    Appends tethering records for verified DIDs.

    If ``verifier_public_key`` is given, every proof signature must verify
    against ``tethering_message(...)`` under that key.
    """

    def __init__(
        self,
        store: DIDRecordStore,
        *,
        verifier_public_key: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.verifier_public_key = verifier_public_key
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def tether(
        self,
        did_id: str,
        original_asset_refs: Iterable[OriginalInput],
        mirror_asset_refs: Iterable[MirrorInput],
        merkle_root: str,
        *,
        signature: str,
        timestamp: Optional[datetime] = None,
    ) -> TetheringRecord:
        """
        Bind asset references to a DID.

        Raises:
            InvalidFormatException: Malformed DID, root or references.
            NotFoundException: No local record for the DID.
            DIDNotVerifiedException: Record is not verified and active.
            AlreadyTetheredException: A reference is already bound to the DID.
            SignatureInvalidException: Signature does not verify.
        """
        parse_did(did_id)
        record = self.store.get(did_id)
        if record is None:
            raise NotFoundException(f"No identity record for {did_id}", did_id=did_id)
        if not record.is_active:
            raise DIDNotVerifiedException(did_id, record.state.value)

        root = self._parse_root(merkle_root)
        try:
            originals = tuple(OriginalAssetRef.model_validate(r) for r in original_asset_refs)
            mirrors = tuple(MirrorAssetRef.model_validate(r) for r in mirror_asset_refs)
        except ValueError as e:
            raise InvalidFormatException("Malformed asset reference", details={"error": str(e)}) from e
        if not originals and not mirrors:
            raise InvalidFormatException("Nothing to tether: no asset references supplied")

        seen = self.tethered_keys(did_id)
        duplicates: list[str] = []
        for ref in originals:
            if ref.key in seen:
                duplicates.append(ref.key)
            seen.add(ref.key)
        if duplicates:
            raise AlreadyTetheredException(did_id, duplicates)

        if self.verifier_public_key is not None:
            message = tethering_message(did_id, root, originals, mirrors)
            if not verify_signature(message, signature, self.verifier_public_key):
                raise SignatureInvalidException()

        tethering = TetheringRecord(
            did_id=did_id,
            original_asset_refs=originals,
            mirror_asset_refs=mirrors,
            proof=TetheringProof(
                merkle_root=to_hex(root),
                signature=signature,
                timestamp=ensure_utc(timestamp or self._clock()),
            ),
        )
        self.store.append_tethering(tethering)
        logger.info(
            "Tethered %d original / %d mirror asset(s) to %s",
            len(originals), len(mirrors), did_id,
        )
        return tethering

    @staticmethod
    def _parse_root(merkle_root: str) -> bytes:
        try:
            root = from_hex(merkle_root)
        except (AttributeError, ValueError) as e:
            raise InvalidFormatException("Merkle root is not hex", value=str(merkle_root)) from e
        if len(root) != DIGEST_SIZE:
            raise InvalidFormatException(
                f"Merkle root must be {DIGEST_SIZE} bytes, got {len(root)}",
                value=merkle_root,
            )
        return root

    def history(self, did_id: str) -> list[TetheringRecord]:
        """All tethering records for a DID, oldest first."""
        return self.store.list_tethering(did_id)

    def tethered_keys(self, did_id: str) -> set[str]:
        return {
            ref.key
            for tethering in self.history(did_id)
            for ref in tethering.original_asset_refs
        }

    def registry_service(self, did_id: str) -> ServiceEndpoint:
        """
        Service endpoint listing every asset tethered to the DID, for
        inclusion in the next document update.
        """
        records = self.history(did_id)
        last_updated = (
            format_datetime_canonical(max(r.proof.timestamp for r in records))
            if records else None
        )
        endpoint: dict[str, Any] = {
            "originalAssets": [
                ref.model_dump() for r in records for ref in r.original_asset_refs
            ],
            "mirrorAssets": [
                ref.model_dump() for r in records for ref in r.mirror_asset_refs
            ],
        }
        if last_updated is not None:
            endpoint["lastUpdated"] = last_updated

        return ServiceEndpoint(
            id=f"{did_id}#cross-chain-nft-registry",
            type=REGISTRY_SERVICE_TYPE,
            service_endpoint=endpoint,
        )


__all__ = [
    "REGISTRY_SERVICE_TYPE",
    "compute_asset_root",
    "tethering_message",
    "TetheringRecorder",
]
