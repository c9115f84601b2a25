"""
Merkle root anchoring.

Publishes the root of a diary snapshot on the ledger as a memo on a no-op
AccountSet transaction, and stores the root together with the snapshot's
leaves so any entry can later be proven against the anchored root.

Submissions take the gateway's per-address lock, so an anchor never races a
DIDSet from the same account. An anchor with an unknown outcome marks the
address uncertain like any other write.

Memo:
    MemoType  MERKLE_ROOT
    MemoData  {"didId", "merkleRoot", "timestamp" (ms), "entryCount"}
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence, Union

from core.config.runtime import LedgerConfig
from core.crypto.hashing import from_hex, to_hex
from core.did.identifiers import parse_did
from core.did.store import DIDRecordStore
from core.ledger.gateway import LedgerGateway, LedgerTransaction, Memo, Pending, Rejected, Settled
from core.ledger.outcomes import rejection_error
from core.merkle import (
    MerkleProof,
    MerkleTree,
    build_leaf_proof,
    build_merkle_tree,
    compute_leaves,
    compute_merkle_root,
)
from core.schemas.accounts import LedgerAccount
from core.schemas.anchors import AnchorRecord, SnapshotLeaf
from core.schemas.canonical import dumps_canonical
from core.schemas.entries import Entry
from core.schemas.errors import (
    ErrorCodes,
    InvalidFormatException,
    LedgerUnavailableException,
    NotFoundException,
    VioletteError,
    VioletteException,
)
from core.schemas.results import AnchorResult, AnchorVerification

logger = logging.getLogger(__name__)

MEMO_TYPE = "MERKLE_ROOT"


def build_anchor_memo(did_id: str, merkle_root: bytes, entry_count: int, timestamp_ms: int) -> Memo:
    return Memo(
        memo_type=MEMO_TYPE,
        memo_data=dumps_canonical({
            "didId": did_id,
            "merkleRoot": to_hex(merkle_root),
            "timestamp": timestamp_ms,
            "entryCount": entry_count,
        }),
    )


class MerkleAnchorService:
    """
    Anchors snapshot roots and verifies them later.

    Usage:
        service = MerkleAnchorService(gateway, store)
        result = await service.anchor(did_id, account, entries)
        check = await service.verify_anchor(result.merkle_root)
        proof = service.prove_entry(result.merkle_root, entries, index=0)
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        store: DIDRecordStore,
        *,
        config: Optional[LedgerConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.config = config or LedgerConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _failure(self, error: VioletteError, merkle_root: bytes, entry_count: int) -> AnchorResult:
        return AnchorResult(
            success=False,
            error=error,
            merkle_root=to_hex(merkle_root),
            entry_count=entry_count,
        )

    async def anchor(
        self,
        did_id: str,
        account: LedgerAccount,
        entries: Sequence[Entry],
    ) -> AnchorResult:
        """
        Build the tree for ``entries`` and publish its root.

        Raises:
            EmptyInputException: If entries is empty (before any ledger call).
        """
        tree = build_merkle_tree(entries)

        try:
            address = parse_did(did_id, ledger=self.config.ledger).address
            if address != account.address:
                raise InvalidFormatException("Signing account does not control this DID", value=account.address)
        except InvalidFormatException as e:
            return self._failure(e.to_error_model(), tree.root, tree.entry_count)

        if self.gateway.ensure_connected() is not None:
            try:
                await asyncio.wait_for(self.gateway.connect(), self.config.timeout)
            except (asyncio.TimeoutError, LedgerUnavailableException):
                pass
            error = self.gateway.ensure_connected()
            if error is not None:
                return self._failure(error, tree.root, tree.entry_count)

        locks = self.gateway.address_locks
        async with locks.lock(address):
            if locks.is_uncertain(address):
                return self._failure(
                    VioletteError(
                        code=ErrorCodes.RECONCILIATION_REQUIRED,
                        message="A previous write for this address has an unknown outcome; resolve the DID before retrying",
                        details={"address": address},
                    ),
                    tree.root, tree.entry_count,
                )
            now = self._clock()
            outcome, error = await self._submit(account, did_id, tree, now)

        if error is not None:
            return self._failure(error, tree.root, tree.entry_count)
        if isinstance(outcome, Rejected):
            return self._failure(rejection_error(outcome), tree.root, tree.entry_count)

        record = AnchorRecord(
            did_id=did_id,
            merkle_root=to_hex(tree.root),
            entry_count=tree.entry_count,
            snapshot=tuple(
                SnapshotLeaf(entry_id=entry.id, leaf=leaf.hex())
                for entry, leaf in zip(entries, tree.leaves)
            ),
            transaction_hash=outcome.tx_hash,
            ledger_sequence=outcome.ledger_sequence,
            anchored_at=now,
        )
        self.store.append_anchor(record)
        logger.info("Anchored %s (%d entries) for %s", record.merkle_root, record.entry_count, did_id)

        return AnchorResult(
            success=True,
            merkle_root=record.merkle_root,
            entry_count=record.entry_count,
            record=record,
            verification_link=f"{self.config.explorer_url.rstrip('/')}/transactions/{outcome.tx_hash}",
        )

    async def _submit(
        self,
        account: LedgerAccount,
        did_id: str,
        tree: MerkleTree,
        now: datetime,
    ) -> tuple[Optional[Union[Settled, Rejected]], Optional[VioletteError]]:
        """Submit the anchor transaction. Caller holds the address lock."""
        address = account.address
        locks = self.gateway.address_locks
        tx = LedgerTransaction(
            transaction_type="AccountSet",
            account=address,
            memos=(build_anchor_memo(did_id, tree.root, tree.entry_count, int(now.timestamp() * 1000)),),
        )

        try:
            outcome = await asyncio.wait_for(self.gateway.submit(tx, account), self.config.timeout)
        except asyncio.TimeoutError:
            locks.mark_uncertain(address, "anchor timed out")
            return None, VioletteError(
                code=ErrorCodes.LEDGER_TIMEOUT,
                message=f"Anchor submission did not complete within {self.config.timeout}s",
            )
        except asyncio.CancelledError:
            locks.mark_uncertain(address, "anchor cancelled")
            raise
        except VioletteException as e:
            locks.mark_uncertain(address, f"anchor {e.code}")
            return None, e.to_error_model()

        if isinstance(outcome, Pending):
            locks.mark_uncertain(address, "anchor settlement not observed")
            return None, VioletteError(
                code=ErrorCodes.SETTLEMENT_PENDING,
                message="Anchor was submitted but settlement was not observed",
                details={"tx_hash": outcome.tx_hash},
            )
        return outcome, None

    async def verify_anchor(self, merkle_root: str) -> AnchorVerification:
        """
        Check that a root was anchored: a stored snapshot reproduces it and
        its transaction is settled on the ledger.
        """
        def result(is_valid: bool, reason: Optional[str] = None, record: Optional[AnchorRecord] = None) -> AnchorVerification:
            return AnchorVerification(
                is_valid=is_valid,
                merkle_root=merkle_root,
                record=record,
                verified_at=self._clock(),
                reason=reason,
            )

        try:
            root = from_hex(merkle_root)
        except (AttributeError, ValueError):
            return result(False, "Merkle root is not hex")

        record = self.store.find_anchor(to_hex(root))
        if record is None:
            return result(False, "No anchor recorded for this root")

        leaves = [bytes.fromhex(leaf.leaf) for leaf in record.snapshot]
        if compute_merkle_root(leaves) != root:
            return result(False, "Stored snapshot does not reproduce the root", record)

        try:
            await asyncio.wait_for(self.gateway.connect(), self.config.timeout)
            outcome = await asyncio.wait_for(
                self.gateway.lookup_transaction(record.transaction_hash), self.config.timeout,
            )
        except asyncio.TimeoutError:
            return result(False, "Ledger lookup timed out", record)
        except VioletteException as e:
            return result(False, e.message, record)

        if not isinstance(outcome, Settled):
            return result(False, "Anchor transaction is not settled on the ledger", record)
        return result(True, record=record)

    def prove_entry(self, merkle_root: str, entries: Sequence[Entry], index: int) -> MerkleProof:
        """
        Inclusion proof for ``entries[index]`` against an anchored root.

        Raises:
            NotFoundException: Root was never anchored.
            InvalidFormatException: Entries do not reproduce the anchored snapshot.
            IndexOutOfRangeException: Index outside the snapshot.
        """
        try:
            root = to_hex(from_hex(merkle_root))
        except (AttributeError, ValueError) as e:
            raise InvalidFormatException("Merkle root is not hex", value=str(merkle_root)) from e

        record = self.store.find_anchor(root)
        if record is None:
            raise NotFoundException(f"No anchor recorded for root {merkle_root}")

        leaves = compute_leaves(entries)
        if [leaf.hex() for leaf in leaves] != [s.leaf for s in record.snapshot]:
            raise InvalidFormatException(
                "Entries do not reproduce the anchored snapshot",
                details={"merkle_root": record.merkle_root},
            )
        return build_leaf_proof(leaves, index)


__all__ = [
    "MEMO_TYPE",
    "build_anchor_memo",
    "MerkleAnchorService",
]
