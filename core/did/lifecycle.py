"""
DID Lifecycle Manager

Creates, resolves, updates and deletes DIDs through a LedgerGateway.

State machine:
    uninitialized -> creating -> verified | failed
    verified      -> updating -> verified | failed
    failed        -> updating
    verified      -> deleting -> deleted

Guarantees:
- Nothing is persisted until settlement is observed; each completed
  transition writes the record exactly once.
- Ledger failures come back as typed results (``success`` / ``error``),
  never as exceptions.
- Submissions for one controlling address are serialized through the
  gateway's AddressLocks, which anchoring shares; different addresses
  proceed concurrently.
- Only resolve is retried. A write that times out, is cancelled, gets an
  undecodable reply or sees no settlement marks its address uncertain,
  and further writes to that address fail with RECONCILIATION_REQUIRED
  until resolve() has looked at the ledger again.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Optional, Union

from core.config.runtime import LedgerConfig, RuntimeConfig
from core.ledger.gateway import (
    LedgerGateway,
    LedgerTransaction,
    Pending,
    Rejected,
    Settled,
)
from core.ledger.outcomes import rejection_error
from core.schemas.accounts import LedgerAccount
from core.schemas.did import (
    DIDDocument,
    DIDRecord,
    DIDState,
    EncodingStrategy,
    UserMetadata,
    VerificationStatus,
)
from core.schemas.errors import (
    ErrorCodes,
    InvalidFormatException,
    InvalidStateTransitionException,
    LedgerUnavailableException,
    NotFoundException,
    VioletteError,
    VioletteException,
)
from core.schemas.results import DIDCreationResult, DIDOperationResult, DIDResolutionResult

from .codec import DOCUMENT_FIELD, URI_FIELD, DIDDocumentCodec
from .documents import build_full_document
from .identifiers import format_did, parse_did
from .store import DIDRecordStore, InMemoryRecordStore

logger = logging.getLogger(__name__)

Outcome = Union[Settled, Pending, Rejected]

TRANSITIONS: dict[DIDState, frozenset[DIDState]] = {
    DIDState.UNINITIALIZED: frozenset({DIDState.CREATING}),
    DIDState.CREATING: frozenset({DIDState.VERIFIED, DIDState.FAILED}),
    DIDState.VERIFIED: frozenset({DIDState.UPDATING, DIDState.DELETING}),
    DIDState.UPDATING: frozenset({DIDState.VERIFIED, DIDState.FAILED}),
    DIDState.FAILED: frozenset({DIDState.UPDATING}),
    DIDState.DELETING: frozenset({DIDState.DELETED}),
    DIDState.DELETED: frozenset(),
}


def can_transition(current: DIDState, target: DIDState) -> bool:
    return target in TRANSITIONS[current]


def check_transition(current: DIDState, target: DIDState) -> None:
    """
    Raises:
        InvalidStateTransitionException: If the move is not in TRANSITIONS.
    """
    if not can_transition(current, target):
        raise InvalidStateTransitionException(current.value, target.value)


@dataclass
class _PendingWrite:
    """A write whose settlement has not been observed by this process."""
    operation: Literal["create", "update", "delete"]
    did_id: str
    fields: dict[str, str]
    document: Optional[DIDDocument] = None
    strategy: Optional[EncodingStrategy] = None
    owner_id: Optional[str] = None
    tx_hash: Optional[str] = None


def _fields_match(ledger_object: dict[str, Any], fields: dict[str, str]) -> bool:
    for name in (URI_FIELD, DOCUMENT_FIELD):
        if (ledger_object.get(name) or "").upper() != (fields.get(name) or "").upper():
            return False
    return True


class DIDLifecycleManager:
    """
    Orchestrates DID operations over a gateway, a codec and a record store.

    Usage:
        manager = DIDLifecycleManager(gateway, store=JsonFileRecordStore("records"))
        created = await manager.create(UserMetadata(anonymized_id="u-1"))
        resolved = await manager.resolve(created.did_id)
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        *,
        store: Optional[DIDRecordStore] = None,
        codec: Optional[DIDDocumentCodec] = None,
        config: Optional[LedgerConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.gateway = gateway
        self.store = store or InMemoryRecordStore()
        self.codec = codec or DIDDocumentCodec()
        self.config = config or LedgerConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.locks = gateway.address_locks
        self._pending: dict[str, _PendingWrite] = {}

    @classmethod
    def from_config(
        cls,
        config: RuntimeConfig,
        gateway: LedgerGateway,
        store: Optional[DIDRecordStore] = None,
    ) -> "DIDLifecycleManager":
        return cls(
            gateway,
            store=store,
            codec=DIDDocumentCodec.from_config(config.codec),
            config=config.ledger,
        )

    # -- helpers -------------------------------------------------------------

    @property
    def timeout(self) -> float:
        return self.config.timeout

    def verification_link(self, tx_hash: Optional[str]) -> Optional[str]:
        if not tx_hash:
            return None
        return f"{self.config.explorer_url.rstrip('/')}/transactions/{tx_hash}"

    def is_uncertain(self, address: str) -> bool:
        return self.locks.is_uncertain(address)

    def _lock_for(self, address: str) -> asyncio.Lock:
        return self.locks.lock(address)

    def _timeout_error(self, operation: str, *, retryable: bool) -> VioletteError:
        return VioletteError(
            code=ErrorCodes.LEDGER_TIMEOUT,
            message=f"Ledger {operation} did not complete within {self.timeout}s",
            details={"operation": operation, "timeout_s": self.timeout},
            retryable=retryable,
        )

    def _reconciliation_error(self, address: str) -> VioletteError:
        return VioletteError(
            code=ErrorCodes.RECONCILIATION_REQUIRED,
            message="A previous write for this address has an unknown outcome; resolve the DID before retrying",
            details={"address": address},
        )

    def _mark_uncertain(self, address: str, reason: str) -> None:
        self.locks.mark_uncertain(address, reason)

    async def _connection_error(self) -> Optional[VioletteError]:
        error = self.gateway.ensure_connected()
        if error is None:
            return None
        try:
            await asyncio.wait_for(self.gateway.connect(), self.timeout)
        except asyncio.TimeoutError:
            return self._timeout_error("connect", retryable=True)
        except VioletteException as e:
            return e.to_error_model()
        return self.gateway.ensure_connected()

    async def _submit(
        self,
        tx: LedgerTransaction,
        signer: LedgerAccount,
        pending: _PendingWrite,
    ) -> tuple[Optional[Outcome], Optional[VioletteError]]:
        """
        Submit one write. Caller holds the address lock.

        Returns (outcome, None) for Settled/Rejected, (maybe outcome, error)
        when the outcome is unknown. Unknown outcomes leave ``pending``
        registered for reconciliation by resolve().
        """
        address = tx.account
        self._pending[address] = pending
        logger.info("Submitting %s for %s", tx.transaction_type, pending.did_id)

        try:
            outcome = await asyncio.wait_for(self.gateway.submit(tx, signer), self.timeout)
        except asyncio.TimeoutError:
            self._mark_uncertain(address, "timed out")
            return None, self._timeout_error("submit", retryable=False)
        except asyncio.CancelledError:
            self._mark_uncertain(address, "cancelled")
            raise
        except LedgerUnavailableException as e:
            self._mark_uncertain(address, "ledger unavailable")
            return None, VioletteError(
                code=ErrorCodes.LEDGER_UNAVAILABLE,
                message=f"{e.message}; resolve the DID before retrying",
                details=e.details,
            )
        except VioletteException as e:
            # The transaction may already be accepted; only its observation failed
            self._mark_uncertain(address, e.code)
            return None, VioletteError(
                code=e.code,
                message=f"{e.message}; resolve the DID before retrying",
                details=e.details,
            )

        if isinstance(outcome, Pending):
            pending.tx_hash = outcome.tx_hash
            self._mark_uncertain(address, "settlement not observed")
            return outcome, VioletteError(
                code=ErrorCodes.SETTLEMENT_PENDING,
                message="Transaction was submitted but settlement was not observed; resolve the DID before retrying",
                details={"tx_hash": outcome.tx_hash},
            )

        self._pending.pop(address, None)
        if isinstance(outcome, Rejected):
            logger.warning(
                "%s for %s rejected with %s",
                tx.transaction_type, pending.did_id, outcome.outcome_code,
            )
        else:
            logger.info(
                "%s for %s settled in ledger %d (%s)",
                tx.transaction_type, pending.did_id, outcome.ledger_sequence, outcome.tx_hash,
            )
        return outcome, None

    # -- create --------------------------------------------------------------

    async def create(
        self,
        metadata: UserMetadata,
        account: Optional[LedgerAccount] = None,
    ) -> DIDCreationResult:
        """
        Create a DID for a new (or supplied) controlling account.

        The full document is kept in the record; the ledger receives the
        inline document or a reference, as the codec decides.
        """
        error = await self._connection_error()
        if error is not None:
            return DIDCreationResult.failure(error)

        if account is None:
            try:
                account = await asyncio.wait_for(self.gateway.generate_account(), self.timeout)
            except asyncio.TimeoutError:
                return DIDCreationResult.failure(self._timeout_error("generate_account", retryable=True))
            except VioletteException as e:
                return DIDCreationResult.failure(e.to_error_model())

        address = account.address
        try:
            did_id = format_did(
                address,
                ledger=self.config.ledger,
                version=self.config.method_version,
            )
            document = build_full_document(did_id, account.public_key_hex, metadata)
            encoded = self.codec.encode(document)
        except VioletteException as e:
            return DIDCreationResult.failure(e.to_error_model(), controlling_address=address)

        async with self._lock_for(address):
            if self.is_uncertain(address):
                return DIDCreationResult.failure(
                    self._reconciliation_error(address), did_id=did_id, controlling_address=address,
                )
            existing = self.store.get(did_id)
            current = existing.state if existing is not None else DIDState.UNINITIALIZED
            try:
                check_transition(current, DIDState.CREATING)
            except InvalidStateTransitionException as e:
                return DIDCreationResult.failure(
                    e.to_error_model(), did_id=did_id, controlling_address=address,
                )

            fields = self.codec.to_ledger_fields(encoded)
            tx = LedgerTransaction(transaction_type="DIDSet", account=address, fields=fields)
            outcome, error = await self._submit(
                tx,
                account,
                _PendingWrite(
                    operation="create",
                    did_id=did_id,
                    fields=fields,
                    document=document,
                    strategy=encoded.strategy,
                    owner_id=metadata.anonymized_id,
                ),
            )

            if error is not None:
                result = DIDCreationResult.failure(error, did_id=did_id, controlling_address=address)
                result.account = account
                return result
            if isinstance(outcome, Rejected):
                # creating -> failed leaves nothing behind
                return DIDCreationResult.failure(
                    rejection_error(outcome), did_id=did_id, controlling_address=address,
                )

            check_transition(DIDState.CREATING, DIDState.VERIFIED)
            now = self._clock()
            record = DIDRecord(
                did_id=did_id,
                controlling_address=address,
                owner_id=metadata.anonymized_id,
                document=document,
                strategy=encoded.strategy,
                created_at=metadata.created_at or now,
                last_updated=now,
                verification_status=VerificationStatus.VERIFIED,
                state=DIDState.VERIFIED,
                transaction_hash=outcome.tx_hash,
                ledger_sequence=outcome.ledger_sequence,
            )
            self.store.put(record)

        return DIDCreationResult(
            success=True,
            did_id=did_id,
            controlling_address=address,
            document=document,
            strategy=encoded.strategy,
            transaction_hash=outcome.tx_hash,
            ledger_sequence=outcome.ledger_sequence,
            verification_link=self.verification_link(outcome.tx_hash),
            account=account,
        )

    # -- resolve -------------------------------------------------------------

    async def _query_with_retry(self, address: str) -> tuple[Optional[dict[str, Any]], Optional[VioletteError]]:
        attempts = self.config.max_retries + 1
        last_error: Optional[VioletteError] = None
        for attempt in range(1, attempts + 1):
            try:
                obj = await asyncio.wait_for(self.gateway.query(address, "did"), self.timeout)
                return obj, None
            except asyncio.TimeoutError:
                last_error = self._timeout_error("query", retryable=True)
            except LedgerUnavailableException as e:
                last_error = e.to_error_model()
            except VioletteException as e:
                return None, e.to_error_model()

            if attempt < attempts:
                logger.warning(
                    "Query for %s failed (%s), retry %d/%d",
                    address, last_error.code, attempt, self.config.max_retries,
                )
                await asyncio.sleep(self.config.retry_delay)
        return None, last_error

    async def resolve(self, did_id: str) -> DIDResolutionResult:
        """
        Resolve a DID from the ledger.

        Read-only and idempotent, so transient failures are retried. When
        the ledger carries only a reference and the local record matches
        what is on the ledger, the full record document is returned.
        """
        try:
            address = parse_did(did_id, ledger=self.config.ledger).address
        except InvalidFormatException as e:
            return DIDResolutionResult(success=False, did_id=str(did_id), error=e.to_error_model())

        error = await self._connection_error()
        if error is not None:
            return DIDResolutionResult(success=False, did_id=did_id, controlling_address=address, error=error)

        obj, error = await self._query_with_retry(address)
        if error is not None:
            return DIDResolutionResult(success=False, did_id=did_id, controlling_address=address, error=error)

        async with self._lock_for(address):
            await self._reconcile(address, obj)

        if obj is None:
            return DIDResolutionResult(
                success=False,
                did_id=did_id,
                controlling_address=address,
                error=NotFoundException(f"No DID ledger entry for {did_id}", did_id=did_id).to_error_model(),
            )

        try:
            decoded = self.codec.from_ledger_object(obj)
        except InvalidFormatException as e:
            return DIDResolutionResult(success=False, did_id=did_id, controlling_address=address, error=e.to_error_model())

        document, lossy, source = decoded.document, decoded.lossy, "ledger"
        if decoded.lossy:
            record = self.store.get(did_id)
            if record is not None and self._record_matches(record, obj):
                document, lossy, source = record.document, False, "record"

        return DIDResolutionResult(
            success=True,
            did_id=did_id,
            controlling_address=address,
            document=document,
            strategy=decoded.strategy,
            lossy=lossy,
            source=source,
            resolved_at=self._clock(),
        )

    def _record_matches(self, record: DIDRecord, obj: dict[str, Any]) -> bool:
        try:
            fields = self.codec.to_ledger_fields(self.codec.encode(record.document))
        except VioletteException:
            return False
        return _fields_match(obj, fields)

    async def _reconcile(self, address: str, obj: Optional[dict[str, Any]]) -> None:
        """
        Settle an uncertain write against what the ledger shows now.

        A matching ledger state means the write settled: the record is
        written as if the settlement had been observed. Anything else means
        it did not. Either way the address stops being uncertain.
        """
        pending = self._pending.pop(address, None)
        self.locks.clear(address)
        if pending is None:
            return

        if pending.operation == "delete":
            settled = obj is None
        else:
            settled = obj is not None and _fields_match(obj, pending.fields)

        if not settled:
            logger.info("Uncertain %s for %s did not settle", pending.operation, pending.did_id)
            return

        ledger_sequence = await self._settled_sequence(pending.tx_hash)
        now = self._clock()
        record = self.store.get(pending.did_id)

        if pending.operation == "delete":
            if record is None:
                return
            record.state = DIDState.DELETED
        elif record is None:
            record = DIDRecord(
                did_id=pending.did_id,
                controlling_address=address,
                owner_id=pending.owner_id,
                document=pending.document,
                strategy=pending.strategy,
                created_at=now,
                last_updated=now,
                state=DIDState.VERIFIED,
            )
        else:
            record.document = pending.document
            record.strategy = pending.strategy
            record.state = DIDState.VERIFIED

        record.verification_status = VerificationStatus.VERIFIED
        record.last_updated = now
        record.transaction_hash = pending.tx_hash or record.transaction_hash
        record.ledger_sequence = ledger_sequence or record.ledger_sequence
        self.store.put(record)
        logger.info("Reconciled %s for %s from ledger state", pending.operation, pending.did_id)

    async def _settled_sequence(self, tx_hash: Optional[str]) -> Optional[int]:
        if not tx_hash:
            return None
        try:
            outcome = await asyncio.wait_for(self.gateway.lookup_transaction(tx_hash), self.timeout)
        except (asyncio.TimeoutError, VioletteException) as e:
            logger.warning("Could not look up %s: %s", tx_hash, e)
            return None
        return outcome.ledger_sequence if isinstance(outcome, Settled) else None

    # -- update / delete -----------------------------------------------------

    def _operation_failure(
        self,
        did_id: str,
        operation: Literal["update", "delete"],
        error: VioletteError,
        state: Optional[DIDState] = None,
        tx_hash: Optional[str] = None,
    ) -> DIDOperationResult:
        return DIDOperationResult(
            success=False,
            error=error,
            did_id=did_id,
            operation=operation,
            state=state,
            transaction_hash=tx_hash or "",
        )

    def _load_for_write(
        self,
        did_id: str,
        account: LedgerAccount,
        target: DIDState,
    ) -> DIDRecord:
        """
        Raises:
            InvalidFormatException, NotFoundException,
            InvalidStateTransitionException
        """
        address = parse_did(did_id, ledger=self.config.ledger).address
        if account.address != address:
            raise InvalidFormatException(
                "Signing account does not control this DID",
                value=account.address,
            )
        record = self.store.get(did_id)
        if record is None:
            raise NotFoundException(f"No local record for {did_id}", did_id=did_id)
        check_transition(record.state, target)
        return record

    async def update(
        self,
        did_id: str,
        new_document: DIDDocument,
        account: LedgerAccount,
    ) -> DIDOperationResult:
        """
        Replace the document body. The identifier never changes.

        A rejection leaves the previous document in place and marks the
        record failed; a later update may retry from there.
        """
        if new_document.id != did_id:
            return self._operation_failure(
                did_id, "update",
                InvalidFormatException("Document id must equal the DID being updated", value=new_document.id).to_error_model(),
            )

        error = await self._connection_error()
        if error is not None:
            return self._operation_failure(did_id, "update", error)

        async with self._lock_for(account.address):
            if self.is_uncertain(account.address):
                return self._operation_failure(did_id, "update", self._reconciliation_error(account.address))
            try:
                record = self._load_for_write(did_id, account, DIDState.UPDATING)
                encoded = self.codec.encode(new_document)
            except VioletteException as e:
                return self._operation_failure(did_id, "update", e.to_error_model())

            fields = self.codec.to_ledger_fields(encoded, clear_unused=True)
            tx = LedgerTransaction(transaction_type="DIDSet", account=account.address, fields=fields)
            outcome, error = await self._submit(
                tx,
                account,
                _PendingWrite(
                    operation="update",
                    did_id=did_id,
                    fields=fields,
                    document=new_document,
                    strategy=encoded.strategy,
                ),
            )
            if error is not None:
                return self._operation_failure(
                    did_id, "update", error, state=record.state,
                    tx_hash=outcome.tx_hash if outcome is not None else None,
                )

            record.last_updated = self._clock()
            record.transaction_hash = outcome.tx_hash
            if isinstance(outcome, Rejected):
                check_transition(DIDState.UPDATING, DIDState.FAILED)
                record.state = DIDState.FAILED
                record.verification_status = VerificationStatus.FAILED
                self.store.put(record)
                return self._operation_failure(
                    did_id, "update", rejection_error(outcome),
                    state=DIDState.FAILED, tx_hash=outcome.tx_hash,
                )

            check_transition(DIDState.UPDATING, DIDState.VERIFIED)
            record.document = new_document
            record.strategy = encoded.strategy
            record.state = DIDState.VERIFIED
            record.verification_status = VerificationStatus.VERIFIED
            record.ledger_sequence = outcome.ledger_sequence
            self.store.put(record)

        return DIDOperationResult(
            success=True,
            did_id=did_id,
            operation="update",
            state=DIDState.VERIFIED,
            strategy=encoded.strategy,
            transaction_hash=outcome.tx_hash,
            ledger_sequence=outcome.ledger_sequence,
            verification_link=self.verification_link(outcome.tx_hash),
        )

    async def delete(self, did_id: str, account: LedgerAccount) -> DIDOperationResult:
        """Remove the DID ledger entry and mark the record deleted."""
        error = await self._connection_error()
        if error is not None:
            return self._operation_failure(did_id, "delete", error)

        async with self._lock_for(account.address):
            if self.is_uncertain(account.address):
                return self._operation_failure(did_id, "delete", self._reconciliation_error(account.address))
            try:
                record = self._load_for_write(did_id, account, DIDState.DELETING)
            except VioletteException as e:
                return self._operation_failure(did_id, "delete", e.to_error_model())

            tx = LedgerTransaction(transaction_type="DIDDelete", account=account.address)
            outcome, error = await self._submit(
                tx, account, _PendingWrite(operation="delete", did_id=did_id, fields={}),
            )
            if error is not None:
                return self._operation_failure(
                    did_id, "delete", error, state=record.state,
                    tx_hash=outcome.tx_hash if outcome is not None else None,
                )
            if isinstance(outcome, Rejected):
                # Nothing changed on the ledger; the record stays as it was
                return self._operation_failure(
                    did_id, "delete", rejection_error(outcome),
                    state=record.state, tx_hash=outcome.tx_hash,
                )

            check_transition(DIDState.DELETING, DIDState.DELETED)
            record.state = DIDState.DELETED
            record.last_updated = self._clock()
            record.transaction_hash = outcome.tx_hash
            record.ledger_sequence = outcome.ledger_sequence
            self.store.put(record)

        return DIDOperationResult(
            success=True,
            did_id=did_id,
            operation="delete",
            state=DIDState.DELETED,
            transaction_hash=outcome.tx_hash,
            ledger_sequence=outcome.ledger_sequence,
            verification_link=self.verification_link(outcome.tx_hash),
        )


__all__ = [
    "TRANSITIONS",
    "can_transition",
    "check_transition",
    "DIDLifecycleManager",
]
