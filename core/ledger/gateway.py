"""
Ledger Transaction Gateway

The contract every ledger backend implements, plus the transaction and
settlement types that cross it.

Settlement is decoded exactly once, at the gateway boundary, into one of
three variants:

    Settled   validated with tesSUCCESS
    Pending   submitted, settlement not observed (yet)
    Rejected  refused by the ledger, with its outcome code

Callers branch on the variant and never inspect raw ledger responses.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from core.schemas.accounts import LedgerAccount
from core.schemas.errors import (
    ErrorCodes,
    InvalidFormatException,
    LedgerUnavailableException,
    VioletteError,
)

from .locks import AddressLocks

logger = logging.getLogger(__name__)

SUCCESS_CODE = "tesSUCCESS"

TransactionType = Literal["DIDSet", "DIDDelete", "AccountSet", "Payment"]


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class Memo(BaseModel):
    """Transaction memo; type and data are UTF-8 text, hex-encoded on the wire."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    memo_type: str
    memo_data: str

    def to_wire(self) -> dict[str, Any]:
        return {
            "Memo": {
                "MemoType": self.memo_type.encode("utf-8").hex().upper(),
                "MemoData": self.memo_data.encode("utf-8").hex().upper(),
            }
        }


class LedgerTransaction(BaseModel):
    """An unsigned transaction."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    transaction_type: TransactionType
    account: str = Field(..., min_length=1)
    fields: dict[str, Any] = Field(default_factory=dict)
    memos: tuple[Memo, ...] = ()

    def to_tx_json(self) -> dict[str, Any]:
        """rippled ``tx_json`` form."""
        tx: dict[str, Any] = {
            "TransactionType": self.transaction_type,
            "Account": self.account,
            **self.fields,
        }
        if self.memos:
            tx["Memos"] = [memo.to_wire() for memo in self.memos]
        return tx


# =============================================================================
# Settlement outcomes
# =============================================================================

class Settled(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    status: Literal["settled"] = "settled"
    outcome_code: str = SUCCESS_CODE
    ledger_sequence: int = Field(..., ge=0)
    tx_hash: str = Field(..., min_length=1)


class Pending(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    status: Literal["pending"] = "pending"
    tx_hash: Optional[str] = None


class Rejected(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    status: Literal["rejected"] = "rejected"
    outcome_code: str = Field(..., min_length=1)
    tx_hash: Optional[str] = None


SettlementOutcome = Annotated[
    Union[Settled, Pending, Rejected],
    Field(discriminator="status"),
]

_settlement_adapter: TypeAdapter[Any] = TypeAdapter(SettlementOutcome)


def parse_settlement(raw: dict[str, Any]) -> Union[Settled, Pending, Rejected]:
    """
    Decode a settlement observation.

    Accepts either the tagged form (``{"status": "settled", ...}``) or a
    rippled ``tx`` result (``hash``, ``validated``, ``ledger_index``,
    ``meta.TransactionResult``).

    Raises:
        InvalidFormatException: If the observation cannot be decoded.
    """
    if not isinstance(raw, dict):
        raise InvalidFormatException("Settlement observation must be an object")

    if "status" in raw:
        try:
            return _settlement_adapter.validate_python(raw)
        except ValidationError as e:
            raise InvalidFormatException(
                "Malformed settlement observation",
                details={"errors": str(e)},
            ) from e

    tx_hash = raw.get("hash")
    if not raw.get("validated"):
        return Pending(tx_hash=tx_hash)

    meta = raw.get("meta")
    result = meta.get("TransactionResult") if isinstance(meta, dict) else None
    if not result:
        raise InvalidFormatException(
            "Validated transaction has no TransactionResult",
            value=tx_hash,
        )
    if result != SUCCESS_CODE:
        return Rejected(outcome_code=result, tx_hash=tx_hash)

    ledger_index = raw.get("ledger_index")
    if not isinstance(ledger_index, int) or not tx_hash:
        raise InvalidFormatException(
            "Validated transaction is missing ledger_index or hash",
            value=tx_hash,
        )
    return Settled(ledger_sequence=ledger_index, tx_hash=tx_hash)


# =============================================================================
# Gateway contract
# =============================================================================

class LedgerGateway(ABC):
    """
    Abstract ledger backend.

    A gateway holds one explicit connection handle. Operations on a
    disconnected gateway raise LedgerUnavailableException; callers check
    ``ensure_connected()`` first to get a typed error instead.

    All I/O methods are coroutines. Timeouts are applied by the caller.

    ``address_locks`` is shared by every service writing through this
    gateway; hold ``address_locks.lock(address)`` around a submission.
    """

    network: str = "unknown"

    def __init__(self) -> None:
        self._state = ConnectionState.DISCONNECTED
        self.address_locks = AddressLocks()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    async def connect(self) -> None:
        """Open the connection handle. Idempotent."""
        if self.is_connected:
            return
        await self._open()
        self._state = ConnectionState.CONNECTED
        logger.info("Connected to %s ledger", self.network)

    async def disconnect(self) -> None:
        """Release the connection handle. Idempotent."""
        if not self.is_connected:
            return
        await self._close()
        self._state = ConnectionState.DISCONNECTED
        logger.info("Disconnected from %s ledger", self.network)

    def ensure_connected(self) -> Optional[VioletteError]:
        """None when connected, otherwise a retryable LEDGER_UNAVAILABLE error."""
        if self.is_connected:
            return None
        return VioletteError(
            code=ErrorCodes.LEDGER_UNAVAILABLE,
            message=f"Not connected to the {self.network} ledger",
            retryable=True,
        )

    def _require_connection(self) -> None:
        if not self.is_connected:
            raise LedgerUnavailableException(
                f"Not connected to the {self.network} ledger",
                details={"network": self.network},
            )

    async def _open(self) -> None:
        """Backend-specific connection setup."""

    async def _close(self) -> None:
        """Backend-specific connection teardown."""

    @abstractmethod
    async def generate_account(self) -> LedgerAccount:
        """Create (and on test networks, fund) a fresh account."""

    @abstractmethod
    async def submit(
        self,
        tx: LedgerTransaction,
        signer: LedgerAccount,
    ) -> Union[Settled, Pending, Rejected]:
        """Sign, submit and observe settlement of a transaction."""

    @abstractmethod
    async def query(self, address: str, record_type: str = "did") -> Optional[dict[str, Any]]:
        """Ledger object of ``record_type`` owned by ``address``; None when absent."""

    @abstractmethod
    async def lookup_transaction(self, tx_hash: str) -> Optional[Union[Settled, Pending, Rejected]]:
        """Settlement state of a previously submitted transaction; None when unknown."""
