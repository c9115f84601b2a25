"""
Receipt Models

Schemas for recording ledger interactions. Every JSON-RPC call and raw HTTP
request made against the ledger leaves a receipt, so a DID write can be
audited after the fact from its request/response hashes.

Key Design Principles:
1. request_hash and response_hash enable deterministic verification
2. Timestamps live in non-committed metadata (timing)
3. Secrets (seeds, signing keys) are redacted before a request is stored
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.crypto.hashing import hash_canonical, to_hex


ReceiptKind = Literal["http", "rpc"]

REDACTED = "***"


class ReceiptRef(BaseModel):
    """Lightweight reference to a receipt."""

    model_config = ConfigDict(extra="forbid")

    receipt_id: str
    kind: ReceiptKind
    request_hash: str = Field(..., description="Hash of the request (0x-prefixed)")
    response_hash: str = Field(..., description="Hash of the response (0x-prefixed)")


class ReceiptTiming(BaseModel):
    """
    Timing information for a receipt.

    NON-COMMITTED metadata, excluded from hashing.
    """

    model_config = ConfigDict(extra="forbid")

    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    duration_ms: Optional[float] = None


class Receipt(BaseModel):
    """
    Base receipt for a ledger interaction.

    Records what was requested (already redacted), what came back, and how
    long it took.
    """

    model_config = ConfigDict(extra="forbid")

    receipt_id: str
    kind: ReceiptKind
    request: dict[str, Any]
    response: dict[str, Any] = Field(default_factory=dict)
    request_hash: Optional[str] = Field(
        default=None,
        description="Hash of canonical request (0x-prefixed)",
    )
    response_hash: Optional[str] = Field(
        default=None,
        description="Hash of canonical response (0x-prefixed)",
    )
    timing: ReceiptTiming = Field(default_factory=ReceiptTiming)
    error: Optional[str] = None

    def compute_hashes(self) -> "Receipt":
        """Compute request and response hashes if not already set."""
        if self.request_hash is None:
            self.request_hash = to_hex(hash_canonical(self.request))
        if self.response_hash is None and self.response:
            self.response_hash = to_hex(hash_canonical(self.response))
        return self

    def to_ref(self) -> ReceiptRef:
        self.compute_hashes()
        return ReceiptRef(
            receipt_id=self.receipt_id,
            kind=self.kind,
            request_hash=self.request_hash or "",
            response_hash=self.response_hash or "",
        )

    @property
    def is_successful(self) -> bool:
        return self.error is None


class HTTPReceipt(Receipt):
    """Receipt for a plain HTTP request (e.g. testnet faucet funding)."""

    kind: Literal["http"] = "http"

    method: str
    url: str
    status_code: Optional[int] = None


class RPCReceipt(Receipt):
    """Receipt for a ledger JSON-RPC call."""

    kind: Literal["rpc"] = "rpc"

    endpoint: str = Field(..., description="JSON-RPC endpoint URL")
    rpc_method: str = Field(..., description="RPC method name, e.g. submit or account_objects")
    network: Optional[str] = Field(
        default=None,
        description="Ledger network label (testnet, mainnet)",
    )
    tx_hash: Optional[str] = Field(
        default=None,
        description="Transaction hash this call produced or inspected",
    )
