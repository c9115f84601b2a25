"""
Schemas & Canonicalization
File: results.py

Purpose: Typed results returned by ledger-facing operations.

Ledger failures never cross a component boundary as exceptions; they are
carried in the ``error`` field so callers can branch on ``error.code``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .accounts import LedgerAccount
from .anchors import AnchorRecord
from .did import DIDDocument, DIDState, EncodingStrategy
from .errors import VioletteError


class _Result(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool
    error: Optional[VioletteError] = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form for collaborators (documents use wire aliases)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DIDCreationResult(_Result):
    did_id: str = ""
    controlling_address: str = ""
    document: Optional[DIDDocument] = None
    strategy: Optional[EncodingStrategy] = None
    transaction_hash: str = ""
    ledger_sequence: Optional[int] = None
    verification_link: Optional[str] = None
    account: Optional[LedgerAccount] = Field(
        default=None,
        exclude=True,
        description="Controlling account, returned to the caller for later updates",
    )

    @classmethod
    def failure(
        cls,
        error: VioletteError,
        *,
        did_id: str = "",
        controlling_address: str = "",
    ) -> "DIDCreationResult":
        return cls(
            success=False,
            error=error,
            did_id=did_id,
            controlling_address=controlling_address,
        )


class DIDResolutionResult(_Result):
    did_id: str
    controlling_address: str = ""
    document: Optional[DIDDocument] = None
    strategy: Optional[EncodingStrategy] = None
    lossy: bool = Field(
        default=False,
        description="True when the document is a thin reconstruction, not the full body",
    )
    source: Optional[Literal["ledger", "record"]] = None
    resolved_at: Optional[datetime] = None


class DIDOperationResult(_Result):
    """Outcome of an update or delete."""

    did_id: str
    operation: Literal["update", "delete"]
    state: Optional[DIDState] = None
    strategy: Optional[EncodingStrategy] = None
    transaction_hash: str = ""
    ledger_sequence: Optional[int] = None
    verification_link: Optional[str] = None


class AnchorResult(_Result):
    merkle_root: str = ""
    entry_count: int = 0
    record: Optional[AnchorRecord] = None
    verification_link: Optional[str] = None


class AnchorVerification(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_valid: bool
    merkle_root: str
    record: Optional[AnchorRecord] = None
    verified_at: datetime
    reason: Optional[str] = None
