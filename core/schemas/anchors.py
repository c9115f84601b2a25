"""
Schemas & Canonicalization
File: anchors.py

Purpose: A Merkle root anchored on the ledger, stored together with the
entry snapshot it was computed from. A root without its snapshot cannot be
re-verified, so the two are never stored apart.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SnapshotLeaf(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    entry_id: str
    leaf: str = Field(..., description="Leaf hash, lower hex")


class AnchorRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    did_id: str
    merkle_root: str = Field(..., description="0x-prefixed root")
    entry_count: int = Field(..., ge=1)
    snapshot: tuple[SnapshotLeaf, ...]
    transaction_hash: str
    ledger_sequence: int
    anchored_at: datetime
