"""
Schemas & Canonicalization
File: tethering.py

Purpose: Cross-chain asset references bound to an identity.

Ownership checks and mirror minting happen elsewhere; these records are
the durable result of binding their output to a DID.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class OriginalAssetRef(BaseModel):
    """An asset on its home chain."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    chain: str = Field(..., min_length=1)
    contract: str = Field(..., min_length=1)
    token_id: str = Field(..., min_length=1)

    @property
    def key(self) -> str:
        # Contract addresses are case-insensitive hex on EVM chains
        return f"{self.chain}:{self.contract.lower()}:{self.token_id}"


class MirrorAssetRef(BaseModel):
    """A representative asset minted on a secondary chain."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    chain: str = Field(..., min_length=1)
    token_id: str = Field(..., min_length=1)
    tx_hash: str = Field(..., min_length=1)


class TetheringProof(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    merkle_root: str = Field(..., description="0x-prefixed root over the asset references")
    signature: str = Field(..., description="Verifier signature (hex)")
    timestamp: datetime


class TetheringRecord(BaseModel):
    """Append-only binding of verified assets to a DID."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    did_id: str
    original_asset_refs: tuple[OriginalAssetRef, ...] = ()
    mirror_asset_refs: tuple[MirrorAssetRef, ...] = ()
    proof: TetheringProof
