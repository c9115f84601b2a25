"""
Schemas & Canonicalization
File: accounts.py

Purpose: A ledger account the caller controls.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LedgerAccount(BaseModel):
    """
    Controlling account of a DID.

    The seed signs transactions; it is excluded from serialization and repr
    so it cannot leak into logs, receipts or results.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    address: str = Field(..., min_length=1)
    public_key_hex: str = Field(..., min_length=1)
    seed: Optional[str] = Field(default=None, repr=False, exclude=True)
