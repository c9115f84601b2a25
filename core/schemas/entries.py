"""
Schemas & Canonicalization
File: entries.py

Purpose: Diary entry as seen by the Merkle engine.

The diary persistence layer owns entries; this core only references them.
Only the fields below are committed, so content stays private: the ledger
sees a hash of a hash.
"""

from __future__ import annotations

import hashlib
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Entry(BaseModel):
    """One diary entry, immutable once hashed."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(..., min_length=1, description="Entry identifier")
    content_hash: bytes = Field(..., description="SHA-256 of the entry content")
    timestamp: int = Field(..., ge=0, description="Creation time, epoch milliseconds")
    tags: tuple[str, ...] = Field(default=(), description="Ordered tags")

    @field_validator("content_hash", mode="before")
    @classmethod
    def _accept_hex(cls, value: Any) -> Any:
        # Exports and JSON fixtures carry the hash as hex text
        if isinstance(value, str):
            return bytes.fromhex(value[2:] if value.startswith("0x") else value)
        return value

    @classmethod
    def from_content(
        cls,
        id: str,
        content: str,
        timestamp: int,
        tags: list[str] | tuple[str, ...] = (),
    ) -> "Entry":
        """Build an entry from raw text content (hashed immediately, never stored)."""
        return cls(
            id=id,
            content_hash=hashlib.sha256(content.encode("utf-8")).digest(),
            timestamp=timestamp,
            tags=tuple(tags),
        )

    def canonical_form(self) -> dict[str, Any]:
        """The committed fields, in the shape that gets canonically hashed into a leaf."""
        return {
            "id": self.id,
            "contentHash": self.content_hash.hex(),
            "timestamp": self.timestamp,
            "tags": list(self.tags),
        }
