"""
Schemas & Canonicalization
File: did.py

Purpose: W3C DID document and the off-ledger identity record.

JSON field names follow the DID document wire form ("@context",
"publicKey", "publicKeyHex", "serviceEndpoint"); Python attributes are
snake_case. Serialize with by_alias=True.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .versioning import DID_CONTEXT, RECORD_SCHEMA_VERSION, RecordSchemaVersion


class EncodingStrategy(str, Enum):
    """How a document is carried on the ledger."""

    INLINE = "inline"
    REFERENCE = "reference"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class DIDState(str, Enum):
    """Lifecycle states of an identity."""

    UNINITIALIZED = "uninitialized"
    CREATING = "creating"
    VERIFIED = "verified"
    FAILED = "failed"
    UPDATING = "updating"
    DELETING = "deleting"
    DELETED = "deleted"


class PublicKey(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    type: list[str] = Field(..., min_length=1)
    curve: Optional[str] = None
    expires: Optional[int] = None
    public_key_hex: str = Field(..., alias="publicKeyHex", min_length=1)


class ServiceEndpoint(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    service_endpoint: Union[str, dict[str, Any]] = Field(..., alias="serviceEndpoint")


class DIDDocument(BaseModel):
    """
    Identity document.

    The id is derived from the controlling address at creation and never
    changes afterwards; an update replaces the body only.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    context: str = Field(default=DID_CONTEXT, alias="@context")
    id: str = Field(..., min_length=1)
    public_keys: list[PublicKey] = Field(default_factory=list, alias="publicKey")
    authentication: Optional[list[str]] = None
    service: Optional[list[ServiceEndpoint]] = None

    def to_wire(self) -> dict[str, Any]:
        """JSON-serializable wire form (aliases, None fields dropped)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UserMetadata(BaseModel):
    """Identity metadata supplied by the profile layer when creating a DID."""

    model_config = ConfigDict(extra="forbid")

    anonymized_id: str = Field(..., min_length=1)
    created_at: Optional[datetime] = None
    anonymous_mode: bool = Field(
        default=False,
        description="Strict privacy: publish no service endpoints",
    )
    services: list[ServiceEndpoint] = Field(default_factory=list)


class DIDRecord(BaseModel):
    """
    Off-ledger identity record.

    Written only after the ledger confirms settlement; holds the full
    document even when the ledger carries a reference or placeholder.
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: RecordSchemaVersion = Field(default=RECORD_SCHEMA_VERSION)
    did_id: str
    controlling_address: str
    owner_id: Optional[str] = None
    document: DIDDocument
    strategy: EncodingStrategy
    created_at: datetime
    last_updated: datetime
    verification_status: VerificationStatus = VerificationStatus.PENDING
    state: DIDState = DIDState.UNINITIALIZED
    transaction_hash: Optional[str] = None
    ledger_sequence: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.state == DIDState.VERIFIED and self.verification_status == VerificationStatus.VERIFIED
