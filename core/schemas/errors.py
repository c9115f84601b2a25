"""
Schemas & Canonicalization
File: errors.py

Purpose: Standard error taxonomy for the Merkle engine, DID lifecycle and
tethering components. Defines both Pydantic models for structured error
communication (typed results) and Python exceptions for local control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes."""

    # Serialization
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"

    # Merkle Engine
    EMPTY_INPUT = "EMPTY_INPUT"
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"

    # DID identifiers & documents
    INVALID_FORMAT = "INVALID_FORMAT"
    NOT_FOUND = "NOT_FOUND"
    DOCUMENT_TOO_LARGE = "DOCUMENT_TOO_LARGE"
    INVALID_STATE_TRANSITION = "INVALID_STATE_TRANSITION"

    # Ledger settlement
    SETTLEMENT_REJECTED = "SETTLEMENT_REJECTED"
    SETTLEMENT_PENDING = "SETTLEMENT_PENDING"
    LEDGER_UNAVAILABLE = "LEDGER_UNAVAILABLE"
    LEDGER_TIMEOUT = "LEDGER_TIMEOUT"
    RECONCILIATION_REQUIRED = "RECONCILIATION_REQUIRED"

    # Tethering
    ALREADY_TETHERED = "ALREADY_TETHERED"
    DID_NOT_VERIFIED = "DID_NOT_VERIFIED"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class VioletteError(BaseModel):
    """
    Base error model for structured error communication.

    Ledger-facing operations return this inside their result objects instead
    of raising, so callers (e.g. an HTTP layer) can map codes to status codes.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.NOT_FOUND],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried as-is",
    )

    def to_exception(self) -> "VioletteException":
        """Convert this error model to a raised exception."""
        return VioletteException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class VioletteException(Exception):
    """
    Base exception for all ledger-core errors.

    Carries structured error information and converts to/from VioletteError.
    """

    def __init__(
        self,
        message: str,
        code: str = "VIOLETTE_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> VioletteError:
        """Convert this exception to a VioletteError model."""
        return VioletteError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class CanonicalizationException(VioletteException):
    """Exception raised when canonical serialization fails."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
            retryable=False,
        )


class EmptyInputException(VioletteException, ValueError):
    """Raised when a Merkle tree is requested for an empty entry set."""

    def __init__(self, message: str = "Cannot build a Merkle tree from an empty entry set") -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.EMPTY_INPUT,
            retryable=False,
        )


class IndexOutOfRangeException(VioletteException, IndexError):
    """Raised when a proof is requested for an index outside the tree."""

    def __init__(self, index: int, entry_count: int) -> None:
        super().__init__(
            message=f"Leaf index {index} out of range for {entry_count} entries",
            code=ErrorCodes.INDEX_OUT_OF_RANGE,
            details={"index": index, "entry_count": entry_count},
            retryable=False,
        )


class InvalidFormatException(VioletteException):
    """Raised when an identifier, address or payload is malformed."""

    def __init__(
        self,
        message: str,
        value: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if value is not None:
            full_details["value"] = value
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_FORMAT,
            details=full_details,
            retryable=False,
        )


class NotFoundException(VioletteException):
    """Raised when no identity record exists for an identifier."""

    def __init__(self, message: str, did_id: str | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.NOT_FOUND,
            details={"did_id": did_id} if did_id else {},
            retryable=False,
        )


class DocumentTooLargeException(VioletteException):
    """Raised when not even the reference locator fits the ledger ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            message=f"Encoded payload is {size} bytes, ledger limit is {limit} bytes",
            code=ErrorCodes.DOCUMENT_TOO_LARGE,
            details={"size": size, "limit": limit},
            retryable=False,
        )


class SettlementRejectedException(VioletteException):
    """
    Raised when the ledger rejects a transaction.

    The message is always the translated cause. The raw outcome code stays on
    the exception (``outcome_code``) for logs and never enters ``details``,
    so it does not reach serialized results.
    """

    def __init__(
        self,
        outcome_code: str,
        cause: str,
        tx_hash: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if tx_hash:
            details["tx_hash"] = tx_hash
        super().__init__(
            message=f"Ledger rejected the transaction: {cause}",
            code=ErrorCodes.SETTLEMENT_REJECTED,
            details=details,
            retryable=False,
        )
        self.outcome_code = outcome_code
        self.cause = cause


class AlreadyTetheredException(VioletteException):
    """Raised when an asset reference is already bound to the identity."""

    def __init__(self, did_id: str, asset_keys: list[str]) -> None:
        super().__init__(
            message=f"{len(asset_keys)} asset(s) already tethered to {did_id}",
            code=ErrorCodes.ALREADY_TETHERED,
            details={"did_id": did_id, "assets": asset_keys},
            retryable=False,
        )


class DIDNotVerifiedException(VioletteException):
    """Raised when an operation requires a verified identity record."""

    def __init__(self, did_id: str, status: str) -> None:
        super().__init__(
            message=f"DID {did_id} is not verified (status: {status})",
            code=ErrorCodes.DID_NOT_VERIFIED,
            details={"did_id": did_id, "status": status},
            retryable=False,
        )


class InvalidStateTransitionException(VioletteException):
    """Raised when a lifecycle transition is not permitted."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            message=f"Cannot transition DID from {current} to {target}",
            code=ErrorCodes.INVALID_STATE_TRANSITION,
            details={"current": current, "target": target},
            retryable=False,
        )


class LedgerUnavailableException(VioletteException):
    """Raised by gateways when the ledger cannot be reached."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.LEDGER_UNAVAILABLE,
            details=details,
            retryable=True,
        )


class SignatureInvalidException(VioletteException):
    """Raised when a supplied proof signature does not verify."""

    def __init__(self, message: str = "Proof signature does not verify") -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.SIGNATURE_INVALID,
            retryable=False,
        )
