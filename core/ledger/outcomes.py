"""
Ledger outcome translation.

Maps ledger result codes to user-facing causes. The raw code never reaches
the caller; unmapped codes are logged here and every code stays in the RPC
receipts.
"""

from __future__ import annotations

import logging

from core.schemas.errors import SettlementRejectedException, VioletteError

from .gateway import Rejected

logger = logging.getLogger(__name__)

UNKNOWN_OUTCOME_MESSAGE = "Unknown ledger error"

OUTCOME_MESSAGES: dict[str, str] = {
    "temMALFORMED": "Transaction is malformed or has invalid fields",
    "temEMPTY_DID": "DID transaction is missing required DID information",
    "tecEMPTY_DID": "Transaction would create an empty DID ledger entry",
    "tecINSUFFICIENT_RESERVE": "Account does not have enough XRP for reserve",
    "tecNO_PERMISSION": "Account does not have permission for this operation",
    "tecNO_ENTRY": "No DID ledger entry exists for this account",
    "temREDUNDANT": "Transaction would have no effect",
    "tefPAST_SEQ": "Transaction sequence number is too old",
    "tefMAX_LEDGER": "Transaction exceeded maximum ledger sequence",
    "tefBAD_AUTH": "Transaction was not signed by the account's key",
    "terPRE_SEQ": "Transaction sequence number is ahead of the account",
    "terNO_ACCOUNT": "Account does not exist on the ledger",
}


def translate_outcome(outcome_code: str) -> str:
    """User-facing cause for a ledger result code."""
    if outcome_code not in OUTCOME_MESSAGES:
        logger.warning("Unmapped ledger outcome %s", outcome_code)
        return UNKNOWN_OUTCOME_MESSAGE
    return OUTCOME_MESSAGES[outcome_code]


def rejection_exception(outcome: Rejected) -> SettlementRejectedException:
    return SettlementRejectedException(
        outcome_code=outcome.outcome_code,
        cause=translate_outcome(outcome.outcome_code),
        tx_hash=outcome.tx_hash,
    )


def rejection_error(outcome: Rejected) -> VioletteError:
    """Typed SETTLEMENT_REJECTED error for a Rejected outcome."""
    return rejection_exception(outcome).to_error_model()


__all__ = [
    "OUTCOME_MESSAGES",
    "UNKNOWN_OUTCOME_MESSAGE",
    "translate_outcome",
    "rejection_exception",
    "rejection_error",
]
