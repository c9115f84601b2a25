"""
Ledger Gateways

Transaction submission, settlement observation and ledger queries.

Usage:
    from core.ledger import InMemoryLedgerGateway, LedgerTransaction

    gateway = InMemoryLedgerGateway()
    await gateway.connect()
    account = await gateway.generate_account()
    outcome = await gateway.submit(
        LedgerTransaction(transaction_type="DIDSet", account=account.address, fields={"URI": "AB"}),
        account,
    )
"""

from .gateway import (
    SUCCESS_CODE,
    ConnectionState,
    LedgerAccount,
    LedgerGateway,
    LedgerTransaction,
    Memo,
    Pending,
    Rejected,
    Settled,
    SettlementOutcome,
    parse_settlement,
)
from .outcomes import (
    OUTCOME_MESSAGES,
    UNKNOWN_OUTCOME_MESSAGE,
    rejection_error,
    rejection_exception,
    translate_outcome,
)
from .locks import AddressLocks
from .memory import PENDING, InMemoryLedgerGateway
from .xrpl_rpc import XrplRpcGateway

__all__ = [
    "SUCCESS_CODE",
    "ConnectionState",
    "LedgerAccount",
    "LedgerGateway",
    "LedgerTransaction",
    "Memo",
    "Pending",
    "Rejected",
    "Settled",
    "SettlementOutcome",
    "parse_settlement",
    "OUTCOME_MESSAGES",
    "UNKNOWN_OUTCOME_MESSAGE",
    "rejection_error",
    "rejection_exception",
    "translate_outcome",
    "AddressLocks",
    "PENDING",
    "InMemoryLedgerGateway",
    "XrplRpcGateway",
]
