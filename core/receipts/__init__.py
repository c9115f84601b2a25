"""
Core Receipts Module

Receipt recording for ledger interactions (JSON-RPC and HTTP).
Receipts give an audit trail for every transaction a DID operation submits.
"""

from .models import (
    Receipt,
    ReceiptKind,
    HTTPReceipt,
    RPCReceipt,
    ReceiptRef,
)
from .recorder import ReceiptRecorder, redact

__all__ = [
    "Receipt",
    "ReceiptKind",
    "HTTPReceipt",
    "RPCReceipt",
    "ReceiptRef",
    "ReceiptRecorder",
    "redact",
]
