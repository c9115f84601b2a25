"""
Receipt Recorder

Collects receipts for every call a ledger gateway makes. The recorder is
shared by the HTTP client and the JSON-RPC gateway.
"""

from __future__ import annotations

import hashlib
import itertools
from datetime import datetime, timezone
from typing import Any, Optional

from .models import (
    REDACTED,
    HTTPReceipt,
    Receipt,
    ReceiptKind,
    ReceiptRef,
    ReceiptTiming,
    RPCReceipt,
)

# Keys whose values never reach a receipt
SECRET_KEYS = frozenset({"secret", "seed", "master_seed", "master_key", "private_key", "passphrase"})


def redact(value: Any) -> Any:
    """Return a copy of ``value`` with secret-bearing keys masked."""
    if isinstance(value, dict):
        return {
            k: (REDACTED if k in SECRET_KEYS else redact(v))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    return value


def generate_receipt_id(kind: ReceiptKind, request_data: dict[str, Any], sequence: int) -> str:
    """
    Receipt ID from kind, request and a per-recorder sequence number.

    Format: rc_{kind}_{sequence}_{hash_prefix}
    """
    stable_str = f"{kind}|{sorted(request_data.items(), key=lambda kv: kv[0])}"
    hash_hex = hashlib.sha256(stable_str.encode()).hexdigest()[:12]
    return f"rc_{kind}_{sequence:04d}_{hash_hex}"


class ReceiptRecorder:
    """
    Records receipts for ledger interactions.

    Usage:
        recorder = ReceiptRecorder()
        receipt = recorder.start_rpc_receipt(endpoint=url, rpc_method="submit", params=[...])
        # ... perform call ...
        recorder.complete(receipt, response={...}, tx_hash="ABC...")
        recorder.for_transaction("ABC...")
    """

    def __init__(self) -> None:
        self._receipts: list[Receipt] = []
        self._in_progress: dict[str, Receipt] = {}
        self._sequence = itertools.count(1)

    def start_http_receipt(
        self,
        *,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> HTTPReceipt:
        """Start recording an HTTP request. Headers are not recorded."""
        request = {
            "method": method,
            "url": url,
            "params": redact(params or {}),
            "body": redact(body),
        }
        receipt = HTTPReceipt(
            receipt_id=generate_receipt_id("http", request, next(self._sequence)),
            method=method,
            url=url,
            request=request,
            timing=ReceiptTiming(started_at=datetime.now(timezone.utc)),
        )
        self._in_progress[receipt.receipt_id] = receipt
        return receipt

    def start_rpc_receipt(
        self,
        *,
        endpoint: str,
        rpc_method: str,
        params: Optional[list[Any]] = None,
        network: Optional[str] = None,
    ) -> RPCReceipt:
        """Start recording a JSON-RPC call."""
        request = {
            "endpoint": endpoint,
            "method": rpc_method,
            "params": redact(params or []),
        }
        receipt = RPCReceipt(
            receipt_id=generate_receipt_id("rpc", request, next(self._sequence)),
            endpoint=endpoint,
            rpc_method=rpc_method,
            network=network,
            request=request,
            timing=ReceiptTiming(started_at=datetime.now(timezone.utc)),
        )
        self._in_progress[receipt.receipt_id] = receipt
        return receipt

    def complete(
        self,
        receipt: Receipt,
        *,
        response: Optional[dict[str, Any]] = None,
        error: Optional[str] = None,
        **extra_fields: Any,
    ) -> Receipt:
        """
        Complete a receipt with response data or error.

        Extra fields (status_code, tx_hash) are set when the receipt type
        declares them and ignored otherwise.
        """
        now = datetime.now(timezone.utc)
        receipt.timing.ended_at = now
        if receipt.timing.started_at:
            delta = now - receipt.timing.started_at
            receipt.timing.duration_ms = delta.total_seconds() * 1000

        if response is not None:
            receipt.response = redact(response)
        if error is not None:
            receipt.error = error

        for key, value in extra_fields.items():
            if key in type(receipt).model_fields:
                setattr(receipt, key, value)

        receipt.compute_hashes()

        self._in_progress.pop(receipt.receipt_id, None)
        self._receipts.append(receipt)
        return receipt

    def get_receipts(self) -> list[Receipt]:
        return list(self._receipts)

    def get_receipt_refs(self) -> list[ReceiptRef]:
        return [r.to_ref() for r in self._receipts]

    def get_in_progress(self) -> list[Receipt]:
        return list(self._in_progress.values())

    def for_transaction(self, tx_hash: str) -> list[RPCReceipt]:
        """All RPC receipts tied to one transaction hash."""
        return [
            r for r in self._receipts
            if isinstance(r, RPCReceipt) and r.tx_hash == tx_hash
        ]

    def clear(self) -> None:
        self._receipts.clear()
        self._in_progress.clear()

    def to_dict_list(self) -> list[dict[str, Any]]:
        return [r.model_dump(mode="json", exclude_none=True) for r in self._receipts]
