"""
In-memory ledger gateway.

A deterministic simulator of the DID-relevant subset of the ledger, used by
tests and offline runs. It applies the same field rules a real node does
(hex blobs, per-field size ceiling, empty-entry and missing-entry checks)
and can be scripted to return specific outcome codes, withhold settlement
or stall, so failure paths can be exercised without a network.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import deque
from typing import Any, Optional, Union

from core.crypto.addresses import encode_classic_address, simulated_account_id
from core.crypto.hashing import sha256
from core.crypto.signatures import KeyPair
from core.schemas.canonical import canonical_bytes
from core.schemas.errors import LedgerUnavailableException
from core.schemas.versioning import LEDGER_FIELD_LIMIT

from .gateway import (
    SUCCESS_CODE,
    LedgerAccount,
    LedgerGateway,
    LedgerTransaction,
    Pending,
    Rejected,
    Settled,
)

logger = logging.getLogger(__name__)

# Script token: the transaction is applied but settlement is not observed
PENDING = "pending"

DID_FIELDS = ("URI", "DIDDocument", "Data")

_SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

Outcome = Union[Settled, Pending, Rejected]


class InMemoryLedgerGateway(LedgerGateway):
    """
    Simulated ledger.

    Usage:
        gateway = InMemoryLedgerGateway()
        await gateway.connect()
        account = await gateway.generate_account()

        gateway.script_outcomes("tecINSUFFICIENT_RESERVE")  # next submit is rejected
        gateway.script_outcomes(PENDING)                    # next submit never reports settlement
        gateway.submit_delay = 5.0                          # submits stall
        gateway.fail_next_queries(2)                        # two queries raise LedgerUnavailableException
    """

    def __init__(
        self,
        *,
        network: str = "simulated",
        start_sequence: int = 1000,
        submit_delay: float = 0.0,
        query_delay: float = 0.0,
        field_limit: int = LEDGER_FIELD_LIMIT,
    ) -> None:
        super().__init__()
        self.network = network
        self.submit_delay = submit_delay
        self.query_delay = query_delay
        self.field_limit = field_limit
        self.fail_connect = False
        self.submitted: list[LedgerTransaction] = []

        self._ledger_sequence = start_sequence
        self._account_counter = itertools.count(1)
        self._accounts: dict[str, LedgerAccount] = {}
        self._objects: dict[tuple[str, str], dict[str, Any]] = {}
        self._transactions: dict[str, tuple[LedgerTransaction, Outcome]] = {}
        self._scripted: deque[str] = deque()
        self._query_failures = 0

    # -- scripting -----------------------------------------------------------

    def script_outcomes(self, *codes: str) -> None:
        """Queue outcome codes (or PENDING) for the next submissions."""
        self._scripted.extend(codes)

    def fail_next_queries(self, count: int) -> None:
        self._query_failures = count

    def register_account(self, account: LedgerAccount) -> None:
        """Make an externally created account known (and funded)."""
        self._accounts[account.address] = account

    def transaction(self, tx_hash: str) -> Optional[LedgerTransaction]:
        entry = self._transactions.get(tx_hash)
        return entry[0] if entry else None

    # -- connection ----------------------------------------------------------

    async def _open(self) -> None:
        if self.fail_connect:
            raise LedgerUnavailableException(
                f"Cannot reach the {self.network} ledger",
                details={"network": self.network},
            )

    # -- gateway operations --------------------------------------------------

    async def generate_account(self) -> LedgerAccount:
        self._require_connection()
        n = next(self._account_counter)
        digest = sha256(f"{self.network}:account:{n}".encode("utf-8"))
        secret = int.from_bytes(digest, "big") % (_SECP256K1_ORDER - 1) + 1
        keys = KeyPair.from_secret(secret)

        account = LedgerAccount(
            address=encode_classic_address(simulated_account_id(keys.public_key_bytes)),
            public_key_hex=keys.public_key_hex,
            seed=f"{secret:064x}",
        )
        self._accounts[account.address] = account
        logger.debug("Generated simulated account %s", account.address)
        return account

    async def submit(self, tx: LedgerTransaction, signer: LedgerAccount) -> Outcome:
        self._require_connection()
        self.submitted.append(tx)
        if self.submit_delay:
            await asyncio.sleep(self.submit_delay)

        self._ledger_sequence += 1
        sequence = self._ledger_sequence
        tx_hash = sha256(
            canonical_bytes({"tx": tx.to_tx_json(), "sequence": sequence})
        ).hex().upper()

        code = self._scripted.popleft() if self._scripted else self._evaluate(tx, signer)

        outcome: Outcome
        if code == PENDING:
            self._apply(tx)
            # Settles on the ledger; the submitter just never sees it
            self._transactions[tx_hash] = (
                tx, Settled(ledger_sequence=sequence, tx_hash=tx_hash),
            )
            outcome = Pending(tx_hash=tx_hash)
        elif code == SUCCESS_CODE:
            self._apply(tx)
            outcome = Settled(ledger_sequence=sequence, tx_hash=tx_hash)
            self._transactions[tx_hash] = (tx, outcome)
        else:
            outcome = Rejected(outcome_code=code, tx_hash=tx_hash)
            self._transactions[tx_hash] = (tx, outcome)

        logger.debug("%s from %s -> %s", tx.transaction_type, tx.account, outcome.status)
        return outcome

    async def query(self, address: str, record_type: str = "did") -> Optional[dict[str, Any]]:
        self._require_connection()
        if self.query_delay:
            await asyncio.sleep(self.query_delay)
        if self._query_failures > 0:
            self._query_failures -= 1
            raise LedgerUnavailableException(
                f"Simulated {self.network} ledger outage",
                details={"network": self.network},
            )
        obj = self._objects.get((address, record_type.lower()))
        return dict(obj) if obj is not None else None

    async def lookup_transaction(self, tx_hash: str) -> Optional[Outcome]:
        self._require_connection()
        entry = self._transactions.get(tx_hash)
        return entry[1] if entry else None

    # -- ledger rules --------------------------------------------------------

    def _evaluate(self, tx: LedgerTransaction, signer: LedgerAccount) -> str:
        known = self._accounts.get(tx.account)
        if known is None:
            return "terNO_ACCOUNT"
        if signer.address != tx.account or signer.seed != known.seed:
            return "tefBAD_AUTH"

        if tx.transaction_type == "DIDSet":
            present = [f for f in DID_FIELDS if f in tx.fields]
            if not present:
                return "temEMPTY_DID"
            for name in present:
                value = tx.fields[name]
                if not isinstance(value, str):
                    return "temMALFORMED"
                try:
                    size = len(bytes.fromhex(value))
                except ValueError:
                    return "temMALFORMED"
                if size > self.field_limit:
                    return "temMALFORMED"
            if not self._merged_did(tx):
                return "tecEMPTY_DID"

        elif tx.transaction_type == "DIDDelete":
            if (tx.account, "did") not in self._objects:
                return "tecNO_ENTRY"

        elif tx.transaction_type == "Payment":
            if tx.fields.get("Destination") == tx.account:
                return "temREDUNDANT"

        return SUCCESS_CODE

    def _merged_did(self, tx: LedgerTransaction) -> dict[str, str]:
        """DID fields as they would stand after applying a DIDSet."""
        current = self._objects.get((tx.account, "did"), {})
        merged = {f: current[f] for f in DID_FIELDS if current.get(f)}
        for name in DID_FIELDS:
            if name not in tx.fields:
                continue
            # An empty value removes the field
            if tx.fields[name]:
                merged[name] = tx.fields[name]
            else:
                merged.pop(name, None)
        return merged

    def _apply(self, tx: LedgerTransaction) -> None:
        if tx.transaction_type == "DIDSet":
            self._objects[(tx.account, "did")] = {
                "LedgerEntryType": "DID",
                "Account": tx.account,
                **self._merged_did(tx),
            }
        elif tx.transaction_type == "DIDDelete":
            self._objects.pop((tx.account, "did"), None)
