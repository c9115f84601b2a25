"""
XRPL JSON-RPC gateway.

Talks to a rippled node over JSON-RPC using the shared HttpClient. The
client is synchronous, so every call runs in a worker thread via
``asyncio.to_thread``; cancelling the awaiting task abandons the result but
cannot recall a request already sent.

Account generation (``wallet_propose``) and sign-and-submit (``submit`` with
a secret) require a node that permits them, such as a private or
standalone rippled. On testnet, new accounts are funded from the faucet.
Every RPC call is recorded as an RPCReceipt with secrets redacted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Union

from core.config.runtime import LedgerConfig
from core.http import HttpClient, HttpError
from core.receipts import ReceiptRecorder
from core.schemas.errors import LedgerUnavailableException

from .gateway import (
    LedgerAccount,
    LedgerGateway,
    LedgerTransaction,
    Pending,
    Rejected,
    Settled,
    parse_settlement,
)

logger = logging.getLogger(__name__)

# Engine results that mean the transaction can never be included
_TERMINAL_PREFIXES = ("tem", "tef", "tel")

Outcome = Union[Settled, Pending, Rejected]


class XrplRpcGateway(LedgerGateway):
    """
    rippled JSON-RPC backend.

    Usage:
        gateway = XrplRpcGateway(config.ledger, recorder=ReceiptRecorder())
        await gateway.connect()
        outcome = await gateway.submit(tx, account)
    """

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        *,
        http: Optional[HttpClient] = None,
        recorder: Optional[ReceiptRecorder] = None,
    ) -> None:
        super().__init__()
        self.config = config or LedgerConfig()
        self.recorder = recorder or ReceiptRecorder()
        self.http = http or HttpClient(timeout=self.config.timeout, recorder=self.recorder)
        self.network = self.config.network

    # -- transport -----------------------------------------------------------

    def _call(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        """
        One synchronous JSON-RPC round trip.

        Returns the ``result`` object, including rippled error results
        (``status == "error"``), which callers interpret.

        Raises:
            LedgerUnavailableException: On transport failure or a body
                without a result object.
        """
        receipt = self.recorder.start_rpc_receipt(
            endpoint=self.config.url,
            rpc_method=method,
            params=[params],
            network=self.network,
        )
        try:
            body = self.http.post_json(
                self.config.url,
                {"method": method, "params": [params]},
                record=False,
            )
        except HttpError as e:
            self.recorder.complete(receipt, error=str(e))
            raise LedgerUnavailableException(
                f"Ledger RPC {method} failed: {e}",
                details={"method": method, "timed_out": e.timed_out},
            ) from e

        result = body.get("result") if isinstance(body, dict) else None
        if not isinstance(result, dict):
            self.recorder.complete(receipt, error="response has no result object")
            raise LedgerUnavailableException(
                f"Ledger RPC {method} returned no result",
                details={"method": method},
            )

        error = result.get("error") if result.get("status") == "error" else None
        tx_json = result.get("tx_json")
        tx_hash = tx_json.get("hash") if isinstance(tx_json, dict) else result.get("hash")
        self.recorder.complete(receipt, response=result, error=error, tx_hash=tx_hash)
        return result

    async def _rpc(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self._call, method, params)

    @staticmethod
    def _raise_for_error(method: str, result: dict[str, Any]) -> None:
        if result.get("status") == "error":
            raise LedgerUnavailableException(
                f"Ledger RPC {method} refused: {result.get('error_message') or result.get('error')}",
                details={"method": method, "error": result.get("error")},
            )

    # -- connection ----------------------------------------------------------

    async def _open(self) -> None:
        result = await self._rpc("server_info", {})
        self._raise_for_error("server_info", result)
        info = result.get("info") or {}
        logger.info(
            "rippled %s at %s (state: %s)",
            info.get("build_version", "?"),
            self.config.url,
            info.get("server_state", "?"),
        )

    async def _close(self) -> None:
        await asyncio.to_thread(self.http.close)

    # -- gateway operations --------------------------------------------------

    async def generate_account(self) -> LedgerAccount:
        self._require_connection()
        result = await self._rpc("wallet_propose", {"key_type": "secp256k1"})
        self._raise_for_error("wallet_propose", result)

        account = LedgerAccount(
            address=result["account_id"],
            public_key_hex=result["public_key_hex"],
            seed=result["master_seed"],
        )
        if self.config.testnet and self.config.faucet_url:
            await self._fund(account.address)
        return account

    async def _fund(self, address: str) -> None:
        """Fund a testnet account from the faucet and wait until it exists."""
        try:
            await asyncio.to_thread(
                self.http.post_json, self.config.faucet_url, {"destination": address},
            )
        except HttpError as e:
            raise LedgerUnavailableException(
                f"Faucet funding failed: {e}",
                details={"address": address},
            ) from e

        for _ in range(self.config.max_polls):
            info = await self._rpc(
                "account_info", {"account": address, "ledger_index": "validated"},
            )
            if info.get("status") != "error":
                logger.info("Funded testnet account %s", address)
                return
            await asyncio.sleep(self.config.poll_interval)

        raise LedgerUnavailableException(
            "Faucet funding was not validated in time",
            details={"address": address},
        )

    async def submit(self, tx: LedgerTransaction, signer: LedgerAccount) -> Outcome:
        self._require_connection()
        if not signer.seed or signer.address != tx.account:
            return Rejected(outcome_code="tefBAD_AUTH")

        result = await self._rpc(
            "submit",
            {"tx_json": tx.to_tx_json(), "secret": signer.seed, "key_type": "secp256k1"},
        )
        self._raise_for_error("submit", result)

        engine_result = result.get("engine_result", "")
        tx_json = result.get("tx_json") or {}
        tx_hash = tx_json.get("hash")
        logger.info("Submitted %s: preliminary %s", tx.transaction_type, engine_result)

        if engine_result.startswith(_TERMINAL_PREFIXES):
            return Rejected(outcome_code=engine_result, tx_hash=tx_hash)
        if not tx_hash:
            raise LedgerUnavailableException(
                "submit response carries no transaction hash",
                details={"engine_result": engine_result},
            )
        return await self._await_validation(tx_hash)

    async def _await_validation(self, tx_hash: str) -> Outcome:
        for _ in range(self.config.max_polls):
            await asyncio.sleep(self.config.poll_interval)
            outcome = await self.lookup_transaction(tx_hash)
            if outcome is not None and not isinstance(outcome, Pending):
                return outcome

        logger.warning("Transaction %s not validated after %d polls", tx_hash, self.config.max_polls)
        return Pending(tx_hash=tx_hash)

    async def query(self, address: str, record_type: str = "did") -> Optional[dict[str, Any]]:
        self._require_connection()
        result = await self._rpc(
            "account_objects",
            {"account": address, "type": record_type, "ledger_index": "validated"},
        )
        if result.get("status") == "error":
            if result.get("error") == "actNotFound":
                return None
            self._raise_for_error("account_objects", result)

        objects = result.get("account_objects") or []
        return dict(objects[0]) if objects else None

    async def lookup_transaction(self, tx_hash: str) -> Optional[Outcome]:
        self._require_connection()
        result = await self._rpc("tx", {"transaction": tx_hash})
        if result.get("status") == "error":
            if result.get("error") == "txnNotFound":
                return None
            self._raise_for_error("tx", result)
        return parse_settlement(result)
