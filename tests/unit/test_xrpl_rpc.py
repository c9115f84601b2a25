"""
JSON-RPC Gateway Tests
Tests for core/ledger/xrpl_rpc.py against a scripted transport.
"""
import asyncio
from collections import defaultdict, deque

import pytest

from core.config.runtime import LedgerConfig
from core.did.lifecycle import DIDLifecycleManager
from core.http import HttpClient, HttpError
from core.ledger import LedgerTransaction, Pending, Rejected, Settled
from core.ledger.xrpl_rpc import XrplRpcGateway
from core.receipts import ReceiptRecorder, RPCReceipt
from core.schemas.accounts import LedgerAccount
from core.schemas.errors import ErrorCodes, LedgerUnavailableException

from fixtures.common import GENESIS_ADDRESS, make_metadata


TX_HASH = "C0FFEE" * 10 + "AABB"

SERVER_INFO = {"status": "success", "info": {"build_version": "2.3.0", "server_state": "full"}}


class ScriptedHttp(HttpClient):
    """HttpClient whose JSON-RPC replies are queued per method."""

    def __init__(self):
        super().__init__()
        self.replies = defaultdict(deque)
        self.calls = []

    def reply(self, method, result):
        self.replies[method].append(result)

    def post_json(self, url, payload, *, timeout=None, record=True):
        method = payload.get("method", "faucet")
        self.calls.append((url, payload))
        reply = self.replies[method].popleft()
        if isinstance(reply, Exception):
            raise reply
        return {"result": reply}


@pytest.fixture
def http():
    http = ScriptedHttp()
    http.reply("server_info", SERVER_INFO)
    return http


@pytest.fixture
def rpc(http):
    config = LedgerConfig(url="http://rippled.local:5005", testnet=False, poll_interval=0.0, max_polls=3)
    return XrplRpcGateway(config, http=http)


@pytest.fixture
def account():
    return LedgerAccount(address=GENESIS_ADDRESS, public_key_hex="03" + "11" * 32, seed="sEdSecretSeed")


def connected(rpc, factory):
    async def scenario():
        await rpc.connect()
        return await factory()
    return asyncio.run(scenario())


def did_set():
    return LedgerTransaction(transaction_type="DIDSet", account=GENESIS_ADDRESS, fields={"URI": "AA"})


def validated(result="tesSUCCESS", ledger_index=77):
    return {
        "hash": TX_HASH,
        "validated": True,
        "ledger_index": ledger_index,
        "meta": {"TransactionResult": result},
    }


class TestConnection:

    def test_connect_calls_server_info(self, rpc, http):
        asyncio.run(rpc.connect())
        assert rpc.is_connected
        assert http.calls[0][1]["method"] == "server_info"

    def test_transport_failure(self, rpc, http):
        http.replies["server_info"].clear()
        http.reply("server_info", HttpError("connection refused"))

        with pytest.raises(LedgerUnavailableException):
            asyncio.run(rpc.connect())
        assert not rpc.is_connected

    def test_node_error(self, rpc, http):
        http.replies["server_info"].clear()
        http.reply("server_info", {"status": "error", "error": "noNetwork"})

        with pytest.raises(LedgerUnavailableException, match="noNetwork"):
            asyncio.run(rpc.connect())


class TestAccounts:

    def test_wallet_propose(self, rpc, http):
        http.reply("wallet_propose", {
            "status": "success",
            "account_id": GENESIS_ADDRESS,
            "public_key_hex": "03" + "22" * 32,
            "master_seed": "sSeed",
        })

        account = connected(rpc, rpc.generate_account)
        assert account.address == GENESIS_ADDRESS
        assert account.seed == "sSeed"

        # The seed never reaches a receipt
        receipt = rpc.recorder.get_receipts()[-1]
        assert receipt.response["master_seed"] == "***"

    def test_testnet_funding(self, http):
        config = LedgerConfig(url="http://rippled.local:5005", faucet_url="http://faucet.local", poll_interval=0.0)
        rpc = XrplRpcGateway(config, http=http)
        http.reply("wallet_propose", {
            "account_id": GENESIS_ADDRESS, "public_key_hex": "03" + "22" * 32, "master_seed": "sSeed",
        })
        http.reply("faucet", {})
        http.reply("account_info", {"status": "error", "error": "actNotFound"})
        http.reply("account_info", {"status": "success", "account_data": {}})

        connected(rpc, rpc.generate_account)

        assert [payload.get("method", "faucet") for _, payload in http.calls] == [
            "server_info", "wallet_propose", "faucet", "account_info", "account_info",
        ]
        assert http.calls[2] == ("http://faucet.local", {"destination": GENESIS_ADDRESS})


class TestSubmit:

    def test_settled(self, rpc, http, account):
        http.reply("submit", {"engine_result": "tesSUCCESS", "tx_json": {"hash": TX_HASH}})
        http.reply("tx", {"hash": TX_HASH, "validated": False})
        http.reply("tx", validated())

        outcome = connected(rpc, lambda: rpc.submit(did_set(), account))

        assert outcome == Settled(ledger_sequence=77, tx_hash=TX_HASH)
        submit_params = http.calls[1][1]["params"][0]
        assert submit_params["tx_json"]["TransactionType"] == "DIDSet"

    def test_secret_redacted_in_receipts(self, rpc, http, account):
        http.reply("submit", {"engine_result": "tesSUCCESS", "tx_json": {"hash": TX_HASH}})
        http.reply("tx", validated())

        connected(rpc, lambda: rpc.submit(did_set(), account))

        receipts = rpc.recorder.for_transaction(TX_HASH)
        assert [r.rpc_method for r in receipts] == ["submit", "tx"]
        assert receipts[0].request["params"][0]["secret"] == "***"
        assert all(isinstance(r, RPCReceipt) for r in receipts)

    def test_terminal_engine_result(self, rpc, http, account):
        http.reply("submit", {"engine_result": "temMALFORMED", "tx_json": {"hash": TX_HASH}})

        outcome = connected(rpc, lambda: rpc.submit(did_set(), account))
        assert outcome == Rejected(outcome_code="temMALFORMED", tx_hash=TX_HASH)

    def test_validated_failure(self, rpc, http, account):
        http.reply("submit", {"engine_result": "terQUEUED", "tx_json": {"hash": TX_HASH}})
        http.reply("tx", validated("tecNO_PERMISSION"))

        outcome = connected(rpc, lambda: rpc.submit(did_set(), account))
        assert isinstance(outcome, Rejected)
        assert outcome.outcome_code == "tecNO_PERMISSION"

    def test_never_validated(self, rpc, http, account):
        http.reply("submit", {"engine_result": "tesSUCCESS", "tx_json": {"hash": TX_HASH}})
        for _ in range(3):
            http.reply("tx", {"status": "error", "error": "txnNotFound"})

        outcome = connected(rpc, lambda: rpc.submit(did_set(), account))
        assert outcome == Pending(tx_hash=TX_HASH)

    def test_signer_must_match(self, rpc, http):
        stranger = LedgerAccount(address="rSomeoneElse", public_key_hex="03" + "33" * 32, seed="s")

        outcome = connected(rpc, lambda: rpc.submit(did_set(), stranger))
        assert outcome.outcome_code == "tefBAD_AUTH"
        assert len(http.calls) == 1


class TestLifecycleOverRpc:

    def test_validated_reply_without_result(self, rpc, http, account):
        http.reply("submit", {"engine_result": "tesSUCCESS", "tx_json": {"hash": TX_HASH}})
        http.reply("tx", {"hash": TX_HASH, "validated": True, "ledger_index": 9})
        manager = DIDLifecycleManager(rpc, config=LedgerConfig(timeout=5.0))

        result = connected(rpc, lambda: manager.create(make_metadata(), account))

        assert not result.success
        assert result.error.code == ErrorCodes.INVALID_FORMAT
        assert manager.is_uncertain(GENESIS_ADDRESS)
        assert manager.store.get(result.did_id) is None


class TestQuery:

    def test_object_found(self, rpc, http):
        http.reply("account_objects", {
            "account_objects": [{"LedgerEntryType": "DID", "Account": GENESIS_ADDRESS, "URI": "AA"}],
        })

        obj = connected(rpc, lambda: rpc.query(GENESIS_ADDRESS))
        assert obj["URI"] == "AA"

    def test_no_objects(self, rpc, http):
        http.reply("account_objects", {"account_objects": []})
        assert connected(rpc, lambda: rpc.query(GENESIS_ADDRESS)) is None

    def test_unknown_account(self, rpc, http):
        http.reply("account_objects", {"status": "error", "error": "actNotFound"})
        assert connected(rpc, lambda: rpc.query(GENESIS_ADDRESS)) is None

    def test_other_errors_raise(self, rpc, http):
        http.reply("account_objects", {"status": "error", "error": "lgrNotFound"})
        with pytest.raises(LedgerUnavailableException):
            connected(rpc, lambda: rpc.query(GENESIS_ADDRESS))

    def test_requires_connection(self, rpc):
        with pytest.raises(LedgerUnavailableException):
            asyncio.run(rpc.query(GENESIS_ADDRESS))


class TestReceiptRecorder:

    def test_hashes_and_refs(self):
        recorder = ReceiptRecorder()
        receipt = recorder.start_http_receipt(method="POST", url="http://faucet.local", body={"seed": "s"})
        recorder.complete(receipt, response={"ok": True}, status_code=200)

        ref = recorder.get_receipt_refs()[0]
        assert receipt.request["body"] == {"seed": "***"}
        assert receipt.status_code == 200
        assert ref.request_hash.startswith("0x")
        assert ref.response_hash.startswith("0x")
        assert recorder.get_in_progress() == []

    def test_error_receipt(self):
        recorder = ReceiptRecorder()
        receipt = recorder.start_rpc_receipt(endpoint="http://x", rpc_method="tx")
        recorder.complete(receipt, error="timed out")

        assert not receipt.is_successful
        assert receipt.response_hash is None

    def test_receipt_ids_unique(self):
        recorder = ReceiptRecorder()
        first = recorder.start_rpc_receipt(endpoint="http://x", rpc_method="tx", params=[{"a": 1}])
        second = recorder.start_rpc_receipt(endpoint="http://x", rpc_method="tx", params=[{"a": 1}])
        assert first.receipt_id != second.receipt_id
