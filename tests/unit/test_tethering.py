"""
Tethering Recorder Tests
Tests for core/tethering/recorder.py
"""
from datetime import timedelta

import pytest

from core.crypto.hashing import to_hex
from core.crypto.signatures import KeyPair
from core.did.store import InMemoryRecordStore
from core.schemas.did import DIDRecord, DIDState, EncodingStrategy, VerificationStatus
from core.schemas.errors import (
    AlreadyTetheredException,
    DIDNotVerifiedException,
    ErrorCodes,
    InvalidFormatException,
    NotFoundException,
    SignatureInvalidException,
)
from core.tethering import REGISTRY_SERVICE_TYPE, TetheringRecorder, compute_asset_root, tethering_message

from fixtures.common import FIXED_NOW, GENESIS_ADDRESS, GENESIS_DID, OTHER_DID, fixed_clock, make_document, make_mirror, make_original


VERIFIER = KeyPair.from_secret(0xC0FFEE)


def make_record(state: DIDState = DIDState.VERIFIED) -> DIDRecord:
    status = VerificationStatus.VERIFIED if state == DIDState.VERIFIED else VerificationStatus.FAILED
    return DIDRecord(
        did_id=GENESIS_DID,
        controlling_address=GENESIS_ADDRESS,
        document=make_document(),
        strategy=EncodingStrategy.REFERENCE,
        created_at=FIXED_NOW,
        last_updated=FIXED_NOW,
        verification_status=status,
        state=state,
    )


def signed_request(originals, mirrors):
    """Root and verifier signature for a tethering request."""
    root = compute_asset_root(originals)
    signature = VERIFIER.sign(tethering_message(GENESIS_DID, root, originals, mirrors)).signature_hex
    return to_hex(root), signature


@pytest.fixture
def store():
    store = InMemoryRecordStore()
    store.put(make_record())
    return store


@pytest.fixture
def recorder(store):
    return TetheringRecorder(store, verifier_public_key=VERIFIER.public_key_hex, clock=fixed_clock)


class TestTether:

    def test_tether_appends_record(self, recorder, store):
        originals = [make_original("1"), make_original("2")]
        mirrors = [make_mirror("1")]
        root, signature = signed_request(originals, mirrors)

        tethering = recorder.tether(GENESIS_DID, originals, mirrors, root, signature=signature)

        assert tethering.original_asset_refs == tuple(originals)
        assert tethering.mirror_asset_refs == tuple(mirrors)
        assert tethering.proof.merkle_root == root
        assert tethering.proof.timestamp == FIXED_NOW
        assert store.list_tethering(GENESIS_DID) == [tethering]

    def test_accepts_plain_dicts(self, recorder):
        originals = [make_original("1")]
        mirrors = [make_mirror("1")]
        root, signature = signed_request(originals, mirrors)

        tethering = recorder.tether(
            GENESIS_DID,
            [o.model_dump() for o in originals],
            [m.model_dump() for m in mirrors],
            root,
            signature=signature,
        )
        assert tethering.original_asset_refs == tuple(originals)

    def test_bare_hex_root_accepted(self, recorder):
        originals = [make_original("1")]
        root, signature = signed_request(originals, [])

        tethering = recorder.tether(GENESIS_DID, originals, [], root[2:], signature=signature)
        assert tethering.proof.merkle_root == root

    def test_duplicate_across_requests(self, recorder, store):
        first = [make_original("1")]
        root, signature = signed_request(first, [])
        recorder.tether(GENESIS_DID, first, [], root, signature=signature)

        # Same asset, contract address in a different case
        again = [make_original("1", contract="0xABC0000000000000000000000000000000000001"), make_original("2")]
        root, signature = signed_request(again, [])
        with pytest.raises(AlreadyTetheredException) as exc_info:
            recorder.tether(GENESIS_DID, again, [], root, signature=signature)

        assert exc_info.value.code == ErrorCodes.ALREADY_TETHERED
        assert exc_info.value.details["assets"] == [first[0].key]
        assert len(store.list_tethering(GENESIS_DID)) == 1

    def test_duplicate_within_request(self, recorder):
        originals = [make_original("7"), make_original("7")]
        root, signature = signed_request(originals, [])

        with pytest.raises(AlreadyTetheredException):
            recorder.tether(GENESIS_DID, originals, [], root, signature=signature)

    def test_bad_signature(self, recorder, store):
        originals = [make_original("1")]
        root, _ = signed_request(originals, [])
        forged = KeyPair.from_secret(99).sign(b"something else").signature_hex

        with pytest.raises(SignatureInvalidException):
            recorder.tether(GENESIS_DID, originals, [], root, signature=forged)
        assert store.list_tethering(GENESIS_DID) == []

    def test_no_verifier_key_skips_signature_check(self, store):
        recorder = TetheringRecorder(store)
        originals = [make_original("1")]
        root, _ = signed_request(originals, [])

        tethering = recorder.tether(GENESIS_DID, originals, [], root, signature="00")
        assert tethering.proof.signature == "00"


class TestPreconditions:

    def test_unknown_did(self, recorder):
        with pytest.raises(NotFoundException):
            recorder.tether(OTHER_DID, [make_original()], [], "0x" + "00" * 32, signature="00")

    def test_malformed_did(self, recorder):
        with pytest.raises(InvalidFormatException):
            recorder.tether("did:web:example.org", [make_original()], [], "0x" + "00" * 32, signature="00")

    @pytest.mark.parametrize("state", [DIDState.FAILED, DIDState.DELETED])
    def test_unverified_did(self, state):
        store = InMemoryRecordStore()
        store.put(make_record(state))
        recorder = TetheringRecorder(store)

        with pytest.raises(DIDNotVerifiedException) as exc_info:
            recorder.tether(GENESIS_DID, [make_original()], [], "0x" + "00" * 32, signature="00")
        assert exc_info.value.details["status"] == state.value

    @pytest.mark.parametrize("root", ["0x1234", "not hex", 12])
    def test_malformed_root(self, recorder, root):
        with pytest.raises(InvalidFormatException):
            recorder.tether(GENESIS_DID, [make_original()], [], root, signature="00")

    def test_malformed_reference(self, recorder):
        with pytest.raises(InvalidFormatException, match="asset reference"):
            recorder.tether(GENESIS_DID, [{"chain": "ethereum"}], [], "0x" + "00" * 32, signature="00")

    def test_nothing_to_tether(self, recorder):
        with pytest.raises(InvalidFormatException, match="Nothing"):
            recorder.tether(GENESIS_DID, [], [], "0x" + "00" * 32, signature="00")


class TestRegistryService:

    def test_lists_all_tethered_assets(self, store):
        recorder = TetheringRecorder(store)
        later = FIXED_NOW + timedelta(days=1)
        recorder.tether(GENESIS_DID, [make_original("1")], [make_mirror("1")], "0x" + "11" * 32,
                        signature="00", timestamp=FIXED_NOW)
        recorder.tether(GENESIS_DID, [make_original("2")], [], "0x" + "22" * 32,
                        signature="00", timestamp=later)

        service = recorder.registry_service(GENESIS_DID)

        assert service.type == REGISTRY_SERVICE_TYPE
        assert service.id == f"{GENESIS_DID}#cross-chain-nft-registry"
        assert [a["token_id"] for a in service.service_endpoint["originalAssets"]] == ["1", "2"]
        assert len(service.service_endpoint["mirrorAssets"]) == 1
        assert service.service_endpoint["lastUpdated"] == "2026-03-15T09:26:53Z"

    def test_empty_registry(self, recorder):
        service = recorder.registry_service(GENESIS_DID)
        assert service.service_endpoint == {"originalAssets": [], "mirrorAssets": []}
