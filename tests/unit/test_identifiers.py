"""
DID Identifier and Address Tests
Tests for core/did/identifiers.py and core/crypto/addresses.py
"""
import pytest

from core.crypto.addresses import (
    decode_classic_address,
    encode_classic_address,
    is_valid_classic_address,
    simulated_account_id,
)
from core.crypto.signatures import KeyPair
from core.did.identifiers import DIDIdentifier, format_did, is_valid_did, parse_did, validate_address
from core.schemas.errors import ErrorCodes, InvalidFormatException

from fixtures.common import GENESIS_ADDRESS, GENESIS_DID


class TestClassicAddresses:

    def test_genesis_address_valid(self):
        assert is_valid_classic_address(GENESIS_ADDRESS)

    def test_encode_decode(self):
        account_id = simulated_account_id(KeyPair.from_secret(12345).public_key_bytes)
        address = encode_classic_address(account_id)

        assert address.startswith("r")
        assert decode_classic_address(address) == account_id
        assert is_valid_classic_address(address)

    def test_checksum_mismatch(self):
        # Swap two characters: still base58, checksum no longer matches
        broken = GENESIS_ADDRESS[:-2] + GENESIS_ADDRESS[-1] + GENESIS_ADDRESS[-2]
        assert not is_valid_classic_address(broken)

    @pytest.mark.parametrize("value", ["", "xHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh", "r0OIl", None, 42])
    def test_malformed(self, value):
        assert not is_valid_classic_address(value)

    def test_account_id_size_enforced(self):
        with pytest.raises(ValueError):
            encode_classic_address(b"\x00" * 19)


class TestFormatDid:

    def test_format(self):
        assert format_did(GENESIS_ADDRESS) == GENESIS_DID

    def test_custom_ledger_and_version(self):
        assert format_did(GENESIS_ADDRESS, ledger="xrpl", version="2") == f"did:xrpl:2:{GENESIS_ADDRESS}"

    def test_invalid_address(self):
        with pytest.raises(InvalidFormatException) as exc_info:
            format_did("not-an-address")
        assert exc_info.value.code == ErrorCodes.INVALID_FORMAT


class TestParseDid:

    def test_parse(self):
        parsed = parse_did(GENESIS_DID)

        assert parsed == DIDIdentifier(ledger="xrpl", version="1", address=GENESIS_ADDRESS)
        assert str(parsed) == GENESIS_DID

    @pytest.mark.parametrize(
        "did_id",
        [
            "",
            "did:xrpl:rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh",
            f"did:eth:1:{GENESIS_ADDRESS}",
            f"did:xrpl:9:{GENESIS_ADDRESS}",
            "did:xrpl:1:rNotAValidAddressAtAll12345",
            f"did:xrpl:1:{GENESIS_ADDRESS}:extra",
        ],
    )
    def test_rejects(self, did_id):
        with pytest.raises(InvalidFormatException):
            parse_did(did_id)
        assert not is_valid_did(did_id)

    def test_non_string(self):
        with pytest.raises(InvalidFormatException):
            parse_did(None)

    def test_validate_address_returns_input(self):
        assert validate_address(GENESIS_ADDRESS) == GENESIS_ADDRESS
