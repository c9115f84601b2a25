"""
CLI Tests
Tests for violette_cli (offline commands only).
"""
import json

import pytest

from core.crypto.hashing import to_hex
from core.merkle import build_merkle_tree
from violette_cli.main import EXIT_RUNTIME_ERROR, EXIT_SUCCESS, EXIT_VERIFICATION_FAILED, main

from fixtures.common import make_entries


def export(entries):
    return [
        {"id": e.id, "content_hash": e.content_hash.hex(), "timestamp": e.timestamp, "tags": list(e.tags)}
        for e in entries
    ]


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("VIOLETTE_LOG_LEVEL", "VIOLETTE_LEDGER_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def entries_file(workdir):
    path = workdir / "entries.json"
    path.write_text(json.dumps({"entries": export(make_entries(3))}))
    return path


class TestMerkleCommands:

    def test_root(self, entries_file, capsys):
        assert main(["merkle", "root", str(entries_file)]) == EXIT_SUCCESS

        out = capsys.readouterr().out
        assert f"root: {to_hex(build_merkle_tree(make_entries(3)).root)}" in out
        assert "entries: 3" in out
        assert "depth: 2" in out

    def test_root_json(self, entries_file, capsys):
        assert main(["merkle", "root", str(entries_file), "--json"]) == EXIT_SUCCESS
        tree = json.loads(capsys.readouterr().out)
        assert tree["entryCount"] == 3

    def test_plain_list_export(self, workdir, capsys):
        path = workdir / "list.json"
        path.write_text(json.dumps(export(make_entries(2))))
        assert main(["merkle", "root", str(path)]) == EXIT_SUCCESS

    def test_proof_then_verify(self, entries_file, workdir, capsys):
        proof_path = workdir / "proof.json"
        assert main(["merkle", "proof", str(entries_file), "--index", "1", "--out", str(proof_path)]) == EXIT_SUCCESS

        root = to_hex(build_merkle_tree(make_entries(3)).root)
        assert main(["merkle", "verify", str(proof_path), "--root", root]) == EXIT_SUCCESS
        assert "valid: true" in capsys.readouterr().out

    def test_verify_against_other_root(self, entries_file, workdir, capsys):
        proof_path = workdir / "proof.json"
        main(["merkle", "proof", str(entries_file), "-i", "0", "-o", str(proof_path)])

        assert main(["merkle", "verify", str(proof_path), "--root", "0x" + "00" * 32]) == EXIT_VERIFICATION_FAILED
        assert "valid: false" in capsys.readouterr().out

    def test_index_out_of_range(self, entries_file):
        assert main(["merkle", "proof", str(entries_file), "--index", "3"]) == EXIT_RUNTIME_ERROR

    def test_empty_export(self, workdir):
        path = workdir / "empty.json"
        path.write_text("[]")
        assert main(["merkle", "root", str(path)]) == EXIT_RUNTIME_ERROR

    def test_malformed_export(self, workdir, capsys):
        path = workdir / "bad.json"
        path.write_text(json.dumps([{"id": "e1"}]))

        assert main(["merkle", "root", str(path)]) == EXIT_RUNTIME_ERROR
        assert "Malformed entry" in capsys.readouterr().err

    def test_missing_files(self, workdir):
        assert main(["merkle", "root", "nope.json"]) == EXIT_RUNTIME_ERROR
        assert main(["merkle", "verify", "nope.json"]) == EXIT_RUNTIME_ERROR


class TestConfigCommand:

    def test_init_then_show(self, workdir, capsys):
        assert main(["config", "--init"]) == EXIT_SUCCESS
        assert (workdir / "violette.yaml").exists()
        assert main(["config", "--init"]) == EXIT_RUNTIME_ERROR

        capsys.readouterr()
        assert main(["config", "--show"]) == EXIT_SUCCESS
        shown = json.loads(capsys.readouterr().out)
        assert shown["codec"]["document_limit"] == 256

    def test_explicit_missing_config(self):
        assert main(["--config", "missing.yaml", "config", "--show"]) == EXIT_RUNTIME_ERROR

    def test_no_command(self, capsys):
        assert main([]) == EXIT_RUNTIME_ERROR


class TestAccountFiles:

    def test_seed_written_and_restored(self, workdir):
        from core.schemas.accounts import LedgerAccount
        from violette_cli.commands.did import load_account, save_account

        account = LedgerAccount(address="rAccount", public_key_hex="03" + "11" * 32, seed="sSecret")
        path = workdir / "account.json"
        save_account(account, path)

        assert json.loads(path.read_text())["seed"] == "sSecret"
        assert path.stat().st_mode & 0o777 == 0o600
        assert load_account(path).seed == "sSecret"

    def test_bad_account_file(self, workdir):
        from violette_cli.commands.did import load_account

        path = workdir / "account.json"
        path.write_text("{}")
        with pytest.raises(ValueError, match="Invalid account file"):
            load_account(path)

    def test_delete_needs_account_file(self, capsys):
        code = main(["did", "delete", "did:xrpl:1:rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh", "--account", "nope.json"])
        assert code == EXIT_RUNTIME_ERROR
        assert "nope.json" in capsys.readouterr().err
