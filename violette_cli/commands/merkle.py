"""
CLI Merkle Commands (offline)

Compute snapshot roots and inclusion proofs from an exported entries file,
and verify a proof against a root. No ledger access.

Entries file: a JSON list of entries, or an object with an "entries" list.
Each entry carries id, content_hash (hex), timestamp (ms) and optional tags.

Usage:
    violette merkle root entries.json [--json]
    violette merkle proof entries.json --index 2 [--out proof.json]
    violette merkle verify proof.json [--root HEX]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from core.crypto.hashing import from_hex, to_hex
from core.merkle import MerkleProof, build_merkle_proof, build_merkle_tree, verify_merkle_proof
from core.schemas.entries import Entry
from core.schemas.errors import VioletteException


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


class EntriesFileError(Exception):
    """Raised when an entries file cannot be read or parsed."""


def load_entries(path: Path) -> list[Entry]:
    """
    Read entries from a JSON export.

    Raises:
        EntriesFileError: Missing file, invalid JSON or malformed entries.
    """
    if not path.exists():
        raise EntriesFileError(f"Entries file not found: {path}")
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise EntriesFileError(f"Invalid JSON in {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("entries")
    if not isinstance(data, list):
        raise EntriesFileError(f"{path} does not contain a list of entries")

    try:
        return [Entry.model_validate(item) for item in data]
    except (ValidationError, ValueError) as e:
        raise EntriesFileError(f"Malformed entry in {path}: {e}") from e


def root_cmd(args: Namespace) -> int:
    try:
        entries = load_entries(Path(args.entries))
        tree = build_merkle_tree(entries)
    except (EntriesFileError, VioletteException) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    logger.info("Computed root over %d entries", tree.entry_count)
    if args.json:
        print(json.dumps(tree.to_dict(), indent=2))
    else:
        print(f"root: {to_hex(tree.root)}")
        print(f"entries: {tree.entry_count}")
        print(f"depth: {tree.depth}")
    return EXIT_SUCCESS


def proof_cmd(args: Namespace) -> int:
    try:
        entries = load_entries(Path(args.entries))
        tree = build_merkle_tree(entries)
        proof = build_merkle_proof(tree, args.index)
    except (EntriesFileError, VioletteException) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    payload = json.dumps(proof.to_dict(), indent=2)
    if args.out:
        Path(args.out).write_text(payload + "\n", encoding="utf-8")
        print(f"Wrote proof for entry {args.index} to {args.out}")
    else:
        print(payload)
    return EXIT_SUCCESS


def verify_cmd(args: Namespace) -> int:
    """
    Verify a proof file. The root defaults to the one embedded in the proof;
    pass --root to check against an independently obtained root.
    """
    path = Path(args.proof)
    if not path.exists():
        print(f"Error: Proof file not found: {path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    try:
        proof = MerkleProof.from_dict(json.loads(path.read_text(encoding="utf-8")))
        root = from_hex(args.root) if args.root else proof.root
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        print(f"Error: Malformed proof or root: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    ok = verify_merkle_proof(proof, root)
    print(f"index: {proof.index}")
    print(f"root: {to_hex(root)}")
    print(f"valid: {str(ok).lower()}")

    if ok:
        logger.info("Proof verified")
        return EXIT_SUCCESS
    logger.warning("Proof does not verify against %s", to_hex(root))
    return EXIT_VERIFICATION_FAILED
