"""
Merkle Proofs Convenience Wrappers
Class-based entry points over the functions in merkle_tree.py.

- MerkleProver: build trees and proofs straight from diary entries
- MerkleVerifier: verify proofs, or check an entry against a published root
"""
from __future__ import annotations

from typing import Sequence

from core.merkle.merkle_tree import (
    MerkleProof,
    MerkleTree,
    build_merkle_proof,
    build_merkle_tree,
    entry_leaf,
    verify_merkle_proof,
)
from core.schemas.entries import Entry


class MerkleProver:
    """
    Convenience class for generating Merkle proofs from entries.

    Example:
        >>> tree = MerkleProver.build(entries)
        >>> proof = MerkleProver.prove(entries, index=1)
        >>> proof.root == tree.root
        True
    """

    @staticmethod
    def build(entries: Sequence[Entry]) -> MerkleTree:
        """
        Raises:
            EmptyInputException: If entries is empty.
        """
        return build_merkle_tree(entries)

    @staticmethod
    def prove(entries: Sequence[Entry], index: int) -> MerkleProof:
        """
        Build the tree and prove the entry at ``index``.

        Raises:
            EmptyInputException: If entries is empty.
            IndexOutOfRangeException: If index is out of range.
        """
        return build_merkle_proof(build_merkle_tree(entries), index)

    @staticmethod
    def prove_all(entries: Sequence[Entry]) -> list[MerkleProof]:
        """One proof per entry, sharing a single tree build."""
        tree = build_merkle_tree(entries)
        return [build_merkle_proof(tree, i) for i in range(tree.entry_count)]


class MerkleVerifier:
    """Convenience class for verifying Merkle proofs."""

    @staticmethod
    def verify(proof: MerkleProof, expected_root: bytes) -> bool:
        return verify_merkle_proof(proof, expected_root)

    @staticmethod
    def verify_entry(
        entry: Entry,
        siblings: Sequence[bytes],
        expected_root: bytes,
    ) -> bool:
        """
        Check that an entry belongs to a published root.

        The entry is re-hashed locally, so a proof cannot vouch for a
        different leaf than the one presented.
        """
        proof = MerkleProof(
            leaf=entry_leaf(entry),
            proof=tuple(siblings),
            root=expected_root,
            index=0,
        )
        return verify_merkle_proof(proof, expected_root)


__all__ = [
    "MerkleProver",
    "MerkleVerifier",
]
