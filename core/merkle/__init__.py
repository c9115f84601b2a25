"""
Merkle Tree and Commitments
Deterministic Merkle tree construction + proof generation/verification
over diary entries.

Canonical Commitment Rules:
1. Leaf hashing: sha256(dumps_canonical(entry.canonical_form()).encode("utf-8"))
2. Parent hashing: sha256(min(left, right) + max(left, right))
3. Odd levels: promote the last node unchanged
4. Empty input: EmptyInputException
5. Single leaf: root = leaf

Usage:
    from core.merkle import build_merkle_tree, build_merkle_proof, verify_merkle_proof

    tree = build_merkle_tree(entries)
    proof = build_merkle_proof(tree, index=2)
    assert verify_merkle_proof(proof, tree.root)
"""
from .merkle_tree import (
    MerkleNode,
    MerkleTree,
    MerkleProof,
    entry_leaf,
    compute_leaves,
    build_tree_from_leaves,
    build_merkle_tree,
    compute_merkle_root,
    merkle_root,
    build_merkle_proof,
    build_leaf_proof,
    verify_merkle_proof,
    compute_tree_depth,
)

from .merkle_proofs import (
    MerkleProver,
    MerkleVerifier,
)


__all__ = [
    # Core types
    "MerkleNode",
    "MerkleTree",
    "MerkleProof",
    # Core functions
    "entry_leaf",
    "compute_leaves",
    "build_tree_from_leaves",
    "build_merkle_tree",
    "compute_merkle_root",
    "merkle_root",
    "build_merkle_proof",
    "build_leaf_proof",
    "verify_merkle_proof",
    "compute_tree_depth",
    # Convenience classes
    "MerkleProver",
    "MerkleVerifier",
]
