"""
Merkle Tree Implementation
Deterministic Merkle tree construction, proof generation, and verification
over an ordered diary entry set.

Canonical Commitment Rules (Hard Contracts):
1. Leaf hashing: leaf = sha256(dumps_canonical(entry.canonical_form()).encode("utf-8"))
2. Parent hashing: parent = sha256(min(left, right) + max(left, right))
   (children are ordered lexicographically before hashing)
3. Odd levels: the last node is promoted unchanged to the next level;
   it is never duplicated or hashed with itself
4. Empty input: rejected with EmptyInputException
5. Single leaf: root = leaf, depth 0, empty proof

Determinism Notes:
- Leaf order is the input entry order; this module never sorts leaves
- Only sibling pairs are order-normalized, so proofs verify without an index
- Consequence: swapping the two entries of one pair leaves the root unchanged;
  moving an entry into another pair changes it
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from core.crypto.hashing import hash_canonical, hash_pair, is_digest
from core.schemas.entries import Entry
from core.schemas.errors import EmptyInputException, IndexOutOfRangeException


@dataclass(frozen=True)
class MerkleNode:
    """
    A node of the tree.

    Leaves have no children. For every internal node
    ``hash == hash_pair(left, right)``.
    """
    hash: bytes
    left: Optional[bytes] = None
    right: Optional[bytes] = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"hash": self.hash.hex()}
        if self.left is not None:
            d["left"] = self.left.hex()
        if self.right is not None:
            d["right"] = self.right.hex()
        return d


@dataclass(frozen=True)
class MerkleTree:
    """
    Immutable tree built from one snapshot of entries.

    Attributes:
        nodes: Leaves first, then internal nodes level by level
        root: Root hash
        depth: Number of hashing levels above the leaves (0 for one entry)
        entry_count: Number of leaves
        levels: Hashes per level, leaves first, root last
    """
    nodes: tuple[MerkleNode, ...]
    root: bytes
    depth: int
    entry_count: int
    levels: tuple[tuple[bytes, ...], ...] = field(repr=False)

    @property
    def leaves(self) -> tuple[bytes, ...]:
        return self.levels[0]

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form (hex hashes)."""
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "root": self.root.hex(),
            "depth": self.depth,
            "entryCount": self.entry_count,
        }


@dataclass(frozen=True)
class MerkleProof:
    """
    Inclusion proof for a single leaf.

    Attributes:
        leaf: The leaf hash being proven
        proof: Sibling hashes from bottom to top; levels where the node was
            promoted contribute no sibling
        root: Root of the tree the proof was generated from
        index: 0-based position of the entry in the snapshot
    """
    leaf: bytes
    proof: tuple[bytes, ...]
    root: bytes
    index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "leaf": self.leaf.hex(),
            "proof": [sibling.hex() for sibling in self.proof],
            "root": self.root.hex(),
            "index": self.index,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MerkleProof":
        """
        Parse the JSON form produced by to_dict().

        Raises:
            KeyError, ValueError: On missing fields or malformed hex.
        """
        return cls(
            leaf=bytes.fromhex(data["leaf"]),
            proof=tuple(bytes.fromhex(s) for s in data["proof"]),
            root=bytes.fromhex(data["root"]),
            index=int(data["index"]),
        )


def entry_leaf(entry: Entry) -> bytes:
    """Leaf hash of one entry."""
    return hash_canonical(entry.canonical_form())


def compute_leaves(entries: Sequence[Entry]) -> list[bytes]:
    """Leaf hashes in input order."""
    return [entry_leaf(entry) for entry in entries]


def _next_level(level: Sequence[bytes]) -> list[bytes]:
    parents: list[bytes] = []
    for i in range(0, len(level), 2):
        if i + 1 < len(level):
            parents.append(hash_pair(level[i], level[i + 1]))
        else:
            # Odd node: promoted unchanged
            parents.append(level[i])
    return parents


def build_levels(leaves: Sequence[bytes]) -> list[list[bytes]]:
    """
    All levels of the tree, leaves first.

    Raises:
        EmptyInputException: If leaves is empty.
    """
    if len(leaves) == 0:
        raise EmptyInputException()

    levels: list[list[bytes]] = [list(leaves)]
    while len(levels[-1]) > 1:
        levels.append(_next_level(levels[-1]))
    return levels


def build_tree_from_leaves(leaves: Sequence[bytes]) -> MerkleTree:
    """Build a tree from pre-hashed leaves."""
    levels = build_levels(leaves)

    nodes: list[MerkleNode] = [MerkleNode(hash=leaf) for leaf in levels[0]]
    for level in levels[:-1]:
        for i in range(0, len(level) - 1, 2):
            left, right = level[i], level[i + 1]
            nodes.append(MerkleNode(hash=hash_pair(left, right), left=left, right=right))

    return MerkleTree(
        nodes=tuple(nodes),
        root=levels[-1][0],
        depth=len(levels) - 1,
        entry_count=len(levels[0]),
        levels=tuple(tuple(level) for level in levels),
    )


def build_merkle_tree(entries: Sequence[Entry]) -> MerkleTree:
    """
    Build a Merkle tree from an ordered entry set.

    Example:
        Three entries [a, b, c] give levels
        [a, b, c] -> [H(a,b), c] -> [H(H(a,b), c)], depth 2.

    Raises:
        EmptyInputException: If entries is empty.
    """
    if len(entries) == 0:
        raise EmptyInputException()
    return build_tree_from_leaves(compute_leaves(entries))


def compute_merkle_root(leaves: Sequence[bytes]) -> bytes:
    """Root of pre-hashed leaves without materializing nodes."""
    return build_levels(leaves)[-1][0]


def merkle_root(tree: MerkleTree) -> bytes:
    return tree.root


def build_merkle_proof(tree: MerkleTree, index: int) -> MerkleProof:
    """
    Generate the inclusion proof for the entry at ``index``.

    Raises:
        IndexOutOfRangeException: If index < 0 or index >= tree.entry_count.
    """
    if index < 0 or index >= tree.entry_count:
        raise IndexOutOfRangeException(index, tree.entry_count)

    siblings: list[bytes] = []
    position = index
    for level in tree.levels[:-1]:
        sibling_position = position ^ 1
        if sibling_position < len(level):
            siblings.append(level[sibling_position])
        position //= 2

    return MerkleProof(
        leaf=tree.levels[0][index],
        proof=tuple(siblings),
        root=tree.root,
        index=index,
    )


def build_leaf_proof(leaves: Sequence[bytes], index: int) -> MerkleProof:
    """Proof over pre-hashed leaves (see build_merkle_proof)."""
    return build_merkle_proof(build_tree_from_leaves(leaves), index)


def verify_merkle_proof(proof: MerkleProof, expected_root: bytes) -> bool:
    """
    Verify a proof against an expected root.

    Folds the leaf with each sibling using the same normalized pair hash as
    construction. Pure and side-effect free; malformed input yields False,
    never an exception.
    """
    try:
        if not is_digest(proof.leaf) or not is_digest(expected_root):
            return False

        current = proof.leaf
        for sibling in proof.proof:
            if not is_digest(sibling):
                return False
            current = hash_pair(current, sibling)

        return current == expected_root
    except (AttributeError, TypeError):
        return False


def compute_tree_depth(num_leaves: int) -> int:
    """
    Depth of a tree with ``num_leaves`` leaves under the promotion rule.

    1 leaf -> 0, 2 -> 1, 3 -> 2, 4 -> 2, 5 -> 3.
    """
    if num_leaves <= 1:
        return 0

    depth = 0
    n = num_leaves
    while n > 1:
        n = (n + 1) // 2
        depth += 1
    return depth


__all__ = [
    "MerkleNode",
    "MerkleTree",
    "MerkleProof",
    "entry_leaf",
    "compute_leaves",
    "build_levels",
    "build_tree_from_leaves",
    "build_merkle_tree",
    "compute_merkle_root",
    "merkle_root",
    "build_merkle_proof",
    "build_leaf_proof",
    "verify_merkle_proof",
    "compute_tree_depth",
]
