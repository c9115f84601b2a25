"""
Merkle Root Anchoring

Publishes diary snapshot roots on the ledger and proves entries against them.
"""

from .anchor import MEMO_TYPE, MerkleAnchorService, build_anchor_memo

__all__ = [
    "MEMO_TYPE",
    "MerkleAnchorService",
    "build_anchor_memo",
]
