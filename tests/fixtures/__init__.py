"""
Test fixtures package for ledger-core tests.

- common.py: entry, document, asset and lifecycle factories

Usage:
    from fixtures.common import make_entries, make_manager

    def test_something():
        entries = make_entries(3)
"""

from .common import (
    FIXED_NOW,
    GENESIS_ADDRESS,
    GENESIS_DID,
    OTHER_ADDRESS,
    OTHER_DID,
    fixed_clock,
    make_entry,
    make_entries,
    make_metadata,
    make_document,
    make_small_document,
    make_padded_document,
    make_original,
    make_mirror,
    make_manager,
)

__all__ = [
    "FIXED_NOW",
    "GENESIS_ADDRESS",
    "GENESIS_DID",
    "OTHER_ADDRESS",
    "OTHER_DID",
    "fixed_clock",
    "make_entry",
    "make_entries",
    "make_metadata",
    "make_document",
    "make_small_document",
    "make_padded_document",
    "make_original",
    "make_mirror",
    "make_manager",
]
