"""
Per-address write coordination.

Every service that submits for a controlling address shares one registry
(the gateway's), so a DIDSet and an anchor from the same account are never
in flight together. An address whose last write has an unknown outcome is
marked uncertain until someone reconciles it against the ledger.
"""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class AddressLocks:
    """Lock and uncertainty registry keyed by classic address."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._uncertain: set[str] = set()

    def lock(self, address: str) -> asyncio.Lock:
        lock = self._locks.get(address)
        if lock is None:
            lock = self._locks[address] = asyncio.Lock()
        return lock

    def is_uncertain(self, address: str) -> bool:
        return address in self._uncertain

    def mark_uncertain(self, address: str, reason: str) -> None:
        self._uncertain.add(address)
        logger.warning("Write for %s is uncertain (%s); resolve before retrying", address, reason)

    def clear(self, address: str) -> None:
        self._uncertain.discard(address)


__all__ = ["AddressLocks"]
