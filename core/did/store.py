"""
Off-ledger record store.

Holds one DIDRecord per identity, the append-only tethering list per DID,
and anchored Merkle roots together with their entry snapshots.

Two implementations:
- InMemoryRecordStore: process-local, for tests and one-shot CLI runs
- JsonFileRecordStore: canonical JSON files under a directory
"""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from core.schemas.anchors import AnchorRecord
from core.schemas.canonical import dumps_canonical, loads_canonical
from core.schemas.did import DIDRecord
from core.schemas.tethering import TetheringRecord

logger = logging.getLogger(__name__)


class DIDRecordStore(ABC):
    """Persistence contract used by the lifecycle manager, recorder and anchor service."""

    @abstractmethod
    def get(self, did_id: str) -> Optional[DIDRecord]:
        ...

    @abstractmethod
    def put(self, record: DIDRecord) -> None:
        """Write (replace) the record for ``record.did_id``."""

    @abstractmethod
    def list_tethering(self, did_id: str) -> list[TetheringRecord]:
        ...

    @abstractmethod
    def append_tethering(self, record: TetheringRecord) -> None:
        ...

    @abstractmethod
    def list_anchors(self, did_id: str) -> list[AnchorRecord]:
        ...

    @abstractmethod
    def append_anchor(self, record: AnchorRecord) -> None:
        ...

    def find_anchor(self, merkle_root: str) -> Optional[AnchorRecord]:
        """Most recent anchor for a root, across all DIDs."""
        for record in reversed(self._all_anchors()):
            if record.merkle_root.lower() == merkle_root.lower():
                return record
        return None

    @abstractmethod
    def _all_anchors(self) -> list[AnchorRecord]:
        ...


class InMemoryRecordStore(DIDRecordStore):
    """
    Dict-backed store.

    ``writes`` counts record writes, which lets callers check that each
    lifecycle transition persists exactly once.
    """

    def __init__(self) -> None:
        self._records: dict[str, DIDRecord] = {}
        self._tethering: dict[str, list[TetheringRecord]] = {}
        self._anchors: list[AnchorRecord] = []
        self.writes = 0

    def get(self, did_id: str) -> Optional[DIDRecord]:
        record = self._records.get(did_id)
        return record.model_copy(deep=True) if record is not None else None

    def put(self, record: DIDRecord) -> None:
        self._records[record.did_id] = record.model_copy(deep=True)
        self.writes += 1

    def list_tethering(self, did_id: str) -> list[TetheringRecord]:
        return list(self._tethering.get(did_id, []))

    def append_tethering(self, record: TetheringRecord) -> None:
        self._tethering.setdefault(record.did_id, []).append(record)

    def list_anchors(self, did_id: str) -> list[AnchorRecord]:
        return [a for a in self._anchors if a.did_id == did_id]

    def append_anchor(self, record: AnchorRecord) -> None:
        self._anchors.append(record)

    def _all_anchors(self) -> list[AnchorRecord]:
        return list(self._anchors)


class JsonFileRecordStore(DIDRecordStore):
    """
    File-backed store.

    Layout under ``root``:
        records/<did>.json      one DIDRecord
        tethering/<did>.json    list of TetheringRecord
        anchors/<did>.json      list of AnchorRecord

    Files are written to a temporary sibling and renamed into place.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        for sub in ("records", "tethering", "anchors"):
            (self.root / sub).mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _file_name(did_id: str) -> str:
        return did_id.replace(":", "_") + ".json"

    def _path(self, kind: str, did_id: str) -> Path:
        return self.root / kind / self._file_name(did_id)

    def _read(self, path: Path) -> Any:
        if not path.exists():
            return None
        return loads_canonical(path.read_bytes())

    def _write(self, path: Path, data: Any) -> None:
        fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(dumps_canonical(data))
            os.replace(tmp, path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self, did_id: str) -> Optional[DIDRecord]:
        data = self._read(self._path("records", did_id))
        return DIDRecord.model_validate(data) if data is not None else None

    def put(self, record: DIDRecord) -> None:
        self._write(self._path("records", record.did_id), record.model_dump(mode="json", by_alias=True))
        logger.debug("Stored record for %s", record.did_id)

    def list_tethering(self, did_id: str) -> list[TetheringRecord]:
        data = self._read(self._path("tethering", did_id)) or []
        return [TetheringRecord.model_validate(item) for item in data]

    def append_tethering(self, record: TetheringRecord) -> None:
        path = self._path("tethering", record.did_id)
        data = self._read(path) or []
        data.append(record.model_dump(mode="json"))
        self._write(path, data)

    def list_anchors(self, did_id: str) -> list[AnchorRecord]:
        data = self._read(self._path("anchors", did_id)) or []
        return [AnchorRecord.model_validate(item) for item in data]

    def append_anchor(self, record: AnchorRecord) -> None:
        path = self._path("anchors", record.did_id)
        data = self._read(path) or []
        data.append(record.model_dump(mode="json"))
        self._write(path, data)

    def _all_anchors(self) -> list[AnchorRecord]:
        records: list[AnchorRecord] = []
        for path in sorted((self.root / "anchors").glob("*.json")):
            records.extend(AnchorRecord.model_validate(item) for item in loads_canonical(path.read_bytes()))
        return sorted(records, key=lambda r: r.anchored_at)


__all__ = [
    "DIDRecordStore",
    "InMemoryRecordStore",
    "JsonFileRecordStore",
]
