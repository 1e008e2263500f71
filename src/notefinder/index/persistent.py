"""File-backed vector store.

Wraps :class:`MemoryVectorStore` and mirrors its contents into a JSON snapshot::

    {"version": "1.0.0", "entries": [...], "lastUpdated": <epoch ms>}

Snapshots are written to a temporary sibling file and renamed into place so a
crash never leaves a half-written snapshot behind.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, List, Sequence, TypeVar

from notefinder.errors import CorruptSnapshotError, SnapshotNotFoundError
from notefinder.index.storage import MemoryVectorStore, MetadataFilter, VectorEntry, VectorHit

LOGGER = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0.0"

T = TypeVar("T")


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(slots=True)
class SnapshotStats:
    size: int
    modified: float


class FileVectorStore:
    """Vector store persisted to a JSON snapshot.

    With ``auto_save`` every mutation is followed by a snapshot write, including
    batch mutations that fail part-way.
    """

    def __init__(self, path: Path, *, auto_save: bool = True) -> None:
        self.path = Path(path)
        self.auto_save = auto_save
        self._memory = MemoryVectorStore()

    def _mutate(self, operation: Callable[[], T]) -> T:
        try:
            return operation()
        finally:
            if self.auto_save:
                self.persist()

    def add(self, entry: VectorEntry) -> None:
        self._memory.add(entry)
        if self.auto_save:
            self.persist()

    def add_batch(self, entries: Iterable[VectorEntry]) -> None:
        self._mutate(lambda: self._memory.add_batch(entries))

    def update(self, vector_id: str, entry: VectorEntry) -> None:
        self._memory.update(vector_id, entry)
        if self.auto_save:
            self.persist()

    def remove(self, vector_id: str) -> None:
        self._memory.remove(vector_id)
        if self.auto_save:
            self.persist()

    def remove_batch(self, ids: Iterable[str]) -> None:
        self._mutate(lambda: self._memory.remove_batch(ids))

    def clear(self) -> None:
        self._memory.clear()
        if self.auto_save:
            self.persist()

    def get(self, vector_id: str) -> VectorEntry | None:
        return self._memory.get(vector_id)

    def has(self, vector_id: str) -> bool:
        return self._memory.has(vector_id)

    def size(self) -> int:
        return self._memory.size()

    def __len__(self) -> int:
        return self._memory.size()

    def all_entries(self) -> List[VectorEntry]:
        return self._memory.all_entries()

    def all_ids(self) -> List[str]:
        return self._memory.all_ids()

    def search(
        self,
        query_vector: Sequence[float],
        *,
        top_k: int,
        min_score: float | None = None,
        filter: MetadataFilter | None = None,
    ) -> List[VectorHit]:
        return self._memory.search(
            query_vector, top_k=top_k, min_score=min_score, filter=filter
        )

    def persist(self) -> None:
        """Write the full entry set to the snapshot file atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": SNAPSHOT_VERSION,
            "entries": [entry.to_dict() for entry in self._memory.all_entries()],
            "lastUpdated": _now_ms(),
        }
        temp_path = self.path.with_name(self.path.name + ".tmp")
        with temp_path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle)
        os.replace(temp_path, self.path)
        LOGGER.debug("Persisted %d vectors to %s", self._memory.size(), self.path)

    def load(self) -> None:
        """Replace the in-memory entries with the snapshot contents.

        A missing snapshot leaves the store empty; an unparsable one raises
        :class:`CorruptSnapshotError`.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            LOGGER.debug("No vector snapshot at %s, starting empty", self.path)
            self._memory.clear()
            return

        try:
            data: Any = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CorruptSnapshotError(f"Vector snapshot {self.path} is corrupt: {exc}") from exc
        if not isinstance(data, dict):
            raise CorruptSnapshotError(f"Vector snapshot {self.path} is not a JSON object")

        version = data.get("version")
        if version != SNAPSHOT_VERSION:
            LOGGER.warning(
                "Vector snapshot %s has version %s (expected %s); loading anyway",
                self.path,
                version,
                SNAPSHOT_VERSION,
            )

        self._memory.clear()
        entries = data.get("entries")
        if not isinstance(entries, list):
            return

        skipped = 0
        for item in entries:
            if (
                isinstance(item, dict)
                and isinstance(item.get("vector"), list)
                and isinstance(item.get("metadata"), dict)
                and item["metadata"].get("id")
            ):
                self._memory.add(VectorEntry.from_dict(item))
            else:
                skipped += 1
        if skipped:
            LOGGER.warning("Skipped %d malformed entries in %s", skipped, self.path)

    def file_stats(self) -> SnapshotStats | None:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        return SnapshotStats(size=stat.st_size, modified=stat.st_mtime)

    def backup(self, backup_path: Path | None = None) -> Path:
        """Copy the snapshot to ``backup_path`` (default: timestamped sibling)."""
        target = Path(backup_path) if backup_path else self.path.with_name(
            f"{self.path.name}.backup.{_now_ms()}"
        )
        if not self.path.exists():
            raise SnapshotNotFoundError(f"No vector store snapshot to back up at {self.path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self.path, target)
        LOGGER.info("Backed up vector snapshot to %s", target)
        return target

    def restore(self, backup_path: Path) -> None:
        """Replace the snapshot with ``backup_path`` and reload it."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(backup_path, self.path)
        self.load()
