"""Digest index keeping the first file seen for every content hash."""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsertResult:
    """Outcome of DeduplicationIndex.try_insert.

    ``path`` is the path recorded for the digest: the caller's own path when
    ``inserted`` is True, the first-seen path otherwise. ``collisions`` is the
    collision count right after this call.
    """
    inserted: bool
    path: Path
    collisions: int = 0


class DeduplicationIndex:
    """Maps content digests to the first path observed with that digest.

    Insertions may race during hashing; ``try_insert`` is an atomic
    check-and-set, so only one caller per digest wins and every other caller
    is counted as a collision. ``freeze`` marks the end of hashing, after
    which the index is read-only and can be snapshotted.
    """

    def __init__(self):
        self._entries: Dict[str, Path] = {}
        self._lock = threading.Lock()
        self._collisions = 0
        self._frozen = False

    def try_insert(self, digest: str, path: Path) -> InsertResult:
        """Insert ``path`` under ``digest`` unless the digest is already known."""
        with self._lock:
            if self._frozen:
                raise RuntimeError("Deduplication index is frozen")
            current = self._entries.get(digest)
            if current is not None:
                self._collisions += 1
                return InsertResult(inserted=False, path=current, collisions=self._collisions)
            self._entries[digest] = Path(path)
            return InsertResult(inserted=True, path=Path(path), collisions=self._collisions)

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True
        logger.debug(f"Index frozen: {len(self._entries)} unique, {self._collisions} duplicates")

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def collisions(self) -> int:
        with self._lock:
            return self._collisions

    def snapshot(self) -> List[Tuple[str, Path]]:
        """Every (digest, path) survivor. Only valid once frozen."""
        with self._lock:
            if not self._frozen:
                raise RuntimeError("Deduplication index must be frozen before snapshot")
            return list(self._entries.items())

    def __contains__(self, digest: str) -> bool:
        with self._lock:
            return digest in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
