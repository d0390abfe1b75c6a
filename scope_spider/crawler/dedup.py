# scope_spider/crawler/dedup.py
"""
Dedup registry: one independently locked "seen" set per artifact class.
"""
from __future__ import annotations

import threading
from typing import Dict, Iterable, Set

from scope_spider.crawler.models import ArtifactKind

__all__ = ["SeenSet", "DedupRegistry", "TRACKED_KINDS"]

# Artifact classes with a dedup set. URL also guards frontier admission.
TRACKED_KINDS = (
    ArtifactKind.URL,
    ArtifactKind.SUBDOMAIN,
    ArtifactKind.JAVASCRIPT,
    ArtifactKind.FORM,
    ArtifactKind.AWS_S3,
    ArtifactKind.UPLOAD_FORM,
)


class SeenSet:
    """Insert-only set with an atomic check-and-mark."""

    __slots__ = ("_items", "_lock")

    def __init__(self) -> None:
        self._items: Set[str] = set()
        self._lock = threading.Lock()

    def check_and_mark(self, key: str) -> bool:
        """Mark *key* as seen; return True if it already was."""
        with self._lock:
            if key in self._items:
                return True
            self._items.add(key)
            return False

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class DedupRegistry:
    """Holds one :class:`SeenSet` per tracked artifact class."""

    def __init__(self, kinds: Iterable[ArtifactKind] = TRACKED_KINDS) -> None:
        self._sets: Dict[ArtifactKind, SeenSet] = {kind: SeenSet() for kind in kinds}

    def check_and_mark(self, kind: ArtifactKind, key: str) -> bool:
        """Return True if *key* was already recorded for *kind*, marking it otherwise."""
        try:
            seen = self._sets[kind]
        except KeyError:
            raise KeyError(f"no dedup set for artifact kind {kind.value!r}") from None
        return seen.check_and_mark(key)

    def seen(self, kind: ArtifactKind, key: str) -> bool:
        return key in self._sets[kind]

    def size(self, kind: ArtifactKind) -> int:
        return len(self._sets[kind])
