"""
MemoryBackend — in-process StorageBackend.

Holds the snapshot in a plain dict. Used by tests and by the `memory`
storage setting for throwaway sessions. Nothing is persisted.
"""

import copy
import logging

from .base import Snapshot, StorageBackend

logger = logging.getLogger(__name__)


class MemoryBackend(StorageBackend):
    """Snapshot held in memory, created with empty named collections.

    A seed `snapshot` is deep-copied, so the caller keeps its own lists.
    """

    def __init__(self, collections: list[str] | None = None, snapshot: Snapshot | None = None):
        self.content: Snapshot = {name: [] for name in (collections or [])}
        if snapshot:
            self.content.update(copy.deepcopy(snapshot))
        self.reads = 0
        self.writes = 0

    async def read(self) -> Snapshot:
        self.reads += 1
        return self.content

    async def write(self, snapshot: Snapshot) -> None:
        self.writes += 1
        self.content = snapshot
        logger.debug("MemoryBackend snapshot replaced (%d collections)", len(snapshot))

    def __repr__(self) -> str:
        return f"<MemoryBackend collections={sorted(self.content)!r}>"
