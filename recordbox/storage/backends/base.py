"""
StorageBackend — abstract base for snapshot storage backends.

All backends must implement two primitives:
  read   — return the whole snapshot: {collection name: [record, ...]}
  write  — replace the whole persisted snapshot

There are no partial-collection operations at this boundary. Filtering,
ordering and key allocation stay in the query pipeline and the upsert
engine (the callers), not here. Backends only move snapshots around.
"""

from abc import ABC, abstractmethod

Snapshot = dict[str, list]


class StorageBackend(ABC):
    """Abstract whole-snapshot storage backend."""

    @abstractmethod
    async def read(self) -> Snapshot:
        """
        Return the full snapshot, keyed by collection name.

        Callers must treat the result as shared: the query pipeline deep-copies
        the collection it works on, the upsert engine writes it back whole.
        """
        ...

    @abstractmethod
    async def write(self, snapshot: Snapshot) -> None:
        """Replace the entire persisted state with `snapshot`."""
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
