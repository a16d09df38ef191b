"""
JsonFileBackend — a single JSON document on disk as the snapshot store.

The whole file is read on every read() and rewritten on every write().
Blocking file I/O runs in a worker thread via asyncio.to_thread so the
event loop only suspends at the read/write boundary.

Writes go to a sibling temp file first and are moved into place with
os.replace, so a crash mid-write leaves the previous snapshot intact.

Errors are not wrapped: a missing file raises FileNotFoundError, a corrupt
one raises json.JSONDecodeError.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from .base import Snapshot, StorageBackend

logger = logging.getLogger(__name__)


class JsonFileBackend(StorageBackend):
    """Whole-file JSON snapshot storage."""

    def __init__(self, path: str, indent: int = 4):
        self.path = Path(path)
        self.indent = indent

    # ------------------------------------------------------------------
    # Sync helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _read_sync(self) -> Snapshot:
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Snapshot root must be a JSON object: {self.path}")
        return data

    def _write_sync(self, snapshot: Snapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=self.indent, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    # ------------------------------------------------------------------
    # StorageBackend interface
    # ------------------------------------------------------------------

    async def read(self) -> Snapshot:
        snapshot = await asyncio.to_thread(self._read_sync)
        logger.debug("Read snapshot from %s (%d collections)", self.path, len(snapshot))
        return snapshot

    async def write(self, snapshot: Snapshot) -> None:
        await asyncio.to_thread(self._write_sync, snapshot)
        logger.debug("Wrote snapshot to %s", self.path)

    def __repr__(self) -> str:
        return f"<JsonFileBackend path={str(self.path)!r}>"
