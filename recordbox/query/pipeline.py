"""
Query — a lazily executed filter/sort/rank pipeline over one collection.

A query is bound to a model class (which names the collection and primary
key and knows how to build itself from a record) and to a storage backend.
Builder calls append stages and return the same query, so they chain:

    movies = await (
        Movie.query(storage)
        .filter_in("genres", ["drama", "crime"])
        .filter_between("runtime", [100, 150])
        .order_by_matches(0, "DESC")
        .all()
    )

Nothing touches storage until a terminal coroutine runs (all, execute,
find, random, first, count). Each terminal run reads a fresh snapshot,
deep-copies the collection, applies every stage in order with a fresh
MatchTable, and maps the final working set onto the model class. Running a
terminal again starts over from scratch; terminals never add stages to the
query itself.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable

from recordbox.errors import CollectionNotFound, InvalidArgument
from recordbox.query import filters, ordering
from recordbox.query.filters import Stage
from recordbox.query.ordering import SortDirection
from recordbox.query.working_set import MatchTable, Many, One, WorkingSet
from recordbox.storage.backends.base import StorageBackend
from recordbox.storage.upsert import upsert

logger = logging.getLogger(__name__)


class Query:
    """Composable query pipeline bound to one model class and one backend."""

    def __init__(self, model: type, storage: StorageBackend):
        if not isinstance(model, type) or not getattr(model, "collection_name", None):
            raise InvalidArgument(
                f"Query needs a model class that declares collection_name, got {model!r}"
            )
        if not callable(getattr(model, "from_record", None)):
            raise InvalidArgument(f"{model.__name__} cannot be built from a record")
        if not isinstance(storage, StorageBackend):
            raise InvalidArgument(
                f"Query needs a StorageBackend, got {type(storage).__name__}"
            )
        self.model = model
        self.storage = storage
        self.stages: list[Stage] = []

    @property
    def collection_name(self) -> str:
        return self.model.collection_name

    @property
    def primary_key(self) -> str | None:
        return self.model.primary_key

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def add_stage(self, stage: Callable[[WorkingSet, MatchTable], WorkingSet]) -> "Query":
        """Append a custom (working set, match table) -> working set transform."""
        if not isinstance(stage, Stage):
            stage = Stage(getattr(stage, "__name__", "custom"), stage)
        self.stages.append(stage)
        return self

    def filter_equals(self, field: str, value: Any) -> "Query":
        return self.add_stage(filters.equals(field, value))

    def filter_by(self, field: str, predicate: Callable[[Any], bool]) -> "Query":
        return self.add_stage(filters.predicate(field, predicate))

    def filter_between(self, field: str, bounds) -> "Query":
        """Keep records with bounds[0] <= record[field] <= bounds[1]."""
        return self.add_stage(filters.between(field, bounds))

    def filter_in(self, field: str, candidates) -> "Query":
        """
        Set-membership filter. On array fields this also records a match
        group per record, which order_by_matches() can rank by.
        """
        return self.add_stage(filters.member_of(field, candidates))

    def order_by(self, field: str, direction: str | SortDirection = SortDirection.DESC) -> "Query":
        return self.add_stage(ordering.by_field(field, direction))

    def order_by_matches(
        self, match_index: int, direction: str | SortDirection = SortDirection.DESC
    ) -> "Query":
        """Rank by how many elements the Nth filter_in() call matched."""
        return self.add_stage(ordering.by_match_count(match_index, direction))

    def limit(self, count: int) -> "Query":
        return self.add_stage(ordering.limit(count))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def load_records(self) -> list:
        """Read the snapshot and return a private deep copy of the collection."""
        snapshot = await self.storage.read()
        collection = snapshot.get(self.collection_name)
        if collection is None:
            raise CollectionNotFound(self.collection_name)
        return copy.deepcopy(collection)

    async def run(self, *extra: Stage) -> WorkingSet:
        """Run the pipeline (plus any per-call stages) and return the raw working set."""
        records = await self.load_records()
        working: WorkingSet = Many.from_records(records)
        matches = MatchTable()
        for stage in (*self.stages, *extra):
            working = stage(working, matches)
        logger.debug(
            "Query on '%s' ran %d stages -> %s",
            self.collection_name,
            len(self.stages) + len(extra),
            f"{len(working)} records" if isinstance(working, Many) else
            ("1 record" if working.entry is not None else "no result"),
        )
        return working

    def materialize(self, working: WorkingSet):
        """Map a working set onto the model: list, single instance, or None."""
        if isinstance(working, Many):
            return [
                self.model.from_record(e.record, storage=self.storage)
                for e in working.entries
            ]
        if working.entry is None:
            return None
        return self.model.from_record(working.entry.record, storage=self.storage)

    async def execute(self):
        return self.materialize(await self.run())

    async def all(self):
        """Same as execute()."""
        return await self.execute()

    async def find(self, primary_key_value):
        """Return the record whose primary key equals the value, or None."""
        if self.primary_key is None:
            raise InvalidArgument(
                f"{self.model.__name__} declares no primary key; find() is unavailable"
            )
        return self.materialize(
            await self.run(filters.primary_key(self.primary_key, primary_key_value))
        )

    async def random(self):
        """Return one uniformly chosen result, or None if nothing survived."""
        return self.materialize(await self.run(ordering.pick_random()))

    async def first(self):
        return self.materialize(await self.run(filters.first()))

    async def count(self) -> int:
        working = await self.run()
        if isinstance(working, One):
            return 0 if working.entry is None else 1
        return len(working)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def save(self, record):
        """Upsert one record into this query's collection; returns it as stored."""
        return await upsert(self.storage, self.collection_name, self.primary_key, record)

    def __repr__(self) -> str:
        stages = ", ".join(s.name for s in self.stages) or "-"
        return f"<Query {self.collection_name} [{stages}]>"
