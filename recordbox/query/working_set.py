"""
Working set — the value that flows through a query pipeline.

A working set is one of two shapes:

    Many(entries)   multi-result state, what every pipeline starts with
    One(entry)      single optional result, produced by find/random/first

Each Entry pairs a record with a surrogate id: its position in the
collection as it was loaded for this execution. Surrogate ids are what the
MatchTable is keyed on, so match bookkeeping never has to be written onto a
record (and can never leak into storage or onto a materialized model).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Union

from recordbox.errors import StructuralMismatch


@dataclass(frozen=True)
class Entry:
    """A record plus its surrogate id for the current execution."""
    sid: int
    record: dict


@dataclass(frozen=True)
class Many:
    """Multi-result working set."""
    entries: tuple[Entry, ...] = ()

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "Many":
        return cls(tuple(Entry(i, r) for i, r in enumerate(records)))

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class One:
    """Single-result working set; entry is None when nothing matched."""
    entry: Entry | None = None


WorkingSet = Union[Many, One]


def field_value(record: Any, field: str) -> Any:
    """
    Read `field` from a record, None when absent.

    Value-object collections store bare scalars instead of dicts; for those
    the scalar itself is exposed as the field "value".
    """
    if isinstance(record, dict):
        return record.get(field)
    if field == "value":
        return record
    return None


def require_many(working: WorkingSet, stage: str) -> Many:
    """Return `working` if it is a Many, else raise StructuralMismatch."""
    if not isinstance(working, Many):
        raise StructuralMismatch(
            f"{stage}() must be run on a sequence of results, "
            "not on a single result",
            {"stage": stage},
        )
    return working


def keep_where(working: WorkingSet, predicate) -> WorkingSet:
    """
    Apply a per-entry predicate to either shape.

    Many keeps the matching entries in order. One keeps its entry if it
    matches and becomes One(None) otherwise.
    """
    if isinstance(working, Many):
        return Many(tuple(e for e in working.entries if predicate(e)))
    if working.entry is not None and predicate(working.entry):
        return working
    return One(None)


@dataclass
class MatchTable:
    """
    Side-table of match groups, keyed by entry surrogate id.

    Every set-membership filter that runs over an array-valued field appends
    one group (the matched elements) per surviving entry. Ranking by match
    count reads group N for "the Nth such filter so far". A table lives for
    exactly one pipeline execution.
    """
    groups: dict[int, list[list[Any]]] = field(default_factory=dict)

    def append(self, sid: int, matched: list[Any]) -> None:
        self.groups.setdefault(sid, []).append(matched)

    def group(self, sid: int, index: int) -> list[Any] | None:
        """Return match group `index` for an entry, or None if it has none."""
        entry_groups = self.groups.get(sid, [])
        if 0 <= index < len(entry_groups):
            return entry_groups[index]
        return None

    def __len__(self) -> int:
        return len(self.groups)
