"""
Filter stages for the query pipeline.

Each factory validates its arguments up front (raising InvalidArgument at
build time) and returns a Stage: a named, pure transform
(working set, match table) -> working set. Filters accept either working
set shape; on a single result they keep or drop that one entry.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from recordbox.errors import InvalidArgument
from recordbox.query.working_set import MatchTable, Many, One, WorkingSet, field_value, keep_where

StageFn = Callable[[WorkingSet, MatchTable], WorkingSet]


@dataclass(frozen=True)
class Stage:
    """A named pipeline step."""
    name: str
    apply: StageFn

    def __call__(self, working: WorkingSet, matches: MatchTable) -> WorkingSet:
        return self.apply(working, matches)


def _fold(value: Any) -> Any:
    """Lowercase strings for comparison; leave everything else alone."""
    return value.lower() if isinstance(value, str) else value


def equals(field: str, value: Any) -> Stage:
    """Keep records whose `field` equals `value` (value equality)."""
    def apply(working, matches):
        return keep_where(working, lambda e: field_value(e.record, field) == value)
    return Stage(f"equals({field})", apply)


def predicate(field: str, fn: Callable[[Any], bool]) -> Stage:
    """Keep records for which fn(record[field]) is truthy."""
    if not callable(fn):
        raise InvalidArgument(
            f"filter_by() expects a callable predicate, got {type(fn).__name__}",
            {"field": field},
        )

    def apply(working, matches):
        return keep_where(working, lambda e: bool(fn(field_value(e.record, field))))
    return Stage(f"predicate({field})", apply)


def between(field: str, bounds) -> Stage:
    """
    Keep records with lo <= record[field] <= hi.

    Comparison uses the runtime type's natural ordering, so the same stage
    works for numbers and for lexically ordered strings. A record whose value
    is missing, or cannot be compared with the bounds, does not survive.
    """
    if not isinstance(bounds, (list, tuple)) or len(bounds) != 2:
        raise InvalidArgument(
            "filter_between() expects a [min, max] pair",
            {"field": field},
        )
    lo, hi = bounds

    def within(entry) -> bool:
        value = field_value(entry.record, field)
        if value is None:
            return False
        try:
            return lo <= value <= hi
        except TypeError:
            return False

    def apply(working, matches):
        return keep_where(working, within)
    return Stage(f"between({field})", apply)


def member_of(field: str, candidates) -> Stage:
    """
    Set-membership filter.

    Array-valued field: keep the record if any element is among the
    candidates (strings compared case-insensitively) and record the matched
    elements, in record order, as a new match group.

    Scalar field: keep the record if its value is among the candidates,
    compared as-is.
    """
    if isinstance(candidates, (str, bytes)) or not isinstance(candidates, (list, tuple, set, frozenset)):
        raise InvalidArgument(
            "filter_in() expects a list of candidate values",
            {"field": field},
        )
    exact = tuple(candidates)
    folded = tuple(_fold(c) for c in exact)

    def apply(working, matches):
        def keep(entry) -> bool:
            value = field_value(entry.record, field)
            if isinstance(value, list):
                matched = [elem for elem in value if _fold(elem) in folded]
                if not matched:
                    return False
                matches.append(entry.sid, matched)
                return True
            return value in exact

        return keep_where(working, keep)
    return Stage(f"member_of({field})", apply)


def primary_key(field: str, value: Any) -> Stage:
    """Collapse to the first record whose primary key equals `value`."""
    def apply(working, matches):
        if isinstance(working, One):
            return keep_where(working, lambda e: field_value(e.record, field) == value)
        for entry in working.entries:
            if field_value(entry.record, field) == value:
                return One(entry)
        return One(None)
    return Stage(f"find({field}={value!r})", apply)


def first() -> Stage:
    """Collapse a sequence to its first entry; a single result passes through."""
    def apply(working, matches):
        if isinstance(working, Many):
            return One(working.entries[0] if working.entries else None)
        return working
    return Stage("first", apply)


__all__ = ["Stage", "StageFn", "equals", "predicate", "between", "member_of", "primary_key", "first"]
