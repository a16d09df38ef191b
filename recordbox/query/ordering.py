"""
Ordering, ranking and selection stages.

All sorts are stable: entries that compare equal keep their relative order
in both directions (Python's sort stays stable with reverse=True).
These stages need a sequence; a single-result working set raises
StructuralMismatch when the stage runs.
"""

from __future__ import annotations

import random as _random
from enum import Enum

from recordbox.errors import InvalidArgument, MissingState
from recordbox.query.filters import Stage
from recordbox.query.working_set import Many, One, field_value, require_many


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


def parse_direction(direction, caller: str) -> SortDirection:
    """Accept SortDirection members or the exact strings 'ASC' / 'DESC'."""
    if isinstance(direction, SortDirection):
        return direction
    if isinstance(direction, str) and direction in ("ASC", "DESC"):
        return SortDirection(direction)
    raise InvalidArgument(
        f"{caller}() can be ordered with DESC and ASC type only, got {direction!r}",
        {"direction": repr(direction)},
    )


def by_field(field: str, direction=SortDirection.DESC) -> Stage:
    """Sort by the natural ordering of `field`. Missing values sort lowest."""
    order = parse_direction(direction, "order_by")

    def sort_key(entry):
        value = field_value(entry.record, field)
        if value is None:
            return (False, 0)
        return (True, value)

    def apply(working, matches):
        many = require_many(working, "order_by")
        try:
            ordered = sorted(many.entries, key=sort_key, reverse=order is SortDirection.DESC)
        except TypeError as e:
            raise InvalidArgument(
                f"order_by(): values of '{field}' are not mutually comparable ({e})",
                {"field": field},
            ) from e
        return Many(tuple(ordered))
    return Stage(f"order_by({field} {order.value})", apply)


def by_match_count(match_index: int, direction=SortDirection.DESC) -> Stage:
    """
    Rank by the size of match group `match_index`, i.e. how many elements the
    Nth set-membership filter matched for each record.
    """
    order = parse_direction(direction, "order_by_matches")
    if isinstance(match_index, bool) or not isinstance(match_index, int) or match_index < 0:
        raise InvalidArgument(
            f"order_by_matches() expects a non-negative filter index, got {match_index!r}",
            {"match_index": repr(match_index)},
        )

    def apply(working, matches):
        many = require_many(working, "order_by_matches")
        counts: dict[int, int] = {}
        for entry in many.entries:
            group = matches.group(entry.sid, match_index)
            if group is None:
                raise MissingState(
                    "order_by_matches() must be run after a set-membership filter "
                    f"(no match group #{match_index} for record at position {entry.sid})",
                    {"match_index": match_index},
                )
            counts[entry.sid] = len(group)
        ordered = sorted(
            many.entries,
            key=lambda e: counts[e.sid],
            reverse=order is SortDirection.DESC,
        )
        return Many(tuple(ordered))
    return Stage(f"order_by_matches(#{match_index} {order.value})", apply)


def limit(count: int) -> Stage:
    """Keep the first `count` entries."""
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise InvalidArgument(f"limit() expects a non-negative int, got {count!r}")

    def apply(working, matches):
        many = require_many(working, "limit")
        return Many(many.entries[:count])
    return Stage(f"limit({count})", apply)


def pick_random(rng: _random.Random | None = None) -> Stage:
    """Pick one entry uniformly at random. An empty sequence yields no result."""
    chooser = rng or _random

    def apply(working, matches):
        many = require_many(working, "random")
        if not many.entries:
            return One(None)
        return One(chooser.choice(many.entries))
    return Stage("random", apply)
