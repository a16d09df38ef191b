"""
Query pipeline: lazily executed filter, sort and ranking stages over one
collection, materialized into model instances.
"""
from recordbox.query.pipeline import Query
from recordbox.query.ordering import SortDirection
from recordbox.query.filters import Stage
from recordbox.query.working_set import Entry, MatchTable, Many, One, WorkingSet

__all__ = ["Query", "SortDirection", "Stage", "Entry", "MatchTable", "Many", "One", "WorkingSet"]
