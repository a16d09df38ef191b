"""
SimpleModel — a value object stored as a bare scalar.

Collections of simple models have no primary key: each stored entry is the
value itself (e.g. the string "Drama" in the genres collection). Queries
over them can address that value as the field "value".
"""

from __future__ import annotations

from recordbox.models.base import Model
from recordbox.storage.backends.base import StorageBackend


class SimpleModel(Model):
    """Abstract scalar-valued model."""

    primary_key = None

    def __init__(self, value=None, *, storage: StorageBackend | None = None):
        if type(self) is SimpleModel:
            raise TypeError("SimpleModel is an abstract class and cannot be instantiated directly")
        super().__init__(None, storage=storage)
        self.value = value

    def to_record(self):
        return self.value

    def __str__(self) -> str:
        return str(self.value)

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash((type(self), self.value))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.value!r}>"
