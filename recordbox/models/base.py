"""
Model — base class for typed domain objects materialized from records.

Subclasses declare where their records live and how they are validated:

    class Movie(Model):
        collection_name = "movies"
        primary_key = "id"
        schema = PydanticSchema(MovieSchema)

Record fields live in a private dict and read as attributes (`movie.title`)
or by key (`movie["title"]`). A field that shares its name with a Model
member (`pk`, `storage`, `save`, ...) is still stored and round-trips
unchanged, but is only reachable by key. Attributes starting with an
underscore are internal and never written back to storage.

A model instance remembers the storage backend it was loaded with (or was
given at construction) and uses it for its own load()/save() calls. There
is no process-wide default backend.
"""

from __future__ import annotations

import logging

from recordbox.errors import InvalidArgument, NotFoundError
from recordbox.query.pipeline import Query
from recordbox.schema.base import RecordSchema
from recordbox.storage.backends.base import StorageBackend

logger = logging.getLogger(__name__)


class Model:
    """Abstract record-backed domain object."""

    collection_name: str = ""
    primary_key: str | None = "id"
    schema: RecordSchema | None = None

    def __init__(self, record: dict | None = None, *, storage: StorageBackend | None = None):
        if type(self) is Model:
            raise TypeError("Model is an abstract class and cannot be instantiated directly")
        self._fields: dict = {}
        self._storage = storage
        if record:
            self._assign(record)

    @classmethod
    def from_record(cls, record, *, storage: StorageBackend | None = None):
        """Build an instance from a raw stored record."""
        return cls(record, storage=storage)

    @classmethod
    def query(cls, storage: StorageBackend) -> Query:
        """Start a new query over this model's collection."""
        return Query(cls, storage)

    # ------------------------------------------------------------------
    # Record access
    # ------------------------------------------------------------------

    def _assign(self, record: dict) -> None:
        self._fields.update(record)

    def __getattr__(self, name):
        # Only reached when normal lookup fails, so class members win.
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._fields[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__!r} object has no field {name!r}"
            ) from None

    def __setattr__(self, name, value):
        if name.startswith("_"):
            object.__setattr__(self, name, value)
        else:
            self._fields[name] = value

    def __delattr__(self, name):
        if name.startswith("_"):
            object.__delattr__(self, name)
        else:
            try:
                del self._fields[name]
            except KeyError:
                raise AttributeError(name) from None

    def __getitem__(self, field: str):
        return self._fields[field]

    def __contains__(self, field: str) -> bool:
        return field in self._fields

    def to_record(self):
        """Plain dict of the record fields, as they would be stored."""
        return dict(self._fields)

    @property
    def pk(self):
        if self.primary_key is None:
            return None
        return self._fields.get(self.primary_key)

    @property
    def storage(self) -> StorageBackend:
        if self._storage is None:
            raise InvalidArgument(
                f"{type(self).__name__} instance is not bound to a storage backend"
            )
        return self._storage

    def bind(self, storage: StorageBackend):
        """Attach a storage backend to this instance; returns self."""
        self._storage = storage
        return self

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def load(self):
        """Re-fetch this record by primary key and overwrite fields in place."""
        cls = type(self)
        if self.pk is None:
            raise InvalidArgument(f"{cls.__name__}.load() needs a primary key value")
        found = await cls.query(self.storage).find(self.pk)
        if found is None:
            raise NotFoundError(cls.collection_name, cls.primary_key, self.pk)
        self._assign(found.to_record())
        return self

    async def validate(self):
        """
        Run schema validation. Normalized values (e.g. numeric strings
        coerced to int) are written back onto the instance. Returns the
        validated record.
        """
        record = self.to_record()
        if self.schema is None:
            return record
        record = self.schema.validate(record)
        if isinstance(record, dict):
            self._assign(record)
        return record

    async def save(self):
        """Validate, then upsert. An allocated primary key lands on self."""
        await self.validate()
        stored = await type(self).query(self.storage).save(self.to_record())
        if isinstance(stored, dict):
            self._assign(stored)
        logger.debug("Saved %r", self)
        return self

    # ------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_record() == other.to_record()

    __hash__ = None

    def __repr__(self) -> str:
        if self.primary_key is not None:
            return f"<{type(self).__name__} {self.primary_key}={self.pk!r}>"
        return f"<{type(self).__name__} {self.to_record()!r}>"
