"""
Movie — the catalogue's main entity.

Stored in the `movies` collection under an auto-allocated integer `id`.
Validation checks the record shape against MovieSchema and then checks that
every listed genre exists in the `genres` collection.
"""

from __future__ import annotations

from recordbox.models.base import Model
from recordbox.models.genre import Genre
from recordbox.query.pipeline import Query
from recordbox.schema.movies import ensure_known_genres, movie_schema
from recordbox.storage.backends.base import StorageBackend


class Movie(Model):
    collection_name = "movies"
    schema = movie_schema

    @classmethod
    def genre_query(cls, storage: StorageBackend) -> Query:
        """Query over the genres a movie may reference."""
        return Genre.query(storage)

    async def validate(self):
        record = await super().validate()
        record["genres"] = await ensure_known_genres(self.storage, record["genres"])
        self.genres = record["genres"]
        return record
