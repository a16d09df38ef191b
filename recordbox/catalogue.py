"""
Movie catalogue — the queries behind "suggest me a movie".

search_movies() picks a strategy from which criteria are given:

    neither            one random movie
    genres only        every movie sharing a genre, most shared genres first
    duration only      one random movie within +/- 10 minutes of the duration
    genres + duration  genre matches inside the runtime window, ranked

Genre names are matched case-insensitively against the genres collection
and must exist there.
"""

from __future__ import annotations

import logging

from recordbox.errors import ValidationError
from recordbox.models.genre import Genre
from recordbox.models.movie import Movie
from recordbox.schema.movies import ensure_known_genres
from recordbox.storage.backends.base import StorageBackend

logger = logging.getLogger(__name__)

RUNTIME_WINDOW = 10


def _check_duration(duration) -> int:
    if isinstance(duration, bool):
        raise ValidationError("duration", "Invalid value")
    try:
        value = int(duration)
    except (TypeError, ValueError):
        raise ValidationError("duration", "Invalid value") from None
    if value < 1:
        raise ValidationError("duration", "Invalid value")
    return value


async def _check_genres(storage: StorageBackend, genres) -> list[str]:
    if isinstance(genres, str):
        genres = [genres]
    if not isinstance(genres, (list, tuple)) or not genres:
        raise ValidationError("genres", "Invalid value")
    if not all(isinstance(g, str) and g for g in genres):
        raise ValidationError("genres", "Invalid value")
    return await ensure_known_genres(storage, list(genres))


async def search_movies(storage: StorageBackend, duration=None, genres=None):
    """
    Returns a list of Movie for genre searches, and a single Movie (or None
    when nothing qualifies) otherwise.
    """
    if duration is not None:
        duration = _check_duration(duration)
    if genres is not None:
        genres = await _check_genres(storage, genres)

    query = Movie.query(storage)
    if genres:
        query = query.filter_in("genres", genres)
    if duration:
        query = query.filter_between(
            "runtime", [duration - RUNTIME_WINDOW, duration + RUNTIME_WINDOW]
        )

    logger.info("Movie search: duration=%s genres=%s", duration, genres)
    if not genres:
        return await query.random()
    return await query.order_by_matches(0, "DESC").execute()


async def add_movie(storage: StorageBackend, data: dict) -> Movie:
    """Validate and store a new movie; returns it with its allocated id."""
    if not isinstance(data, dict):
        raise ValidationError("__root__", f"Expected a movie object, got {type(data).__name__}")
    fields = {k: v for k, v in data.items() if k in Movie.schema.model_cls.model_fields}
    movie = Movie(fields, storage=storage)
    await movie.save()
    logger.info("Added movie %r (id=%s)", getattr(movie, "title", None), movie.pk)
    return movie


async def list_genres(storage: StorageBackend) -> list[str]:
    return [str(g) for g in await Genre.query(storage).all()]
