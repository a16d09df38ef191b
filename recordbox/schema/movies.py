"""
Movie record schema.

Shape rules live in MovieSchema. Whether each genre actually exists is a
lookup against the genres collection, so it is a separate coroutine,
ensure_known_genres(), which Movie.validate() and the catalogue search
both call. Genre names match case-insensitively and come back in the
spelling the genres collection uses ("sci-fi" -> "Sci-Fi").
"""

from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field

from recordbox.errors import ValidationError
from recordbox.schema.base import PydanticSchema
from recordbox.storage.backends.base import StorageBackend

MIN_YEAR = 1888  # Roundhay Garden Scene

Text255 = Annotated[str, Field(min_length=1, max_length=255)]


class MovieSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    genres: Annotated[list[str], Field(min_length=1)]
    title: Text255
    director: Text255
    year: Annotated[int, Field(ge=MIN_YEAR)]
    runtime: Annotated[int, Field(ge=0)]
    actors: Optional[str] = None
    plot: Optional[str] = None
    posterUrl: Optional[str] = None


movie_schema = PydanticSchema(MovieSchema)


async def ensure_known_genres(storage: StorageBackend, genres: list) -> list[str]:
    """
    Map each requested genre onto its stored spelling.

    Raises ValidationError on the first genre missing from the genres
    collection.
    """
    from recordbox.models.genre import Genre

    known = {str(g).casefold(): str(g) for g in await Genre.query(storage).all()}
    resolved = []
    for name in genres:
        stored = known.get(str(name).casefold())
        if stored is None:
            raise ValidationError("genres", f"{name} genre is not recognized")
        resolved.append(stored)
    return resolved
