from recordbox.models.simple import SimpleModel


class Genre(SimpleModel):
    """A genre name, stored as a bare string in the `genres` collection."""

    collection_name = "genres"
