"""
Domain models.

Model and SimpleModel are abstract; Movie and Genre are the concrete
entities of the movie catalogue.
"""
from recordbox.models.base import Model
from recordbox.models.simple import SimpleModel
from recordbox.models.genre import Genre
from recordbox.models.movie import Movie

__all__ = ["Model", "SimpleModel", "Genre", "Movie"]
