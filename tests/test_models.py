"""
Tests for Model / SimpleModel lifecycle: construction, load, validate, save.
Run with: pytest tests/test_models.py
"""

import pydantic
import pytest

from recordbox.errors import InvalidArgument, NotFoundError, ValidationError
from recordbox.models import Genre, Model, Movie, SimpleModel
from recordbox.query import Query
from recordbox.schema import PydanticSchema
from recordbox.storage.backends.memory import MemoryBackend


class PersonSchema(pydantic.BaseModel):
    name: str
    age: int = pydantic.Field(ge=0)


class Person(Model):
    collection_name = "people"
    schema = PydanticSchema(PersonSchema)


class Note(Model):
    collection_name = "notes"


class Color(SimpleModel):
    collection_name = "colors"


@pytest.fixture
def storage():
    return MemoryBackend(["people", "notes", "colors"])


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def test_model_is_abstract():
    """Model itself cannot be instantiated."""
    with pytest.raises(TypeError):
        Model()


def test_simple_model_is_abstract():
    """SimpleModel itself cannot be instantiated."""
    with pytest.raises(TypeError):
        SimpleModel("x")


def test_subclass_copies_fields():
    """Record fields become attributes."""
    p = Person({"name": "Wiktor", "age": 24})
    assert p.name == "Wiktor"
    assert p.age == 24
    assert p.to_record() == {"name": "Wiktor", "age": 24}


def test_subclass_without_record():
    """A subclass can be built empty."""
    assert Note().to_record() == {}


def test_query_returns_bound_query(storage):
    """Model.query() gives a Query over the model's collection."""
    query = Person.query(storage)
    assert isinstance(query, Query)
    assert query.model is Person
    assert query.storage is storage


def test_unbound_instance_has_no_storage():
    """Persistence on an unbound instance is refused."""
    with pytest.raises(InvalidArgument):
        Note({"text": "hi"}).storage


def test_equality():
    assert Note({"id": 1, "text": "a"}) == Note({"id": 1, "text": "a"})
    assert Note({"id": 1}) != Note({"id": 2})
    assert Color("red") == Color("red")
    assert Color("red") != Genre("red")


def test_simple_model_str():
    assert str(Genre("Drama")) == "Drama"
    assert Genre("Drama").to_record() == "Drama"
    assert Genre.primary_key is None


# ---------------------------------------------------------------------------
# save
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_save_allocates_key(storage):
    """Saving a new instance assigns the allocated key onto it."""
    p = Person({"name": "Edward", "age": 64}, storage=storage)
    await p.save()
    assert p.id == 1
    assert storage.content["people"] == [{"name": "Edward", "age": 64, "id": 1}]


@pytest.mark.asyncio
async def test_save_updates_existing(storage):
    """Saving again with the same key updates in place."""
    p = Person({"name": "Edward", "age": 64}, storage=storage)
    await p.save()
    p.age = 65
    await p.save()
    assert storage.content["people"] == [{"name": "Edward", "age": 65, "id": 1}]


@pytest.mark.asyncio
async def test_save_validates_first(storage):
    """A validation failure aborts before storage is touched."""
    p = Person({"name": "Edward", "age": -1}, storage=storage)
    with pytest.raises(ValidationError) as exc:
        await p.save()
    assert exc.value.field == "age"
    assert storage.reads == 0
    assert storage.writes == 0


@pytest.mark.asyncio
async def test_save_normalizes_fields(storage):
    """Schema coercion is applied to the instance and stored."""
    p = Person({"name": "Edward", "age": "64"}, storage=storage)
    await p.save()
    assert p.age == 64
    assert storage.content["people"][0]["age"] == 64


@pytest.mark.asyncio
async def test_save_without_schema(storage):
    """Models without a schema save whatever they hold."""
    n = Note({"text": "anything", "extra": [1, 2]}, storage=storage)
    await n.save()
    assert n.id == 1


@pytest.mark.asyncio
async def test_save_simple_model(storage):
    """Value objects append their scalar."""
    await Color("red", storage=storage).save()
    await Color("blue", storage=storage).save()
    assert storage.content["colors"] == ["red", "blue"]
    assert [str(c) for c in await Color.query(storage).all()] == ["red", "blue"]


@pytest.mark.asyncio
async def test_save_does_not_store_private_attrs(storage):
    """Underscore attributes are never persisted."""
    n = Note({"text": "hi"}, storage=storage)
    n._scratch = "temp"
    await n.save()
    assert "_scratch" not in storage.content["notes"][0]
    assert "_storage" not in storage.content["notes"][0]


# ---------------------------------------------------------------------------
# load
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_load_by_primary_key(storage):
    """load() fills an instance from the stored record."""
    await Person({"name": "Edward", "age": 64}, storage=storage).save()

    to_load = Person({"id": 1}, storage=storage)
    await to_load.load()
    assert to_load.name == "Edward"
    assert to_load.age == 64


@pytest.mark.asyncio
async def test_load_overwrites_and_adds_fields(storage):
    """load() overwrites local values and adds fields not present before."""
    storage.content["notes"].append({"id": 1, "text": "stored", "tags": ["a"]})
    n = Note({"id": 1, "text": "local"}, storage=storage)
    await n.load()
    assert n.text == "stored"
    assert n.tags == ["a"]


@pytest.mark.asyncio
async def test_load_unknown_key_raises(storage):
    with pytest.raises(NotFoundError):
        await Note({"id": 5}, storage=storage).load()


@pytest.mark.asyncio
async def test_load_without_key_raises(storage):
    with pytest.raises(InvalidArgument):
        await Note({"text": "no id"}, storage=storage).load()


@pytest.mark.asyncio
async def test_loaded_models_carry_storage(storage):
    """Instances materialized by a query can save themselves."""
    storage.content["notes"].append({"id": 1, "text": "v1"})
    note = await Note.query(storage).find(1)
    note.text = "v2"
    await note.save()
    assert storage.content["notes"] == [{"id": 1, "text": "v2"}]


# ---------------------------------------------------------------------------
# Movie
# ---------------------------------------------------------------------------

@pytest.fixture
def catalogue():
    return MemoryBackend(snapshot={"genres": ["Drama", "Crime", "Comedy"], "movies": []})


def _movie(**overrides):
    data = {
        "title": "The Shawshank Redemption",
        "director": "Frank Darabont",
        "year": 1994,
        "runtime": 142,
        "genres": ["Crime", "Drama"],
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_movie_save(catalogue):
    movie = Movie(_movie(), storage=catalogue)
    await movie.save()
    assert movie.id == 1
    assert catalogue.content["movies"][0]["title"] == "The Shawshank Redemption"


@pytest.mark.asyncio
async def test_movie_unknown_genre(catalogue):
    """Genres must exist in the genres collection."""
    movie = Movie(_movie(genres=["Drama", "Western"]), storage=catalogue)
    with pytest.raises(ValidationError) as exc:
        await movie.save()
    assert exc.value.field == "genres"
    assert "Western genre is not recognized" in exc.value.reason
    assert catalogue.content["movies"] == []


@pytest.mark.asyncio
async def test_movie_genre_query(catalogue):
    genres = await Movie.genre_query(catalogue).all()
    assert [str(g) for g in genres] == ["Drama", "Crime", "Comedy"]
    assert all(isinstance(g, Genre) for g in genres)


# ---------------------------------------------------------------------------
# Fields named like model members
# ---------------------------------------------------------------------------

class Item(Model):
    collection_name = "items"


@pytest.mark.asyncio
async def test_fields_named_like_members_materialize():
    """Records with pk/storage/save fields load without clobbering the model."""
    record = {"id": 1, "pk": "p-1", "storage": "shelf B", "save": True, "load": 3}
    storage = MemoryBackend(snapshot={"items": [record]})

    [item] = await Item.query(storage).all()
    assert item.pk == 1
    assert item.storage is storage
    assert item["pk"] == "p-1"
    assert item["storage"] == "shelf B"
    assert item["save"] is True
    assert "load" in item
    assert item.to_record() == record


@pytest.mark.asyncio
async def test_fields_named_like_members_save_round_trip():
    """save() still works and the member-named fields are stored unchanged."""
    record = {"id": 1, "storage": "shelf B", "save": True, "validate": "no"}
    storage = MemoryBackend(snapshot={"items": [record]})

    item = await Item.query(storage).find(1)
    item.note = "moved"
    await item.save()
    assert storage.content["items"] == [{**record, "note": "moved"}]


def test_missing_field_raises_attribute_error():
    item = Item({"id": 1})
    with pytest.raises(AttributeError):
        item.name
    assert getattr(item, "name", None) is None


def test_delete_field():
    item = Item({"id": 1, "name": "x"})
    del item.name
    assert item.to_record() == {"id": 1}
