"""
Tests for the upsert engine.
Run with: pytest tests/test_upsert.py
"""

import pytest

from recordbox.errors import CollectionNotFound, InvalidArgument, NotFoundError
from recordbox.storage.backends.memory import MemoryBackend
from recordbox.storage.upsert import next_primary_key, upsert


@pytest.fixture
def storage():
    return MemoryBackend(snapshot={
        "people": [
            {"id": 1, "name": "George", "age": 40},
            {"id": 2, "name": "Ben", "age": 30},
            {"id": 4, "name": "Jean", "age": 22},
        ],
        "empty": [],
        "tags": ["red"],
    })


# ---------------------------------------------------------------------------
# Insert
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_insert_allocates_after_last_key(storage):
    """New key is last record's key + 1, regardless of gaps."""
    stored = await upsert(storage, "people", "id", {"name": "Mike"})
    assert stored["id"] == 5
    assert storage.content["people"][-1] == {"name": "Mike", "id": 5}
    assert len(storage.content["people"]) == 4


@pytest.mark.asyncio
async def test_insert_into_empty_collection(storage):
    """An empty collection starts at 1."""
    stored = await upsert(storage, "empty", "id", {"name": "First"})
    assert stored["id"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("falsy", [None, 0, ""])
async def test_insert_when_key_is_falsy(storage, falsy):
    """A falsy key value counts as no key."""
    stored = await upsert(storage, "people", "id", {"id": falsy, "name": "Mike"})
    assert stored["id"] == 5


@pytest.mark.asyncio
async def test_insert_does_not_mutate_argument(storage):
    """The caller's dict is left alone; the returned copy has the key."""
    record = {"name": "Mike"}
    stored = await upsert(storage, "people", "id", record)
    assert "id" not in record
    assert stored is not record


@pytest.mark.asyncio
async def test_insert_value_object(storage):
    """Collections without a primary key just append."""
    stored = await upsert(storage, "tags", None, "blue")
    assert stored == "blue"
    assert storage.content["tags"] == ["red", "blue"]


@pytest.mark.asyncio
async def test_sequential_inserts(storage):
    """Keys keep counting up across inserts."""
    a = await upsert(storage, "empty", "id", {"n": "a"})
    b = await upsert(storage, "empty", "id", {"n": "b"})
    c = await upsert(storage, "empty", "id", {"n": "c"})
    assert [a["id"], b["id"], c["id"]] == [1, 2, 3]


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_merges_in_place(storage):
    """New fields win, missing fields are preserved, position is kept."""
    stored = await upsert(storage, "people", "id", {"id": 2, "age": 31, "city": "Oslo"})
    assert stored == {"id": 2, "name": "Ben", "age": 31, "city": "Oslo"}
    assert storage.content["people"][1] == stored
    assert [p["id"] for p in storage.content["people"]] == [1, 2, 4]


@pytest.mark.asyncio
async def test_update_identical_is_idempotent(storage):
    """Saving a record back unchanged keeps length and order."""
    before = [dict(p) for p in storage.content["people"]]
    await upsert(storage, "people", "id", dict(before[1]))
    assert storage.content["people"] == before


@pytest.mark.asyncio
async def test_update_unknown_key_raises_and_writes_nothing(storage):
    """A key that matches no record raises NotFoundError before any write."""
    with pytest.raises(NotFoundError) as exc:
        await upsert(storage, "people", "id", {"id": 99, "name": "Ghost"})
    assert exc.value.value == 99
    assert storage.writes == 0
    assert len(storage.content["people"]) == 3


# ---------------------------------------------------------------------------
# Snapshot handling
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_writes_whole_snapshot(storage):
    """Every successful upsert writes the full snapshot once."""
    await upsert(storage, "people", "id", {"name": "Mike"})
    assert storage.writes == 1
    assert set(storage.content) == {"people", "empty", "tags"}


@pytest.mark.asyncio
async def test_missing_collection_raises(storage):
    """Upserting into an unknown collection is a configuration error."""
    with pytest.raises(CollectionNotFound):
        await upsert(storage, "nope", "id", {"name": "x"})
    assert storage.writes == 0


@pytest.mark.asyncio
async def test_non_mapping_record_rejected(storage):
    """Keyed collections only take dict records."""
    with pytest.raises(InvalidArgument):
        await upsert(storage, "people", "id", ["not", "a", "record"])


def test_next_primary_key():
    assert next_primary_key([], "id") == 1
    assert next_primary_key([{"id": 7}], "id") == 8
    assert next_primary_key([{"id": 7}, {"name": "no key"}], "id") == 1
