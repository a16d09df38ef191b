"""
Upsert engine: read the whole snapshot, update-or-insert one record, write
the whole snapshot back.

Primary keys are client-visible integers allocated per collection as
(last record's key, or 0 for an empty collection) + 1. Collections are
only ever appended to or updated in place, so the last record always holds
the highest key this engine handed out.

A record that names a primary key nobody has raises NotFoundError and the
snapshot is left untouched. Inserting under a caller-chosen key would break
the allocation rule above.
"""

from __future__ import annotations

import copy
import logging

from recordbox.errors import CollectionNotFound, InvalidArgument, NotFoundError
from recordbox.storage.backends.base import StorageBackend

logger = logging.getLogger(__name__)


def _collection(snapshot: dict, collection_name: str) -> list:
    collection = snapshot.get(collection_name)
    if collection is None:
        raise CollectionNotFound(collection_name)
    return collection


def next_primary_key(collection: list, primary_key: str) -> int:
    """Key the next inserted record gets: last record's key + 1, or 1."""
    if not collection:
        return 1
    last = collection[-1]
    last_key = last.get(primary_key) if isinstance(last, dict) else None
    return (last_key or 0) + 1


async def upsert(
    storage: StorageBackend,
    collection_name: str,
    primary_key: str | None,
    record,
):
    """
    Update-or-insert `record` into `collection_name`.

    - primary_key is None (value-object collection): append the record as-is.
    - record[primary_key] is truthy: merge over the stored record with that
      key (new fields win, absent fields are kept), in place.
    - otherwise: allocate the next key, assign it, append.

    Returns a copy of the record as stored. The caller's `record` is not
    mutated.
    """
    snapshot = await storage.read()
    collection = _collection(snapshot, collection_name)

    if primary_key is None:
        stored = copy.deepcopy(record)
        collection.append(stored)
        logger.info("Appended value to '%s' (now %d entries)", collection_name, len(collection))
    else:
        if not isinstance(record, dict):
            raise InvalidArgument(
                f"Records saved to '{collection_name}' must be mappings, got {type(record).__name__}"
            )
        key_value = record.get(primary_key)
        if key_value:
            index = next(
                (i for i, existing in enumerate(collection)
                 if isinstance(existing, dict) and existing.get(primary_key) == key_value),
                None,
            )
            if index is None:
                raise NotFoundError(collection_name, primary_key, key_value)
            stored = {**collection[index], **copy.deepcopy(record)}
            collection[index] = stored
            logger.info("Updated %s=%r in '%s'", primary_key, key_value, collection_name)
        else:
            stored = copy.deepcopy(record)
            stored[primary_key] = next_primary_key(collection, primary_key)
            collection.append(stored)
            logger.info(
                "Inserted %s=%r into '%s'", primary_key, stored[primary_key], collection_name
            )

    await storage.write(snapshot)
    return copy.deepcopy(stored)
