"""
Error types raised by recordbox.

Build-time problems (bad filter arguments) raise immediately from the
builder call. Execution-time problems (MissingState, StructuralMismatch)
only surface when a terminal query coroutine runs. I/O errors from a
storage backend are never wrapped: OSError and json.JSONDecodeError reach
the caller unchanged.
"""

from __future__ import annotations


class RecordBoxError(Exception):
    """Base class for every error recordbox raises on its own."""

    def __init__(self, message: str, detail: dict | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "detail": self.detail,
        }


class InvalidArgument(RecordBoxError, ValueError):
    """Malformed builder arguments: wrong shape, unknown direction, bad model."""


class MissingState(RecordBoxError):
    """A stage needs state an earlier stage should have produced."""


class StructuralMismatch(RecordBoxError):
    """A stage received a single result where it needs a sequence, or vice versa."""


class CollectionNotFound(RecordBoxError):
    """The snapshot has no collection with the requested name."""

    def __init__(self, collection: str):
        super().__init__(
            f"Collection '{collection}' does not exist in the snapshot",
            {"collection": collection},
        )
        self.collection = collection


class NotFoundError(RecordBoxError):
    """No record carries the requested primary key."""

    def __init__(self, collection: str, primary_key: str, value):
        super().__init__(
            f"No record in '{collection}' with {primary_key}={value!r}",
            {"collection": collection, "primary_key": primary_key, "value": value},
        )
        self.collection = collection
        self.primary_key = primary_key
        self.value = value


class ValidationError(RecordBoxError):
    """A record failed schema validation. Carries the first failing field."""

    def __init__(self, field: str, message: str):
        super().__init__(
            f"Model validation failed. Field '{field}': {message}",
            {"field": field},
        )
        self.field = field
        self.reason = message
