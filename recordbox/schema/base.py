"""
Record schemas — field validation for records on their way into storage.

The query pipeline never validates; only Model.save() does, through the
model's declared schema. A schema returns the normalized record or raises
ValidationError naming the first failing field.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import pydantic

from recordbox.errors import ValidationError


class RecordSchema(ABC):
    """Abstract record validator."""

    @abstractmethod
    def validate(self, record: dict) -> dict:
        """Return the normalized record, or raise ValidationError."""
        ...


class PydanticSchema(RecordSchema):
    """
    RecordSchema backed by a pydantic model.

    Pydantic's lax mode does the normalization (numeric strings to int and
    so on). Fields the model does not declare are passed through untouched,
    and optional fields the record does not set are not added.
    """

    def __init__(self, model_cls: type[pydantic.BaseModel]):
        self.model_cls = model_cls

    def validate(self, record: dict) -> dict:
        try:
            parsed = self.model_cls.model_validate(record)
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "__root__"
            raise ValidationError(field, first["msg"]) from e
        return {**record, **parsed.model_dump(exclude_unset=True)}

    def __repr__(self) -> str:
        return f"<PydanticSchema {self.model_cls.__name__}>"
