from recordbox.schema.base import PydanticSchema, RecordSchema

__all__ = ["PydanticSchema", "RecordSchema"]
