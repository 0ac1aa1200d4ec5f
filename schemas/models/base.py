"""
Base model for MongoDB document models.

PyObjectId lets BSON ObjectIds live on pydantic v2 models. MongoBaseModel
maps ``id`` to ``_id``, carries the created/updated timestamps and converts
to and from the raw dicts pymongo reads and writes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler
from pydantic_core import core_schema


class PyObjectId(ObjectId):
    """ObjectId in python mode, hex string in JSON mode. Accepts either on input."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.to_string_ser_schema(),
        )

    @classmethod
    def _validate(cls, v: Any) -> ObjectId:
        if isinstance(v, ObjectId):
            return v
        if isinstance(v, str) and ObjectId.is_valid(v):
            return ObjectId(v)
        raise ValueError(f"Invalid ObjectId: {v!r}")


class MongoBaseModel(BaseModel):
    """
    Base for document models.

    Assignments are validated, so service code mutating a loaded document
    cannot store a value the schema would reject on the next read.

    to_mongo()   model → dict for insert_one / update_one (``_id`` omitted
                 until the store assigns one)
    from_mongo() raw document → model, ``None`` passes through
    touch()      stamp created_at (first call only) and updated_at
    """

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def touch(self, now: datetime) -> None:
        if self.created_at is None:
            self.created_at = now
        self.updated_at = now

    def to_mongo(self) -> dict:
        data = self.model_dump(by_alias=True)
        if data.get("_id") is None:
            data.pop("_id", None)
        return data

    @classmethod
    def from_mongo(cls, data: Optional[dict]) -> Optional["MongoBaseModel"]:
        if data is None:
            return None
        return cls.model_validate(data)
