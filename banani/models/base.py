from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, Field, ConfigDict, PlainSerializer

from banani.utils.numbers import parse_weight, parse_rate, to_decimal


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PyObjectId(ObjectId):
    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any):
        from pydantic_core import core_schema

        return core_schema.no_info_plain_validator_function(
            cls.validate,
            serialization=core_schema.plain_serializer_function_ser_schema(str, when_used="json")
        )

    @classmethod
    def validate(cls, value: Any) -> ObjectId:
        if isinstance(value, ObjectId):
            return value
        if isinstance(value, str) and ObjectId.is_valid(value):
            return ObjectId(value)
        raise ValueError("Invalid ObjectId")


# Amounts are Decimal in Python, plain numbers on the wire and in MongoDB.
_as_number = PlainSerializer(float, return_type=float, when_used="json-unless-none")

Amount = Annotated[Decimal, BeforeValidator(to_decimal), _as_number]
Weight = Annotated[Decimal, BeforeValidator(parse_weight), _as_number]
# Client-sent totals are recomputed on every edit, so unusable input reads as 0
DerivedTotal = Annotated[Decimal, BeforeValidator(parse_weight), _as_number]
Rate = Annotated[Decimal | None, BeforeValidator(parse_rate), _as_number]


class MongoModel(BaseModel):
    id: PyObjectId = Field(default_factory=PyObjectId, alias="_id")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        from_attributes=True
    )
