"""
Entry model - one weighing transaction.

An entry holds a grid of weights: columns of a fixed number of rows. Totals
are always derived server-side:

- column_total == sum(rows.weight), 2dp
- grand_total == sum(columns.column_total)
- total_earned == grand_total / 20 * rate_per_20kg, 2dp

Column fields keep their camelCase names (columnNumber, columnTotal) in
storage and on the wire, the shape existing records already use.
"""
from datetime import date as date_type, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from banani.models.base import MongoModel, PyObjectId, Amount, DerivedTotal, Weight, Rate
from banani.utils.numbers import ZERO


class WeightRow(BaseModel):
    weight: Weight = ZERO
    remark: str = ""

    @field_validator("remark", mode="before")
    @classmethod
    def _remark_not_null(cls, value):
        return value or ""


class Column(BaseModel):
    column_number: int = Field(..., ge=1, alias="columnNumber")
    rows: List[WeightRow] = []
    column_total: DerivedTotal = Field(ZERO, alias="columnTotal")

    model_config = ConfigDict(populate_by_name=True)


class EntryBase(BaseModel):
    """Fields a client may send. Totals are never read from here."""
    date: date_type = Field(default_factory=date_type.today)
    dealer_name: Optional[str] = None
    location: Optional[str] = None
    vehicle_number: Optional[str] = None
    columns: List[Column] = Field(..., min_length=1)
    rate_per_20kg: Rate = None
    payment_due_date: Optional[date_type] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("dealer_name", "location", "vehicle_number", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
        return value or None

    @field_validator("payment_due_date", mode="before")
    @classmethod
    def _blank_date_to_none(cls, value):
        return value or None


class EntryDraft(EntryBase):
    """An unsaved entry as edited by the form, with its derived totals."""
    grand_total: DerivedTotal = ZERO
    total_earned: DerivedTotal = ZERO


class EntryInDB(MongoModel):
    """Persisted entry. Old records may lack rate or earnings; both read as absent."""
    owner_id: PyObjectId
    date: date_type
    dealer_name: Optional[str] = None
    location: Optional[str] = None
    vehicle_number: Optional[str] = None
    columns: List[Column] = []
    grand_total: Amount = ZERO
    rate_per_20kg: Rate = None
    payment_due_date: Optional[date_type] = None
    total_earned: Optional[Amount] = None


class EntryResponse(EntryDraft):
    id: str
    owner_id: str
    grand_total: Amount = ZERO
    total_earned: Optional[Amount] = None
    created_at: datetime
    updated_at: datetime
