from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from banani.models.base import MongoModel, PyObjectId


class PaymentMethod(str, Enum):
    GOOGLE_PAY = "google_pay"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"


class PaymentMethodBase(BaseModel):
    payment_method: PaymentMethod
    transaction_id: Optional[str] = None       # google_pay
    bank_number: Optional[str] = None          # bank_transfer
    cheque_number: Optional[str] = None        # cheque
    cheque_issuer_name: Optional[str] = None   # cheque

    @field_validator(
        "transaction_id", "bank_number", "cheque_number", "cheque_issuer_name",
        mode="before"
    )
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            value = value.strip()
        return value or None


class PaymentMethodCreate(PaymentMethodBase):
    """Payment record creation schema."""
    payment_received_date: Optional[datetime] = None


class PaymentMethodUpdate(PaymentMethodCreate):
    """Full replacement of a payment record's method and payload."""
    pass


class PaymentMethodInDB(MongoModel):
    entry_id: PyObjectId
    owner_id: PyObjectId
    payment_method: PaymentMethod
    transaction_id: Optional[str] = None
    bank_number: Optional[str] = None
    cheque_number: Optional[str] = None
    cheque_issuer_name: Optional[str] = None
    payment_received_date: datetime


class PaymentMethodResponse(PaymentMethodBase):
    id: str
    entry_id: str
    owner_id: str
    payment_received_date: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
