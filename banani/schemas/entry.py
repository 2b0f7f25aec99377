from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from banani.models.base import Amount
from banani.models.entry import EntryDraft


class WeightUpdate(BaseModel):
    """Set one cell of a draft. ``value`` is raw form input and may be anything."""
    draft: EntryDraft
    column_index: int = Field(..., ge=0)
    row_index: int = Field(..., ge=0)
    value: Any = None


class RemarkUpdate(BaseModel):
    draft: EntryDraft
    column_index: int = Field(..., ge=0)
    row_index: int = Field(..., ge=0)
    remark: Optional[str] = ""


class DraftValidationResponse(BaseModel):
    ok: bool
    errors: List[str]
    draft: EntryDraft


class MonthlySummaryResponse(BaseModel):
    month_key: str
    label: str
    total: Amount
    total_weight: Amount
    entry_count: int


class DashboardSummaryResponse(BaseModel):
    total_earnings: Amount = Decimal("0")
    entry_count: int = 0
    months: List[MonthlySummaryResponse] = []
