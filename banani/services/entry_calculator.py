"""
Entry calculator - totals and earnings for the weight grid.

Core formula:
    total_earned = round(grand_total / WEIGHT_UNIT_KG * rate_per_20kg, 2)

Input handling is permissive: every weight goes through parse_weight, so a
half-typed or blank cell counts as 0 instead of failing. Only
validate_for_save gates the final save.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, List, Optional

from banani.core.config import settings
from banani.core.errors import ValidationFailure
from banani.models.entry import Column, EntryDraft, WeightRow
from banani.utils.numbers import ZERO, parse_rate, parse_weight, round2

__all__ = [
    "parse_weight",
    "new_column",
    "new_draft",
    "set_weight",
    "set_remark",
    "compute_column_total",
    "compute_grand_total",
    "compute_earnings",
    "add_column",
    "delete_column",
    "fit_columns",
    "normalize",
    "validate_for_save",
    "ValidationCode",
    "ValidationResult",
]


class ValidationCode(str, Enum):
    MISSING_WEIGHT = "MISSING_WEIGHT"
    MISSING_RATE = "MISSING_RATE"


VALIDATION_MESSAGES = {
    ValidationCode.MISSING_WEIGHT: "Please enter at least one weight",
    ValidationCode.MISSING_RATE: "Please enter the rate per 20kg",
}


@dataclass
class ValidationResult:
    errors: List[ValidationCode] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Turn the first problem into a ValidationFailure for the HTTP layer."""
        if self.errors:
            code = self.errors[0]
            raise ValidationFailure(VALIDATION_MESSAGES[code], code=code.value)


def new_column(column_number: int, rows_per_column: Optional[int] = None) -> Column:
    """An empty column with the configured number of zero-weight rows."""
    count = rows_per_column or settings.ROWS_PER_COLUMN
    return Column(
        column_number=column_number,
        rows=[WeightRow() for _ in range(count)],
        column_total=ZERO
    )


def new_draft(today: Optional[date] = None) -> EntryDraft:
    return EntryDraft(date=today or date.today(), columns=[new_column(1)])


def compute_column_total(rows: Iterable[WeightRow]) -> Decimal:
    return round2(sum((row.weight for row in rows), ZERO))


def _row(column: Column, row_index: int) -> WeightRow:
    if not 0 <= row_index < len(column.rows):
        raise ValidationFailure(
            f"Row {row_index} does not exist in column {column.column_number}",
            code="INVALID_ROW"
        )
    return column.rows[row_index]


def set_weight(column: Column, row_index: int, raw_input: Any) -> Column:
    """
    Write a parsed weight into one row and refresh that column's total.

    Only this column is recomputed; the grand total is derived on read.
    """
    _row(column, row_index).weight = parse_weight(raw_input)
    column.column_total = compute_column_total(column.rows)
    return column


def set_remark(column: Column, row_index: int, remark: Optional[str]) -> Column:
    _row(column, row_index).remark = remark or ""
    return column


def compute_grand_total(columns: Iterable[Column]) -> Decimal:
    # Decimal addition is exact, so column order cannot change the result
    return round2(sum((column.column_total for column in columns), ZERO))


def compute_earnings(grand_total: Decimal, rate_per_20kg: Any) -> Decimal:
    """Earnings for a total weight at a rate per fixed weight unit. No usable rate earns 0."""
    rate = parse_rate(rate_per_20kg)
    if rate is None:
        return round2(ZERO)
    return round2(grand_total / Decimal(settings.WEIGHT_UNIT_KG) * rate)


def add_column(columns: List[Column]) -> List[Column]:
    """
    Append an empty column.

    Its number is one past the highest number in use, so numbers freed by a
    deletion are never handed out again while a higher one exists.
    """
    next_number = max((column.column_number for column in columns), default=0) + 1
    return [*columns, new_column(next_number)]


def delete_column(columns: List[Column], index: int) -> List[Column]:
    """Remove the column at ``index``. The last remaining column is kept."""
    if not 0 <= index < len(columns):
        raise ValidationFailure(f"Column {index} does not exist", code="INVALID_COLUMN")
    if len(columns) == 1:
        return list(columns)
    return [column for i, column in enumerate(columns) if i != index]


def fit_columns(columns: List[Column], rows_per_column: Optional[int] = None) -> List[Column]:
    """
    Bring columns to the saved layout: every column has exactly
    ``rows_per_column`` rows and a number no other column uses.

    Short columns are padded with empty rows. A column with too many rows
    or a repeated number is rejected rather than truncated or renumbered.
    """
    count = rows_per_column or settings.ROWS_PER_COLUMN
    seen = set()
    for column in columns:
        if column.column_number in seen:
            raise ValidationFailure(
                f"Column number {column.column_number} is used more than once",
                code="INVALID_COLUMN"
            )
        seen.add(column.column_number)
        if len(column.rows) > count:
            raise ValidationFailure(
                f"Column {column.column_number} has {len(column.rows)} rows; at most {count} are allowed",
                code="INVALID_COLUMN"
            )
        column.rows.extend(WeightRow() for _ in range(count - len(column.rows)))
    return columns


def normalize(draft: EntryDraft) -> EntryDraft:
    """Fit the grid to the saved layout and recompute every derived total from the raw weights."""
    fit_columns(draft.columns)
    for column in draft.columns:
        column.column_total = compute_column_total(column.rows)
    draft.grand_total = compute_grand_total(draft.columns)
    draft.total_earned = compute_earnings(draft.grand_total, draft.rate_per_20kg)
    return draft


def validate_for_save(draft: EntryDraft) -> ValidationResult:
    """Check a draft can be saved. Problems are collected and returned, not raised."""
    result = ValidationResult()
    grand_total = sum((compute_column_total(column.rows) for column in draft.columns), ZERO)
    if grand_total == ZERO:
        result.errors.append(ValidationCode.MISSING_WEIGHT)
    if parse_rate(draft.rate_per_20kg) is None:
        result.errors.append(ValidationCode.MISSING_RATE)
    return result
