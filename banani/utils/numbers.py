"""Decimal helpers shared by models and the entry calculator."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

ZERO = Decimal("0")
CENT = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _to_finite_decimal(raw: Any) -> Optional[Decimal]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        # str() keeps 12.5 as 12.5 instead of its binary expansion
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            value = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not value.is_finite():
        return None
    return value


def parse_weight(raw: Any) -> Decimal:
    """
    Parse user input as a non-negative weight.

    Blank, non-numeric, non-finite or negative input becomes 0. This never
    raises: the form calls it on every keystroke.
    """
    value = _to_finite_decimal(raw)
    if value is None or value < ZERO:
        return ZERO
    return value


def parse_rate(raw: Any) -> Optional[Decimal]:
    """Parse a rate per weight unit. Anything that is not a positive number is absent."""
    value = _to_finite_decimal(raw)
    if value is None or value <= ZERO:
        return None
    return value


def to_decimal(raw: Any) -> Decimal:
    """Strict conversion for stored amounts; unlike parse_weight it rejects garbage."""
    value = _to_finite_decimal(raw)
    if value is None:
        raise ValueError(f"Invalid decimal amount: {raw!r}")
    return value
