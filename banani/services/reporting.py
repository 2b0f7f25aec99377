"""Dashboard aggregates derived from saved entries. Nothing here is stored."""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from banani.models.entry import EntryInDB
from banani.utils.numbers import ZERO, round2


@dataclass
class MonthlySummary:
    month_key: str          # "YYYY-MM"
    label: str              # "Jan 2025"
    total: Decimal
    total_weight: Decimal = ZERO
    entry_count: int = 0


def _entry_date(entry: EntryInDB) -> date:
    value = entry.date
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def month_label(value: date) -> str:
    return value.strftime("%b %Y")


def group_by_month(entries: Iterable[EntryInDB]) -> List[MonthlySummary]:
    """
    Sum earnings per calendar month, most recent month first.

    Entries without total_earned contribute 0.
    """
    months: Dict[str, MonthlySummary] = {}
    for entry in entries:
        entry_date = _entry_date(entry)
        key = month_key(entry_date)
        summary = months.get(key)
        if summary is None:
            summary = months[key] = MonthlySummary(
                month_key=key,
                label=month_label(entry_date),
                total=ZERO
            )
        summary.total += entry.total_earned or ZERO
        summary.total_weight += entry.grand_total or ZERO
        summary.entry_count += 1

    ordered = sorted(months.values(), key=lambda s: s.month_key, reverse=True)
    for summary in ordered:
        summary.total = round2(summary.total)
        summary.total_weight = round2(summary.total_weight)
    return ordered


def find_month(entries: Iterable[EntryInDB], key: str) -> Optional[MonthlySummary]:
    for summary in group_by_month(entries):
        if summary.month_key == key:
            return summary
    return None


def total_earnings(entries: Iterable[EntryInDB]) -> Decimal:
    return round2(sum((entry.total_earned or ZERO for entry in entries), ZERO))


def format_display_date(value: date) -> str:
    """dd/mm/yyyy, the date format shown on the dashboard and in exports."""
    return value.strftime("%d/%m/%Y")


def filter_by_date(entries: Sequence[EntryInDB], query: Optional[str]) -> List[EntryInDB]:
    """Dashboard search: keep entries whose dd/mm/yyyy date contains ``query``."""
    if not query:
        return list(entries)
    needle = query.strip()
    return [
        entry for entry in entries
        if needle in format_display_date(_entry_date(entry))
    ]
