"""
Spreadsheet export for a single entry.

flatten() lays an entry out as a rectangular grid of cells; workbook_bytes()
is the sink that serialises that grid to .xlsx with openpyxl.

Layout (two sheet columns per weight column):

    Date            | 15/01/2025
    Dealer Name     | ...              (only when set)
    ...header block...
                                       (blank)
    Column 1 |        | Column 2 |
    Weight (kg) | Remark | Weight (kg) | Remark
    10       | ok     | 7.5      |
    ...data rows...
                                       (blank)
    Total: 15.00 |    | Total: 7.50 |
                                       (blank)
    Grand Total (kg): | 22.50
    Total Earned (₹): | 675.00
"""
from dataclasses import dataclass, field
from decimal import Decimal
from io import BytesIO
from typing import List, Optional, Union

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from banani.core.config import settings
from banani.models.entry import EntryInDB
from banani.services.reporting import format_display_date
from banani.utils.numbers import ZERO, round2

Cell = Union[str, Decimal]

CURRENCY_SYMBOLS = {"INR": "₹"}
SHEET_TITLE = "Banana Entry"
COLUMN_WIDTH = 15


@dataclass
class TabularSheet:
    title: str
    rows: List[List[Cell]] = field(default_factory=list)

    @property
    def width(self) -> int:
        return max((len(row) for row in self.rows), default=0)


def currency_symbol() -> str:
    return CURRENCY_SYMBOLS.get(settings.CURRENCY, settings.CURRENCY)


def _money(value: Optional[Decimal]) -> str:
    return f"{round2(value or ZERO):.2f}"


def _header_block(entry: EntryInDB) -> List[List[Cell]]:
    symbol = currency_symbol()
    rows: List[List[Cell]] = [["Date", format_display_date(entry.date)]]
    if entry.dealer_name:
        rows.append(["Dealer Name", entry.dealer_name])
    if entry.location:
        rows.append(["Location", entry.location])
    if entry.vehicle_number:
        rows.append(["Vehicle Number", entry.vehicle_number])
    rate = f"{symbol} {_money(entry.rate_per_20kg)}" if entry.rate_per_20kg is not None else ""
    rows.append([f"Rate per {settings.WEIGHT_UNIT_KG}kg", rate])
    if entry.payment_due_date:
        rows.append(["Payment Due Date", format_display_date(entry.payment_due_date)])
    rows.append(["Total Weight", f"{_money(entry.grand_total)} kg"])
    rows.append(["Total Earned", f"{symbol} {_money(entry.total_earned)}"])
    return rows


def flatten(entry: EntryInDB, rows_per_column: Optional[int] = None) -> TabularSheet:
    """
    Flatten an entry into a rectangular grid of cells.

    Historical entries may have columns with fewer or more rows than
    ``rows_per_column``; short columns are padded with empty cells and the
    data block grows to the longest column so no weight is dropped.
    """
    rows_per_column = rows_per_column or settings.ROWS_PER_COLUMN
    columns = entry.columns
    data_rows = max([rows_per_column, *(len(column.rows) for column in columns)])

    grid: List[List[Cell]] = _header_block(entry)
    grid.append([])

    caption: List[Cell] = []
    sub_header: List[Cell] = []
    for column in columns:
        caption.extend([f"Column {column.column_number}", ""])
        sub_header.extend(["Weight (kg)", "Remark"])
    grid.append(caption)
    grid.append(sub_header)

    for row_index in range(data_rows):
        line: List[Cell] = []
        for column in columns:
            if row_index < len(column.rows):
                row = column.rows[row_index]
                line.extend([row.weight, row.remark or ""])
            else:
                line.extend(["", ""])
        grid.append(line)

    grid.append([])
    totals: List[Cell] = []
    for column in columns:
        totals.extend([f"Total: {_money(column.column_total)}", ""])
    grid.append(totals)

    grid.append([])
    grid.append(["Grand Total (kg):", _money(entry.grand_total)])
    grid.append([f"Total Earned ({currency_symbol()}):", _money(entry.total_earned)])

    width = max(2, 2 * len(columns), *(len(line) for line in grid))
    for line in grid:
        line.extend([""] * (width - len(line)))
    return TabularSheet(title=SHEET_TITLE, rows=grid)


def workbook_bytes(sheet: TabularSheet) -> bytes:
    """Serialise a flattened sheet to an .xlsx document."""
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = sheet.title
    for line in sheet.rows:
        worksheet.append([None if cell == "" else cell for cell in line])
    for index in range(1, sheet.width + 1):
        worksheet.column_dimensions[get_column_letter(index)].width = COLUMN_WIDTH

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_filename(entry: EntryInDB) -> str:
    return f"BananiExpense_{entry.date.strftime('%d-%m-%Y')}.xlsx"
