"""Spreadsheet export for travel expenses.

Expenses are grouped by calendar date and written to a single worksheet. Only
the first row of each date group shows the date so the report reads as a
series of dated blocks, followed by a grand total across every row.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from io import BytesIO
from typing import Dict, Iterable, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .models import Expense, summarize_expenses

logger = logging.getLogger(__name__)

SHEET_TITLE = "Expenses"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (header, width)
COLUMNS = [
    ("Date", 14),
    ("From", 22),
    ("To", 22),
    ("Client", 24),
    ("Kilometers", 12),
    ("Rate", 10),
    ("Total", 14),
]
KILOMETERS_COLUMN = 5
RATE_COLUMN = 6
TOTAL_COLUMN = 7

NUMBER_FORMAT = "#,##0.00"
GRID_COLOR = "E2E8F0"
HEADER_FILL = PatternFill(start_color=GRID_COLOR, end_color=GRID_COLOR, fill_type="solid")
HEADER_FONT = Font(bold=True)
THIN_SIDE = Side(style="thin", color=GRID_COLOR)
THIN_BORDER = Border(left=THIN_SIDE, right=THIN_SIDE, top=THIN_SIDE, bottom=THIN_SIDE)


def currency_format(symbol: str) -> str:
    """Return an Excel number format prefixing values with ``symbol``."""

    return f'"{symbol}"{NUMBER_FORMAT}' if symbol else NUMBER_FORMAT


def group_expenses_by_date(expenses: Iterable[Expense]) -> Dict[str, List[Expense]]:
    """Group expenses by ISO date, keys in ascending order.

    Expenses keep their incoming order inside each group.
    """

    grouped: Dict[str, List[Expense]] = {}
    for expense in expenses:
        grouped.setdefault(expense.date.isoformat(), []).append(expense)
    return OrderedDict((key, grouped[key]) for key in sorted(grouped))


def export_rows(expenses: Sequence[Expense]) -> List[list]:
    """Return the data rows of the report without the header or totals."""

    rows: List[list] = []
    for date_key, items in group_expenses_by_date(expenses).items():
        for index, expense in enumerate(items):
            rows.append(
                [
                    date_key if index == 0 else None,
                    expense.from_location,
                    expense.to_location,
                    expense.client_name,
                    float(expense.kilometers),
                    float(expense.rate_per_km),
                    float(expense.total),
                ]
            )
    return rows


def build_expense_workbook(
    expenses: Sequence[Expense], *, currency_symbol: str = "₹"
) -> bytes:
    """Render ``expenses`` into an ``.xlsx`` document.

    Args:
        expenses: Expenses in chronological order.
        currency_symbol: Prefix applied to the Total column format.

    Returns:
        bytes: The serialised workbook.
    """

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE
    money_format = currency_format(currency_symbol)

    for col, (header, width) in enumerate(COLUMNS, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = THIN_BORDER
        cell.alignment = Alignment(horizontal="center", vertical="center")
        ws.column_dimensions[get_column_letter(col)].width = width

    row_num = 1
    for values in export_rows(expenses):
        row_num += 1
        for col, value in enumerate(values, 1):
            cell = ws.cell(row=row_num, column=col, value=value)
            cell.border = THIN_BORDER
            cell.alignment = Alignment(vertical="center")
        ws.cell(row=row_num, column=KILOMETERS_COLUMN).number_format = NUMBER_FORMAT
        ws.cell(row=row_num, column=RATE_COLUMN).number_format = NUMBER_FORMAT
        ws.cell(row=row_num, column=TOTAL_COLUMN).number_format = money_format

    grand_total = summarize_expenses(expenses).total_sum
    if expenses:
        # Leave one blank separator row before the totals.
        row_num += 2
        for col in range(1, len(COLUMNS) + 1):
            cell = ws.cell(row=row_num, column=col)
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER
        ws.cell(row=row_num, column=4, value="Total")
        total_cell = ws.cell(row=row_num, column=TOTAL_COLUMN, value=float(grand_total))
        total_cell.number_format = money_format

    output = BytesIO()
    wb.save(output)
    logger.info(
        "Expense export rendered: %d rows, total %s", len(expenses), grand_total
    )
    return output.getvalue()
