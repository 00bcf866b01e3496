"""Tests for the Excel report exporter."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from io import BytesIO

from openpyxl import load_workbook

from travel_expenses.exporter import (
    build_expense_workbook,
    export_rows,
    group_expenses_by_date,
)
from travel_expenses.models import Expense, compute_total


def _expense(day: date, client: str, km: str, rate: str = "3") -> Expense:
    kilometers, rate_per_km = Decimal(km), Decimal(rate)
    return Expense(
        date=day,
        from_location="Pune",
        to_location="Mumbai",
        client_name=client,
        kilometers=kilometers,
        rate_per_km=rate_per_km,
        total=compute_total(kilometers, rate_per_km),
    )


def _sample():
    return [
        _expense(date(2024, 1, 5), "Acme", "10"),
        _expense(date(2024, 1, 5), "Globex", "12.5", "4"),
        _expense(date(2024, 1, 9), "Initech", "7.25", "3.5"),
    ]


def test_group_expenses_by_date_orders_keys():
    expenses = list(reversed(_sample()))
    grouped = group_expenses_by_date(expenses)
    assert list(grouped) == ["2024-01-05", "2024-01-09"]
    assert [e.client_name for e in grouped["2024-01-05"]] == ["Globex", "Acme"]


def test_export_rows_label_first_row_of_each_date():
    rows = export_rows(_sample())
    assert [row[0] for row in rows] == ["2024-01-05", None, "2024-01-09"]
    assert rows[1][1:] == ["Pune", "Mumbai", "Globex", 12.5, 4.0, 50.0]


def test_build_expense_workbook_layout():
    """Three data rows, a blank separator and a grand total row."""

    expenses = _sample()
    content = build_expense_workbook(expenses, currency_symbol="₹")
    ws = load_workbook(BytesIO(content)).active

    assert ws.title == "Expenses"
    header = [cell.value for cell in ws[1]]
    assert header == ["Date", "From", "To", "Client", "Kilometers", "Rate", "Total"]
    assert ws["A1"].font.bold
    assert ws["A1"].fill.fill_type == "solid"

    assert [ws.cell(row=r, column=1).value for r in (2, 3, 4)] == [
        "2024-01-05",
        None,
        "2024-01-09",
    ]
    assert ws.cell(row=2, column=4).value == "Acme"
    assert ws.cell(row=2, column=5).number_format == "#,##0.00"
    assert ws.cell(row=2, column=7).number_format == '"₹"#,##0.00'
    assert ws.cell(row=3, column=2).border.top.style == "thin"

    assert all(cell.value is None for cell in ws[5])
    assert ws.cell(row=6, column=4).value == "Total"
    assert ws.cell(row=6, column=4).font.bold
    expected = float(sum(e.total for e in expenses))
    assert ws.cell(row=6, column=7).value == expected == 105.38
    assert ws.max_row == 6


def test_build_expense_workbook_empty():
    ws = load_workbook(BytesIO(build_expense_workbook([]))).active
    assert ws.max_row == 1


def test_build_expense_workbook_without_symbol():
    content = build_expense_workbook(_sample(), currency_symbol="")
    ws = load_workbook(BytesIO(content)).active
    assert ws.cell(row=2, column=7).number_format == "#,##0.00"
