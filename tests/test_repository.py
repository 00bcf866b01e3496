"""Repository integration tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from travel_expenses.errors import ExpenseNotFound
from travel_expenses.forms import parse_expense_update


def test_repository_crud(repo, make_form):
    """Exercise CRUD paths on the repository abstraction."""

    saved = repo.create_expense(make_form(date(2024, 2, 1), km="12.5", rate="3.25"))
    assert saved.id is not None
    assert saved.kilometers == Decimal("12.500")
    assert saved.rate_per_km == Decimal("3.25")
    assert saved.total == Decimal("40.63")
    assert saved.created_at is not None

    fetched = repo.get_expense(saved.id)
    assert fetched.client_name == "Acme"

    update, errors = parse_expense_update(fetched, {"kilometers": 20})
    assert not errors
    updated = repo.update_expense(saved.id, update)
    assert updated.total == Decimal("65.00")
    assert repo.get_expense(saved.id).kilometers == Decimal("20.000")

    repo.delete_expense(saved.id)
    with pytest.raises(ExpenseNotFound):
        repo.get_expense(saved.id)
    assert repo.list_expenses() == []


def test_repository_keeps_fractional_distance_and_rate(repo, make_form):
    saved = repo.create_expense(make_form(date(2024, 2, 1), km="0.0004", rate="3.3333"))
    fetched = repo.get_expense(saved.id)
    assert fetched.kilometers == Decimal("0.0004")
    assert fetched.rate_per_km == Decimal("3.3333")
    assert fetched.total == Decimal("0.00")


def test_missing_ids_raise(repo, make_form):
    with pytest.raises(ExpenseNotFound):
        repo.delete_expense(999)
    with pytest.raises(ExpenseNotFound):
        repo.update_expense(999, make_form(date(2024, 1, 1)))


def test_list_and_export_ordering(repo, make_form):
    """Lists read newest first, exports oldest first, ties by insertion."""

    first = repo.create_expense(make_form(date(2024, 1, 5), client="First"))
    second = repo.create_expense(make_form(date(2024, 1, 5), client="Second"))
    older = repo.create_expense(make_form(date(2024, 1, 1), client="Older"))

    listed = [expense.id for expense in repo.list_expenses()]
    assert listed == [second.id, first.id, older.id]

    exported = [expense.id for expense in repo.export_expenses()]
    assert exported == [older.id, first.id, second.id]


def test_date_filter_is_inclusive(repo, make_form):
    for day in (date(2023, 12, 31), date(2024, 1, 1), date(2024, 1, 31), date(2024, 2, 1)):
        repo.create_expense(make_form(day))

    in_range = repo.list_expenses(date(2024, 1, 1), date(2024, 1, 31))
    assert [expense.date for expense in in_range] == [date(2024, 1, 31), date(2024, 1, 1)]

    since = repo.export_expenses(start_date=date(2024, 1, 31))
    assert [expense.date for expense in since] == [date(2024, 1, 31), date(2024, 2, 1)]


def test_pagination_and_summary(repo, make_form):
    for day in range(1, 6):
        repo.create_expense(make_form(date(2024, 3, day)))

    page = repo.list_expenses(offset=2, limit=2)
    assert [expense.date.day for expense in page] == [3, 2]

    totals = repo.summarize_expenses(end_date=date(2024, 3, 3))
    assert totals.count == 3
    assert totals.total_sum == Decimal("90.00")

    empty = repo.summarize_expenses(start_date=date(2030, 1, 1))
    assert empty.count == 0
    assert empty.total_sum == Decimal("0.00")


def test_ensure_names_is_insert_if_absent(repo):
    """Reference names are created once and matched exactly after trimming."""

    assert repo.ensure_location("Pune") is True
    assert repo.ensure_location(" Pune ") is False
    assert repo.ensure_location("pune") is True
    assert repo.ensure_client("Globex") is True
    assert repo.ensure_client("Acme") is True

    assert repo.list_location_names() == ["Pune", "pune"]
    assert repo.list_client_names() == ["Acme", "Globex"]
