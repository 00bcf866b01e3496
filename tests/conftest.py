"""Test fixtures for the Travel Expenses service."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from travel_expenses import AppConfig, create_app
from travel_expenses.forms import ExpenseFormData
from travel_expenses.models import compute_total
from travel_expenses.repositories import ExpensesRepository


@pytest.fixture()
def app(tmp_path: Path):
    """Return a Flask app backed by a throwaway SQLite database."""

    db_path = tmp_path / "test.db"
    config = AppConfig(database_url=f"sqlite:///{db_path}")
    application = create_app(config)
    application.config.update(TESTING=True)
    yield application
    application.config["DB_ENGINE"].dispose()


@pytest.fixture()
def client(app):
    """Return a Flask test client."""

    return app.test_client()


@pytest.fixture()
def repo(app):
    """Return a repository bound to the test database."""

    return ExpensesRepository(app.config["DB_ENGINE"])


@pytest.fixture()
def expense_payload():
    """Return a valid JSON body for creating an expense."""

    return {
        "date": "2024-01-15",
        "fromLocation": "Pune",
        "toLocation": "Mumbai",
        "clientName": "Acme Logistics",
        "kilometers": 150,
        "ratePerKm": 3.5,
    }


@pytest.fixture()
def make_form():
    """Return a factory for validated expense values."""

    def factory(
        day: date, client: str = "Acme", km: str = "10", rate: str = "3"
    ) -> ExpenseFormData:
        kilometers = Decimal(km)
        rate_per_km = Decimal(rate)
        return ExpenseFormData(
            date=day,
            from_location="Pune",
            to_location="Mumbai",
            client_name=client,
            kilometers=kilometers,
            rate_per_km=rate_per_km,
            total=compute_total(kilometers, rate_per_km),
        )

    return factory
