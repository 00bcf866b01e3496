"""Database access layer for the Travel Expenses service."""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import Table, delete, func, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql import Select

from .database import clients, expenses, locations, session_scope
from .errors import ExpenseNotFound
from .forms import ExpenseFormData
from .models import (
    Expense,
    ExpenseTotals,
    from_micro_units,
    from_minor_units,
    to_micro_units,
    to_minor_units,
)

logger = logging.getLogger(__name__)


class ExpensesRepository:
    """Provides CRUD operations for expenses and their reference names."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def create_expense(self, data: ExpenseFormData) -> Expense:
        """Persist a validated expense and return it with ID and timestamps.

        Returns:
            Expense: The stored record as read back through ``RETURNING``,
            so distance and rate carry their stored six-place precision.

        External Dependencies:
            * Inserts into the ``expenses`` table via :mod:`sqlalchemy`.
        """

        with session_scope(self._engine) as session:
            row = session.execute(
                insert(expenses)
                .values(**self._payload(data))
                .returning(*expenses.c)
            ).one()
        return self._row_to_expense(row)

    def get_expense(self, expense_id: int) -> Expense:
        """Fetch a single expense.

        Raises:
            ExpenseNotFound: When no row has ``expense_id``.
        """

        with session_scope(self._engine) as session:
            row = session.execute(
                select(expenses).where(expenses.c.id == expense_id)
            ).one_or_none()
        if row is None:
            raise ExpenseNotFound(expense_id)
        return self._row_to_expense(row)

    def update_expense(self, expense_id: int, data: ExpenseFormData) -> Expense:
        """Replace the stored values of an expense with ``data``.

        Returns:
            Expense: The updated record with a refreshed ``updated_at``.

        Raises:
            ExpenseNotFound: When no row has ``expense_id``.
        """

        with session_scope(self._engine) as session:
            row = session.execute(
                update(expenses)
                .where(expenses.c.id == expense_id)
                .values(**self._payload(data), updated_at=func.now())
                .returning(*expenses.c)
            ).one_or_none()
        if row is None:
            raise ExpenseNotFound(expense_id)
        return self._row_to_expense(row)

    def delete_expense(self, expense_id: int) -> None:
        """Hard-delete an expense.

        Raises:
            ExpenseNotFound: When no row was removed.
        """

        with session_scope(self._engine) as session:
            result = session.execute(delete(expenses).where(expenses.c.id == expense_id))
            if result.rowcount == 0:
                raise ExpenseNotFound(expense_id)

    def list_expenses(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        *,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Expense]:
        """Return expenses newest first, optionally filtered and paged."""

        query = self._filtered(select(expenses), start_date, end_date).order_by(
            expenses.c.expense_date.desc(),
            expenses.c.created_at.desc(),
            expenses.c.id.desc(),
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        with session_scope(self._engine) as session:
            rows = session.execute(query).all()
        return [self._row_to_expense(row) for row in rows]

    def export_expenses(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> List[Expense]:
        """Return expenses in chronological order for reports."""

        query = self._filtered(select(expenses), start_date, end_date).order_by(
            expenses.c.expense_date.asc(),
            expenses.c.created_at.asc(),
            expenses.c.id.asc(),
        )
        with session_scope(self._engine) as session:
            rows = session.execute(query).all()
        return [self._row_to_expense(row) for row in rows]

    def summarize_expenses(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> ExpenseTotals:
        """Return the row count and grand total for the filtered set.

        Returns:
            ExpenseTotals: ``count`` of matching rows and the ``total_sum`` of
            their totals, ``0.00`` when nothing matches.

        External Dependencies:
            * Runs ``COUNT`` and ``SUM`` aggregates in the database via
              :mod:`sqlalchemy` so paging does not load every row.
        """

        query = self._filtered(
            select(
                func.count(expenses.c.id),
                func.coalesce(func.sum(expenses.c.total_cents), 0),
            ),
            start_date,
            end_date,
        )
        with session_scope(self._engine) as session:
            count, total_cents = session.execute(query).one()
        return ExpenseTotals(count=count, total_sum=from_minor_units(total_cents))

    def ensure_location(self, name: str) -> bool:
        """Insert a location name if absent. Returns ``True`` when inserted."""

        return self._ensure_name(locations, name)

    def ensure_client(self, name: str) -> bool:
        """Insert a client name if absent. Returns ``True`` when inserted."""

        return self._ensure_name(clients, name)

    def list_location_names(self) -> List[str]:
        """Return every known location name.

        Returns:
            list[str]: Names sorted by the database collation.

        External Dependencies:
            * Reads the ``locations`` table via :mod:`sqlalchemy`.
        """

        return self._names(locations)

    def list_client_names(self) -> List[str]:
        """Return every known client name.

        Returns:
            list[str]: Names sorted by the database collation.

        External Dependencies:
            * Reads the ``clients`` table via :mod:`sqlalchemy`.
        """

        return self._names(clients)

    def _ensure_name(self, table: Table, name: str) -> bool:
        name = name.strip()
        try:
            with session_scope(self._engine) as session:
                existing = session.execute(
                    select(table.c.id).where(table.c.name == name)
                ).first()
                if existing is not None:
                    logger.debug("Skipped existing %s: %s", table.name, name)
                    return False
                session.execute(insert(table).values(name=name))
        except IntegrityError:
            # A concurrent request inserted the same name first.
            logger.debug("Skipped existing %s: %s", table.name, name)
            return False
        logger.info("Inserted %s: %s", table.name, name)
        return True

    def _names(self, table: Table) -> List[str]:
        with session_scope(self._engine) as session:
            return list(
                session.execute(select(table.c.name).order_by(table.c.name)).scalars()
            )

    @staticmethod
    def _filtered(
        query: Select, start_date: Optional[date], end_date: Optional[date]
    ) -> Select:
        if start_date is not None:
            query = query.where(expenses.c.expense_date >= start_date)
        if end_date is not None:
            query = query.where(expenses.c.expense_date <= end_date)
        return query

    @staticmethod
    def _payload(data: ExpenseFormData) -> dict:
        return {
            "expense_date": data.date,
            "from_location": data.from_location,
            "to_location": data.to_location,
            "client_name": data.client_name,
            "distance_micro_km": to_micro_units(data.kilometers),
            "rate_micro": to_micro_units(data.rate_per_km),
            "total_cents": to_minor_units(data.total),
        }

    @staticmethod
    def _row_to_expense(row) -> Expense:
        """Convert a SQLAlchemy row to an :class:`Expense`."""

        values = row._mapping
        return Expense(
            id=values["id"],
            date=values["expense_date"],
            from_location=values["from_location"],
            to_location=values["to_location"],
            client_name=values["client_name"],
            kilometers=from_micro_units(values["distance_micro_km"]),
            rate_per_km=from_micro_units(values["rate_micro"]),
            total=from_minor_units(values["total_cents"]),
            created_at=values["created_at"],
            updated_at=values["updated_at"],
        )
