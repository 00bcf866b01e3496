"""Business logic helpers shared by the API routes."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from .models import Expense
from .repositories import ExpensesRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(slots=True)
class ExpensePage:
    """One page of the expense list plus totals for the whole filtered set."""

    items: List[Expense]
    page: int
    pages: int
    limit: int
    total: int
    total_sum: Decimal

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "page": self.page,
            "pages": self.pages,
            "limit": self.limit,
            "total": self.total,
            "totalSum": float(self.total_sum),
        }


def sync_reference_names(repo: ExpensesRepository, expense: Expense) -> int:
    """Make sure the expense's locations and client exist as suggestions.

    Each name is upserted independently after the expense itself has been
    committed. Failures are logged and skipped so they never affect the
    outcome of the create or update that triggered them.

    Returns:
        int: Number of upserts that failed.
    """

    upserts = (
        (repo.ensure_location, expense.from_location),
        (repo.ensure_location, expense.to_location),
        (repo.ensure_client, expense.client_name),
    )
    failures = 0
    for ensure, name in upserts:
        try:
            ensure(name)
        except SQLAlchemyError as exc:
            failures += 1
            logger.warning(
                "Failed to record reference name %r for expense %s: %s",
                name,
                expense.id,
                exc,
            )
    return failures


def paginate_expenses(
    repo: ExpensesRepository,
    start_date: Optional[date],
    end_date: Optional[date],
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> ExpensePage:
    """Return the requested page of expenses, newest first."""

    totals = repo.summarize_expenses(start_date, end_date)
    pages = max(1, math.ceil(totals.count / limit))
    items = repo.list_expenses(
        start_date, end_date, offset=(page - 1) * limit, limit=limit
    )
    return ExpensePage(
        items=items,
        page=page,
        pages=pages,
        limit=limit,
        total=totals.count,
        total_sum=totals.total_sum,
    )
