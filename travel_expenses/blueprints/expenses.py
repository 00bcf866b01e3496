"""HTTP routes for managing travel expenses."""

from __future__ import annotations

from typing import Any, Mapping, Tuple

from flask import Blueprint, Response, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from .. import get_repository
from ..errors import ExpenseValidationError
from ..exporter import XLSX_MIMETYPE, build_expense_workbook
from ..forms import (
    FieldError,
    parse_date_filter,
    parse_expense_payload,
    parse_expense_update,
)
from ..services import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    paginate_expenses,
    sync_reference_names,
)

expenses_bp = Blueprint("expenses", __name__)

EXPORT_FILENAME = "expenses.xlsx"


def _json_body() -> Mapping[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _persistence_error(message: str, exc: SQLAlchemyError) -> Tuple[Response, int]:
    current_app.logger.exception("%s: %s", message, exc)
    return jsonify(message=message), 500


def _date_filter():
    start_date, end_date, errors = parse_date_filter(request.args)
    if errors:
        raise ExpenseValidationError(errors)
    return start_date, end_date


def _int_arg(key: str, default: int, maximum: int | None = None) -> int | None:
    raw = (request.args.get(key) or "").strip()
    if not raw:
        return default
    if not (raw.isascii() and raw.isdigit()):
        return None
    value = int(raw)
    if value < 1 or (maximum is not None and value > maximum):
        return None
    return value


def _page_args() -> Tuple[int, int]:
    """Read ``page`` and ``limit`` from the query string."""

    page = _int_arg("page", 1)
    limit = _int_arg("limit", DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
    errors = []
    if page is None:
        errors.append(FieldError("page", "page must be a positive integer."))
    if limit is None:
        errors.append(
            FieldError("limit", f"limit must be between 1 and {MAX_PAGE_SIZE}.")
        )
    if errors:
        raise ExpenseValidationError(errors)
    return page, limit


@expenses_bp.post("/expenses")
def create_expense():
    """Validate and store a new expense."""

    form_data, errors = parse_expense_payload(_json_body())
    if errors or form_data is None:
        raise ExpenseValidationError(errors)

    repo = get_repository()
    try:
        expense = repo.create_expense(form_data)
    except SQLAlchemyError as exc:
        return _persistence_error("Could not save expense", exc)

    sync_reference_names(repo, expense)
    current_app.logger.info("Created expense %s for %s", expense.id, expense.client_name)
    return jsonify(expense.to_dict()), 201


@expenses_bp.get("/expenses")
def list_expenses():
    """Return expenses newest first, paginated when ``page`` or ``limit`` is given."""

    start_date, end_date = _date_filter()
    paginated = "page" in request.args or "limit" in request.args
    if paginated:
        page, limit = _page_args()

    repo = get_repository()
    try:
        if paginated:
            result = paginate_expenses(repo, start_date, end_date, page=page, limit=limit)
            return jsonify(result.to_dict())
        expenses = repo.list_expenses(start_date, end_date)
    except SQLAlchemyError as exc:
        return _persistence_error("Could not fetch expenses", exc)
    return jsonify([expense.to_dict() for expense in expenses])


@expenses_bp.get("/expenses/export")
def export_expenses():
    """Stream the filtered expenses as an Excel workbook."""

    start_date, end_date = _date_filter()
    try:
        expenses = get_repository().export_expenses(start_date, end_date)
    except SQLAlchemyError as exc:
        return _persistence_error("Could not export data", exc)

    content = build_expense_workbook(
        expenses, currency_symbol=current_app.config["CURRENCY_SYMBOL"]
    )
    current_app.logger.info("Exported %d expenses", len(expenses))
    return Response(
        content,
        mimetype=XLSX_MIMETYPE,
        headers={"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"},
    )


@expenses_bp.put("/expenses/<int:expense_id>")
def update_expense(expense_id: int):
    """Apply a partial update and recompute the total."""

    repo = get_repository()
    try:
        existing = repo.get_expense(expense_id)
    except SQLAlchemyError as exc:
        return _persistence_error("Could not update expense", exc)

    form_data, errors = parse_expense_update(existing, _json_body())
    if errors or form_data is None:
        raise ExpenseValidationError(errors)

    try:
        expense = repo.update_expense(expense_id, form_data)
    except SQLAlchemyError as exc:
        return _persistence_error("Could not update expense", exc)

    sync_reference_names(repo, expense)
    current_app.logger.info("Updated expense %s", expense.id)
    return jsonify(expense.to_dict())


@expenses_bp.delete("/expenses/<int:expense_id>")
def delete_expense(expense_id: int):
    """Hard-delete an expense."""

    try:
        get_repository().delete_expense(expense_id)
    except SQLAlchemyError as exc:
        return _persistence_error("Could not delete expense", exc)
    current_app.logger.info("Deleted expense %s", expense_id)
    return jsonify(success=True)
