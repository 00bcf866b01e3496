"""Exception types raised by the Travel Expenses service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Sequence

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

if TYPE_CHECKING:  # pragma: no cover
    from .forms import FieldError


class ExpensesError(Exception):
    """Base class for application errors."""


class ConfigurationError(ExpensesError):
    """Raised when required runtime settings are missing or malformed."""


class ExpenseNotFound(ExpensesError):
    """Raised when an expense ID does not exist in the store."""

    def __init__(self, expense_id: int):
        super().__init__(f"Expense {expense_id} not found")
        self.expense_id = expense_id


class ExpenseValidationError(ExpensesError):
    """Raised when a request payload fails validation.

    ``missing`` is ``True`` when at least one required field was absent, in
    which case the API reports "Missing required fields" rather than a generic
    validation failure.
    """

    def __init__(self, errors: Sequence["FieldError"]):
        self.errors: List["FieldError"] = list(errors)
        self.missing = any(error.missing for error in self.errors)
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return "Missing required fields" if self.missing else "Validation failed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "errors": [
                {"field": error.field, "message": error.message}
                for error in self.errors
            ],
        }


def register_error_handlers(app: Flask) -> None:
    """Translate errors escaping the blueprints into the JSON error shape."""

    @app.errorhandler(ExpenseValidationError)
    def validation_error(exc: ExpenseValidationError):
        return jsonify(exc.to_dict()), 400

    @app.errorhandler(ExpenseNotFound)
    def expense_not_found(exc: ExpenseNotFound):
        return jsonify(message="Expense not found"), 404

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException):
        messages = {404: "Not found", 405: "Method not allowed"}
        message = messages.get(exc.code or 500, exc.name)
        return jsonify(message=message), exc.code

    @app.errorhandler(Exception)
    def unexpected_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        return jsonify(message="Unexpected server error"), 500
