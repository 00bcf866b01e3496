"""Payload parsing and validation helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional, Tuple

from .models import (
    DEFAULT_RATE_PER_KM,
    SIX_PLACES,
    Expense,
    compute_total,
)

DATE_INPUT_FORMAT = "%Y-%m-%d"

MAX_KILOMETERS = Decimal("100000")
MAX_RATE_PER_KM = Decimal("1000000")
MAX_TOTAL = Decimal("100000000")

# field -> (json key, min length, max length)
TEXT_FIELDS = {
    "from_location": ("fromLocation", 2, 120),
    "to_location": ("toLocation", 2, 120),
    "client_name": ("clientName", 2, 160),
}
REQUIRED_FIELDS = ("date", "fromLocation", "toLocation", "clientName", "kilometers")
RATE_KEYS = ("ratePerKm", "rupees")


@dataclass(slots=True)
class FieldError:
    """A single problem with one field of a submitted expense."""

    field: str
    message: str
    missing: bool = False


@dataclass(slots=True)
class ExpenseFormData:
    """Validated expense values returned by the parse helpers."""

    date: date
    from_location: str
    to_location: str
    client_name: str
    kilometers: Decimal
    rate_per_km: Decimal
    total: Decimal


def normalize_name(value: Any) -> str:
    """Return ``value`` as a trimmed string (``""`` for ``None``)."""

    if value is None:
        return ""
    return str(value).strip()


def parse_date(value: Any) -> date:
    """Parse ``YYYY-MM-DD`` or a full ISO timestamp into a calendar date.

    Raises:
        ValueError: When the value cannot be interpreted as a date.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = normalize_name(value)
    try:
        return datetime.strptime(text, DATE_INPUT_FORMAT).date()
    except ValueError:
        pass
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text).date()


def parse_number(value: Any) -> Decimal:
    """Coerce a JSON number or numeric string to :class:`~decimal.Decimal`.

    Raises:
        ValueError: For booleans, blanks, non-numeric text and non-finite values.
    """

    if isinstance(value, bool):
        raise ValueError("not a number")
    if isinstance(value, float):
        value = repr(value)
    try:
        number = Decimal(normalize_name(value))
    except InvalidOperation as exc:
        raise ValueError("not a number") from exc
    if not number.is_finite():
        raise ValueError("not a number")
    return number


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _rate_value(payload: Mapping[str, Any]) -> Any:
    for key in RATE_KEYS:
        if payload.get(key) is not None:
            return payload[key]
    return None


def _check_text(key: str, value: str, min_len: int, max_len: int) -> Optional[FieldError]:
    if not min_len <= len(value) <= max_len:
        return FieldError(
            key, f"{key} must be between {min_len} and {max_len} characters."
        )
    return None


def _check_range(key: str, value: Decimal, maximum: Decimal) -> Optional[FieldError]:
    if value < 0 or value > maximum:
        return FieldError(key, f"{key} must be between 0 and {maximum}.")
    return None


def _validate(values: dict) -> Tuple[Optional[ExpenseFormData], List[FieldError]]:
    """Enforce field bounds and derive ``total`` for fully populated values."""

    errors: List[FieldError] = []
    for field, (key, min_len, max_len) in TEXT_FIELDS.items():
        error = _check_text(key, values[field], min_len, max_len)
        if error:
            errors.append(error)

    for key, value, maximum in (
        ("kilometers", values["kilometers"], MAX_KILOMETERS),
        ("ratePerKm", values["rate_per_km"], MAX_RATE_PER_KM),
    ):
        error = _check_range(key, value, maximum)
        if error:
            errors.append(error)
    if errors:
        return None, errors

    # Distance and rate are kept to six places; the total is derived from the
    # stored values so it always matches what is read back.
    kilometers = values["kilometers"].quantize(SIX_PLACES, rounding=ROUND_HALF_UP)
    rate_per_km = values["rate_per_km"].quantize(SIX_PLACES, rounding=ROUND_HALF_UP)
    total = compute_total(kilometers, rate_per_km)
    error = _check_range("total", total, MAX_TOTAL)
    if error:
        return None, [error]

    return (
        ExpenseFormData(
            date=values["date"],
            from_location=values["from_location"],
            to_location=values["to_location"],
            client_name=values["client_name"],
            kilometers=kilometers,
            rate_per_km=rate_per_km,
            total=total,
        ),
        [],
    )


def parse_expense_payload(
    payload: Mapping[str, Any]
) -> Tuple[Optional[ExpenseFormData], List[FieldError]]:
    """Validate a new expense submission.

    Returns a tuple of ``(result, errors)``. ``result`` is ``None`` when
    validation fails. Missing required fields are reported with
    ``missing=True`` before any other checks run.
    """

    missing = [
        FieldError(key, f"{key} is required.", missing=True)
        for key in REQUIRED_FIELDS
        if _is_blank(payload.get(key))
    ]
    if missing:
        return None, missing

    errors: List[FieldError] = []
    values: dict = {
        field: normalize_name(payload.get(key))
        for field, (key, _, _) in TEXT_FIELDS.items()
    }
    try:
        values["date"] = parse_date(payload["date"])
    except ValueError:
        errors.append(FieldError("date", "date must be a valid YYYY-MM-DD date."))
    try:
        values["kilometers"] = parse_number(payload["kilometers"])
    except ValueError:
        errors.append(FieldError("kilometers", "kilometers must be a number."))

    rate = _rate_value(payload)
    try:
        values["rate_per_km"] = (
            DEFAULT_RATE_PER_KM if rate is None else parse_number(rate)
        )
    except ValueError:
        errors.append(FieldError("ratePerKm", "ratePerKm must be a number."))

    if errors:
        return None, errors
    return _validate(values)


def parse_expense_update(
    existing: Expense, payload: Mapping[str, Any]
) -> Tuple[Optional[ExpenseFormData], List[FieldError]]:
    """Merge a partial update onto ``existing`` and validate the result.

    Only keys present with a non-null value replace the stored ones. ``total``
    is always recomputed from the merged distance and rate.
    """

    errors: List[FieldError] = []
    values: dict = {
        "date": existing.date,
        "from_location": existing.from_location,
        "to_location": existing.to_location,
        "client_name": existing.client_name,
        "kilometers": existing.kilometers,
        "rate_per_km": existing.rate_per_km,
    }
    for field, (key, _, _) in TEXT_FIELDS.items():
        if payload.get(key) is not None:
            values[field] = normalize_name(payload[key])

    if payload.get("date") is not None:
        try:
            values["date"] = parse_date(payload["date"])
        except ValueError:
            errors.append(FieldError("date", "date must be a valid YYYY-MM-DD date."))
    if payload.get("kilometers") is not None:
        try:
            values["kilometers"] = parse_number(payload["kilometers"])
        except ValueError:
            errors.append(FieldError("kilometers", "kilometers must be a number."))
    rate = _rate_value(payload)
    if rate is not None:
        try:
            values["rate_per_km"] = parse_number(rate)
        except ValueError:
            errors.append(FieldError("ratePerKm", "ratePerKm must be a number."))

    if errors:
        return None, errors
    return _validate(values)


def parse_date_filter(
    args: Mapping[str, Any]
) -> Tuple[Optional[date], Optional[date], List[FieldError]]:
    """Read the optional ``startDate``/``endDate`` query parameters."""

    errors: List[FieldError] = []
    bounds: List[Optional[date]] = []
    for key in ("startDate", "endDate"):
        raw = args.get(key)
        if _is_blank(raw):
            bounds.append(None)
            continue
        try:
            bounds.append(parse_date(raw))
        except ValueError:
            errors.append(FieldError(key, f"{key} must be a valid YYYY-MM-DD date."))
            bounds.append(None)
    return bounds[0], bounds[1], errors
