"""Travel expense domain models and helper functions.

These dataclasses describe a single mileage-based travel expense and the
aggregates derived from a set of them. They intentionally avoid persistence
concerns so the same types flow through validation, the repository and the
spreadsheet exporter.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, Optional

DEFAULT_RATE_PER_KM = Decimal("3")
TWO_PLACES = Decimal("0.01")
SIX_PLACES = Decimal("0.000001")
MICRO_UNITS = Decimal(1_000_000)


def compute_total(kilometers: Decimal, rate_per_km: Decimal) -> Decimal:
    """Return ``kilometers * rate_per_km`` rounded half-up to two places.

    For example ``compute_total(Decimal("12.5"), Decimal("3"))`` returns
    ``Decimal("37.50")`` and ``compute_total(Decimal("3"), Decimal("3.3333"))``
    returns ``Decimal("10.00")``.
    """

    return (Decimal(kilometers) * Decimal(rate_per_km)).quantize(
        TWO_PLACES, rounding=ROUND_HALF_UP
    )


def to_minor_units(value: Decimal) -> int:
    """Return a two-place amount expressed as integer hundredths."""

    return int((Decimal(value) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(value: int) -> Decimal:
    """Convert integer hundredths back into a two-place amount.

    Returns:
        ``Decimal`` quantized to ``0.01`` so ``1234`` becomes ``12.34``.
    """

    return (Decimal(value) / Decimal(100)).quantize(TWO_PLACES)


def to_micro_units(value: Decimal) -> int:
    """Return ``value`` as integer millionths.

    Distances and rates are stored this way so submitted figures such as
    ``3.3333`` per kilometre or ``0.0004`` kilometres survive a round trip.
    """

    return int((Decimal(value) * MICRO_UNITS).to_integral_value(rounding=ROUND_HALF_UP))


def from_micro_units(value: int) -> Decimal:
    """Convert integer millionths back into a six-place ``Decimal``."""

    return (Decimal(value) / MICRO_UNITS).quantize(SIX_PLACES)


def _decimal_to_json(value: Decimal) -> float:
    return float(value)


@dataclass(slots=True)
class Expense:
    """Single travel leg billed to a client at a per-kilometre rate."""

    date: date
    from_location: str
    to_location: str
    client_name: str
    kilometers: Decimal
    rate_per_km: Decimal = DEFAULT_RATE_PER_KM
    total: Decimal = Decimal("0.00")
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON representation used by the HTTP API."""

        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "fromLocation": self.from_location,
            "toLocation": self.to_location,
            "clientName": self.client_name,
            "kilometers": _decimal_to_json(self.kilometers),
            "ratePerKm": _decimal_to_json(self.rate_per_km),
            "total": _decimal_to_json(self.total),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(slots=True)
class ExpenseTotals:
    """Aggregate figures returned by :func:`summarize_expenses`."""

    count: int
    total_sum: Decimal


def summarize_expenses(expenses: Iterable[Expense]) -> ExpenseTotals:
    """Build an :class:`ExpenseTotals` from already loaded expenses.

    Returns:
        ``ExpenseTotals`` with the number of expenses and the sum of their
        stored totals. An empty iterable yields ``count=0`` and ``0.00``.
    """

    count = 0
    total_sum = Decimal("0.00")
    for expense in expenses:
        count += 1
        total_sum += expense.total
    return ExpenseTotals(count=count, total_sum=total_sum)
