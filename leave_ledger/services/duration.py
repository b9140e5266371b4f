from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from leave_ledger.exceptions import ValidationError

if TYPE_CHECKING:
    from datetime import date

HALF_DAY = Decimal("0.5")
# One request may cover at most a leap year.
MAX_REQUEST_DAYS = 366


def calculate_total_days(start_date: date, end_date: date, *, half_day: bool = False) -> Decimal:
    """Count the calendar days of an inclusive date range.

    A half-day request covers a single date and counts as 0.5.
    """
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")
    if half_day:
        if start_date != end_date:
            raise ValidationError("half_day requests must start and end on the same date")
        return HALF_DAY
    days = (end_date - start_date).days + 1
    if days > MAX_REQUEST_DAYS:
        raise ValidationError(f"A leave request may cover at most {MAX_REQUEST_DAYS} days, got {days}")
    return Decimal(days)
