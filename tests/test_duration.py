"""Tests for the request duration calculator."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from leave_ledger.exceptions import ValidationError
from leave_ledger.services.duration import HALF_DAY, MAX_REQUEST_DAYS, calculate_total_days


def test_single_day_counts_as_one() -> None:
    assert calculate_total_days(date(2026, 3, 2), date(2026, 3, 2)) == Decimal(1)


def test_range_is_inclusive() -> None:
    assert calculate_total_days(date(2026, 3, 2), date(2026, 3, 6)) == Decimal(5)


def test_weekends_are_counted() -> None:
    """Calendar days, not business days."""
    assert calculate_total_days(date(2026, 3, 6), date(2026, 3, 9)) == Decimal(4)


def test_range_across_year_boundary() -> None:
    assert calculate_total_days(date(2026, 12, 30), date(2027, 1, 2)) == Decimal(4)


def test_leap_day_counted() -> None:
    assert calculate_total_days(date(2028, 2, 28), date(2028, 3, 1)) == Decimal(3)


def test_half_day() -> None:
    assert calculate_total_days(date(2026, 3, 2), date(2026, 3, 2), half_day=True) == HALF_DAY
    assert HALF_DAY == Decimal("0.5")


def test_half_day_must_be_single_date() -> None:
    with pytest.raises(ValidationError):
        calculate_total_days(date(2026, 3, 2), date(2026, 3, 3), half_day=True)


def test_end_before_start_raises() -> None:
    with pytest.raises(ValidationError) as exc_info:
        calculate_total_days(date(2026, 3, 3), date(2026, 3, 2))
    assert exc_info.value.status_code == 400


def test_full_leap_year_is_allowed() -> None:
    assert calculate_total_days(date(2028, 1, 1), date(2028, 12, 31)) == Decimal(MAX_REQUEST_DAYS)


def test_range_longer_than_a_year_raises() -> None:
    with pytest.raises(ValidationError, match="at most 366 days"):
        calculate_total_days(date(2026, 1, 1), date(2027, 1, 2))


def test_far_future_end_date_raises() -> None:
    with pytest.raises(ValidationError):
        calculate_total_days(date(2026, 1, 1), date(9999, 12, 31))
