"""Unit tests for request and balance payload schemas."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from leave_ledger.models.enums import LeaveType
from leave_ledger.schemas.balance import SetEntitlementPayload
from leave_ledger.schemas.request import Pagination, RequestSort, RequestSortField, SubmitLeavePayload


def test_submit_payload_valid() -> None:
    p = SubmitLeavePayload(leave_type="sick", start_date=date(2026, 3, 2), end_date=date(2026, 3, 2))
    assert p.leave_type == LeaveType.SICK
    assert p.employee_id is None
    assert p.half_day is False


def test_submit_payload_end_before_start() -> None:
    with pytest.raises(ValidationError, match="end_date"):
        SubmitLeavePayload(leave_type="sick", start_date=date(2026, 3, 3), end_date=date(2026, 3, 2))


def test_submit_payload_half_day_spanning_dates() -> None:
    with pytest.raises(ValidationError, match="half_day"):
        SubmitLeavePayload(
            leave_type="vacation", start_date=date(2026, 3, 2), end_date=date(2026, 3, 3), half_day=True
        )


def test_submit_payload_reason_length() -> None:
    with pytest.raises(ValidationError):
        SubmitLeavePayload(
            leave_type="vacation", start_date=date(2026, 3, 2), end_date=date(2026, 3, 2), reason="x" * 2001
        )


def test_pagination_offset() -> None:
    assert Pagination().offset == 0
    assert Pagination(page=3, page_size=25).offset == 50


@pytest.mark.parametrize("kwargs", [{"page": 0}, {"page_size": 0}, {"page_size": 101}])
def test_pagination_bounds(kwargs: dict[str, int]) -> None:
    with pytest.raises(ValidationError):
        Pagination(**kwargs)


def test_default_sort() -> None:
    sort = RequestSort()
    assert sort.field == RequestSortField.CREATED_AT
    assert sort.order == "desc"


def test_entitlement_half_day_steps() -> None:
    assert SetEntitlementPayload(entitled_days=Decimal("7.5")).entitled_days == Decimal("7.5")
    with pytest.raises(ValidationError):
        SetEntitlementPayload(entitled_days=Decimal("7.25"))
