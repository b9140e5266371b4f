# ruff: noqa: TC001, TC003
from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Self

from pydantic import BaseModel, Field, model_validator

from leave_ledger.models.enums import LeaveStatus, LeaveType, ReviewDecision

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitLeavePayload(BaseModel):
    """Request body for submitting a new leave request."""

    employee_id: uuid.UUID | None = Field(default=None, description="Defaults to the caller")
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=2000)
    half_day: bool = False

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        if self.half_day and self.end_date != self.start_date:
            msg = "half_day requests must start and end on the same date"
            raise ValueError(msg)
        return self


class UpdateLeavePayload(BaseModel):
    """Request body for editing a pending leave request. Omitted fields are kept."""

    leave_type: LeaveType | None = None
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=2000)
    half_day: bool | None = None


class ReviewPayload(BaseModel):
    """Request body for the combined review endpoint."""

    decision: ReviewDecision
    comment: str | None = Field(default=None, max_length=1000)


class DecisionPayload(BaseModel):
    """Request body for approve/reject shortcuts."""

    comment: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------


class RequestSortField(enum.StrEnum):
    """Columns the request list can be ordered by."""

    DISPLAY_NAME = "display_name"
    LEGAL_NAME = "legal_name"
    EMPLOYEE_CODE = "employee_code"
    LEAVE_TYPE = "leave_type"
    START_DATE = "start_date"
    END_DATE = "end_date"
    TOTAL_DAYS = "total_days"
    STATUS = "status"
    CREATED_AT = "created_at"


SortOrder = Literal["asc", "desc"]


class RequestFilters(BaseModel):
    """Optional filters for listing leave requests."""

    employee_id: uuid.UUID | None = None
    leave_type: LeaveType | None = None
    status: LeaveStatus | None = None
    date_from: date | None = None
    date_to: date | None = None


class RequestSort(BaseModel):
    field: RequestSortField = RequestSortField.CREATED_AT
    order: SortOrder = "desc"


class Pagination(BaseModel):
    """1-based page number and page size."""

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveRequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    organization_id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: Decimal
    reason: str | None
    status: LeaveStatus
    reviewed_by: uuid.UUID | None
    reviewed_at: datetime | None
    review_comment: str | None
    created_at: datetime
    updated_at: datetime | None


class LeaveRequestRow(BaseModel):
    """Flattened request row joined with the employee's display attributes."""

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_code: str | None
    display_name: str
    legal_name: str
    avatar_url: str | None
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: Decimal
    reason: str | None
    status: LeaveStatus
    review_comment: str | None
    reviewed_by: uuid.UUID | None
    reviewed_at: datetime | None
    created_at: datetime


class LeaveRequestPage(BaseModel):
    """Paginated list of request rows."""

    rows: list[LeaveRequestRow]
    total: int
    page: int
    page_size: int
    total_pages: int
