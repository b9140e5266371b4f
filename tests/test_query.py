"""Tests for the request list: scoping, filters, sorting and pagination."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest

from leave_ledger.models.enums import Role
from leave_ledger.models.profile import Profile
from leave_ledger.schemas.request import Pagination, RequestFilters, RequestSort, RequestSortField
from leave_ledger.services.query import list_requests, scoped_employee_id
from tests.conftest import (
    COWORKER_ID,
    EMPLOYEE_ID,
    MANAGER_ID,
    OTHER_ORG_ID,
    OUTSIDER_ID,
    YEAR,
    caller,
    headers,
    seed_balance,
)

if TYPE_CHECKING:
    import uuid

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

REQUESTS_URL = "/leave/requests"


async def _submit(
    client: AsyncClient, user_id: uuid.UUID, start: str, end: str, leave_type: str = "vacation"
) -> dict[str, Any]:
    resp = await client.post(
        REQUESTS_URL,
        json={"leave_type": leave_type, "start_date": start, "end_date": end},
        headers=headers(user_id),
    )
    assert resp.status_code == 201, resp.text
    result: dict[str, Any] = resp.json()
    return result


@pytest.fixture
async def requests(async_client: AsyncClient, db_session: AsyncSession) -> dict[str, dict[str, Any]]:
    """Four requests across two employees, one approved and one rejected."""
    for employee_id in (EMPLOYEE_ID, COWORKER_ID):
        for leave_type in ("vacation", "sick"):
            await seed_balance(db_session, employee_id=employee_id, leave_type=leave_type, entitled_days=20)

    created = {
        "alice_march": await _submit(async_client, EMPLOYEE_ID, f"{YEAR}-03-02", f"{YEAR}-03-04"),
        "alice_sick": await _submit(async_client, EMPLOYEE_ID, f"{YEAR}-06-10", f"{YEAR}-06-10", "sick"),
        "bob_april": await _submit(async_client, COWORKER_ID, f"{YEAR}-04-06", f"{YEAR}-04-10"),
        "bob_july": await _submit(async_client, COWORKER_ID, f"{YEAR}-07-01", f"{YEAR}-07-02"),
    }
    resp = await async_client.post(
        f"{REQUESTS_URL}/{created['alice_march']['id']}/approve", headers=headers(MANAGER_ID)
    )
    assert resp.status_code == 200
    resp = await async_client.post(f"{REQUESTS_URL}/{created['bob_july']['id']}/reject", headers=headers(MANAGER_ID))
    assert resp.status_code == 200
    return created


async def _list(client: AsyncClient, user_id: uuid.UUID = MANAGER_ID, **params: Any) -> dict[str, Any]:
    resp = await client.get(REQUESTS_URL, params=params, headers=headers(user_id))
    assert resp.status_code == 200, resp.text
    result: dict[str, Any] = resp.json()
    return result


def _ids(page: dict[str, Any]) -> list[str]:
    return [row["id"] for row in page["rows"]]


# ---------------------------------------------------------------------------
# Scoping
# ---------------------------------------------------------------------------


def test_scoped_employee_id() -> None:
    employee = caller(EMPLOYEE_ID, Role.EMPLOYEE)
    manager = caller(MANAGER_ID, Role.MANAGER)

    assert scoped_employee_id(employee, None) == EMPLOYEE_ID
    assert scoped_employee_id(employee, COWORKER_ID) == EMPLOYEE_ID
    assert scoped_employee_id(manager, None) is None
    assert scoped_employee_id(manager, COWORKER_ID) == COWORKER_ID


async def test_employee_sees_only_own_requests(
    async_client: AsyncClient, requests: dict[str, dict[str, Any]]
) -> None:
    page = await _list(async_client, EMPLOYEE_ID)
    assert page["total"] == 2
    assert {row["employee_id"] for row in page["rows"]} == {str(EMPLOYEE_ID)}


async def test_employee_filter_for_coworker_is_ignored(
    async_client: AsyncClient, requests: dict[str, dict[str, Any]]
) -> None:
    page = await _list(async_client, EMPLOYEE_ID, employee_id=str(COWORKER_ID))
    assert page["total"] == 2
    assert {row["employee_id"] for row in page["rows"]} == {str(EMPLOYEE_ID)}


async def test_manager_sees_organization(async_client: AsyncClient, requests: dict[str, dict[str, Any]]) -> None:
    page = await _list(async_client)
    assert page["total"] == 4


async def test_other_organization_sees_nothing(async_client: AsyncClient, requests: dict[str, dict[str, Any]]) -> None:
    page = await _list(async_client, OUTSIDER_ID)
    assert page["total"] == 0
    assert page["rows"] == []
    assert page["total_pages"] == 0


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


async def test_filter_by_employee(async_client: AsyncClient, requests: dict[str, dict[str, Any]]) -> None:
    page = await _list(async_client, employee_id=str(COWORKER_ID))
    assert sorted(_ids(page)) == sorted([requests["bob_april"]["id"], requests["bob_july"]["id"]])


async def test_filter_by_status(async_client: AsyncClient, requests: dict[str, dict[str, Any]]) -> None:
    approved = await _list(async_client, status="approved")
    assert _ids(approved) == [requests["alice_march"]["id"]]

    pending = await _list(async_client, status="pending")
    assert sorted(_ids(pending)) == sorted([requests["alice_sick"]["id"], requests["bob_april"]["id"]])


async def test_filter_by_leave_type(async_client: AsyncClient, requests: dict[str, dict[str, Any]]) -> None:
    page = await _list(async_client, leave_type="sick")
    assert _ids(page) == [requests["alice_sick"]["id"]]


async def test_date_range_selects_overlapping_requests(
    async_client: AsyncClient, requests: dict[str, dict[str, Any]]
) -> None:
    # Touches the last day of the March request and the first days of April's.
    page = await _list(async_client, date_from=f"{YEAR}-03-04", date_to=f"{YEAR}-04-06")
    assert sorted(_ids(page)) == sorted([requests["alice_march"]["id"], requests["bob_april"]["id"]])


async def test_date_from_only(async_client: AsyncClient, requests: dict[str, dict[str, Any]]) -> None:
    page = await _list(async_client, date_from=f"{YEAR}-06-11")
    assert _ids(page) == [requests["bob_july"]["id"]]


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------


async def test_default_sort_is_newest_first(async_client: AsyncClient, requests: dict[str, dict[str, Any]]) -> None:
    page = await _list(async_client)
    assert _ids(page) == [
        requests["bob_july"]["id"],
        requests["bob_april"]["id"],
        requests["alice_sick"]["id"],
        requests["alice_march"]["id"],
    ]


async def test_sort_by_start_date_ascending(async_client: AsyncClient, requests: dict[str, dict[str, Any]]) -> None:
    page = await _list(async_client, sort="start_date", order="asc")
    assert [row["start_date"] for row in page["rows"]] == [
        f"{YEAR}-03-02",
        f"{YEAR}-04-06",
        f"{YEAR}-06-10",
        f"{YEAR}-07-01",
    ]


async def test_sort_by_total_days_descending(async_client: AsyncClient, requests: dict[str, dict[str, Any]]) -> None:
    page = await _list(async_client, sort="total_days", order="desc")
    assert [Decimal(row["total_days"]) for row in page["rows"]] == [Decimal(5), Decimal(3), Decimal(2), Decimal(1)]


async def test_sort_by_display_name_falls_back_to_legal_name(
    async_client: AsyncClient, requests: dict[str, dict[str, Any]]
) -> None:
    page = await _list(async_client, sort="display_name", order="asc")
    names = [row["display_name"] for row in page["rows"]]
    assert names == ["Alice Johnson", "Alice Johnson", "Bobby", "Bobby"]
    assert page["rows"][2]["legal_name"] == "Bob Smith"
    assert page["rows"][2]["employee_code"] == "ST-102"


async def test_blank_display_name_sorts_as_legal_name(
    async_client: AsyncClient, db_session: AsyncSession, requests: dict[str, dict[str, Any]]
) -> None:
    coworker = await db_session.get(Profile, COWORKER_ID)
    assert coworker is not None
    coworker.display_name = ""
    await db_session.commit()

    page = await _list(async_client, sort="display_name", order="asc")

    assert [row["display_name"] for row in page["rows"]] == [
        "Alice Johnson",
        "Alice Johnson",
        "Bob Smith",
        "Bob Smith",
    ]


async def test_sort_by_legal_name_descending(async_client: AsyncClient, requests: dict[str, dict[str, Any]]) -> None:
    page = await _list(async_client, sort="legal_name", order="desc")
    assert [row["legal_name"] for row in page["rows"]] == ["Bob Smith", "Bob Smith", "Alice Johnson", "Alice Johnson"]


async def test_unknown_sort_field_rejected(async_client: AsyncClient) -> None:
    resp = await async_client.get(REQUESTS_URL, params={"sort": "salary"}, headers=headers(MANAGER_ID))
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


async def test_pagination(async_client: AsyncClient, requests: dict[str, dict[str, Any]]) -> None:
    first = await _list(async_client, sort="start_date", order="asc", page=1, page_size=3)
    second = await _list(async_client, sort="start_date", order="asc", page=2, page_size=3)

    assert first["total"] == 4
    assert first["total_pages"] == 2
    assert len(first["rows"]) == 3
    assert _ids(second) == [requests["bob_july"]["id"]]
    assert set(_ids(first)).isdisjoint(_ids(second))


async def test_page_past_the_end_is_empty(async_client: AsyncClient, requests: dict[str, dict[str, Any]]) -> None:
    page = await _list(async_client, page=5, page_size=20)
    assert page["rows"] == []
    assert page["total"] == 4
    assert page["total_pages"] == 1


@pytest.mark.parametrize("params", [{"page": 0}, {"page_size": 0}, {"page_size": 101}])
async def test_invalid_pagination_rejected(async_client: AsyncClient, params: dict[str, int]) -> None:
    resp = await async_client.get(REQUESTS_URL, params=params, headers=headers(MANAGER_ID))
    assert resp.status_code == 400


async def test_service_defaults(db_session: AsyncSession, requests: dict[str, dict[str, Any]]) -> None:
    page = await list_requests(db_session, caller(MANAGER_ID, Role.MANAGER))
    assert page.total == 4
    assert page.page == 1
    assert page.page_size == 20

    page = await list_requests(
        db_session,
        caller(EMPLOYEE_ID, Role.EMPLOYEE),
        RequestFilters(leave_type="sick"),
        RequestSort(field=RequestSortField.START_DATE, order="asc"),
        Pagination(page=1, page_size=1),
    )
    assert page.total == 1
    assert page.rows[0].total_days == Decimal(1)

    other = await list_requests(db_session, caller(OUTSIDER_ID, Role.OWNER, OTHER_ORG_ID))
    assert other.total == 0
