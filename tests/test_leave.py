"""Tests for leave requests and paid-leave balance bookkeeping."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gym_attendance.api.v1.endpoints import attendance as attendance_endpoints
from gym_attendance.core.clock import local_today
from gym_attendance.models.attendance import AttendanceRecord


async def _leave(client: AsyncClient, staff_id: int, start: str, end: str, leave_type: str = "paid", reason: str = "Family wedding"):
    return await client.post("/api/v1/attendance/leave", json={
        "staff_id": staff_id,
        "start_date": start,
        "end_date": end,
        "leave_type": leave_type,
        "reason": reason,
    })


async def _balance(client: AsyncClient, staff_id: int, year: int = 2024) -> dict:
    resp = await client.get(f"/api/v1/leave-balance/{staff_id}/{year}")
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_paid_leave_charges_balance(async_client: AsyncClient, configured: dict, staff_id: int):
    resp = await _leave(async_client, staff_id, "2024-03-11", "2024-03-12")
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["days"] == 2
    assert [r["status"] for r in data["records"]] == ["paidLeave", "paidLeave"]
    assert data["records"][0]["leave_reason"] == "Family wedding"
    assert data["records"][0]["morning_slot"] is None
    assert data["balance"]["used_paid_leave"] == 2
    assert data["balance"]["remaining_paid_leave"] == 10

    assert (await _balance(async_client, staff_id))["remaining_paid_leave"] == 10


@pytest.mark.asyncio
async def test_balance_of_untouched_year_is_full(async_client: AsyncClient, configured: dict, staff_id: int):
    balance = await _balance(async_client, staff_id, 2023)
    assert balance == {
        "staff_id": staff_id,
        "year": 2023,
        "total_paid_leave": 12,
        "used_paid_leave": 0,
        "remaining_paid_leave": 12,
    }


@pytest.mark.asyncio
async def test_insufficient_balance_leaves_balance_unchanged(async_client: AsyncClient, configured: dict, staff_id: int):
    """Three paid days with two remaining is rejected; nothing is written."""
    settings = dict(configured, max_paid_leave_per_year=2, max_paid_leave_per_month=5)
    await async_client.put("/api/v1/settings/attendance", json=settings)

    resp = await _leave(async_client, staff_id, "2024-03-11", "2024-03-13")
    assert resp.status_code == 409
    assert resp.json()["code"] == "insufficient_leave_balance"

    balance = await _balance(async_client, staff_id)
    assert balance["used_paid_leave"] == 0
    assert balance["remaining_paid_leave"] == 2
    rows = (await async_client.get("/api/v1/attendance?start=2024-03-11&end=2024-03-13")).json()
    assert rows == []


@pytest.mark.asyncio
async def test_monthly_cap(async_client: AsyncClient, configured: dict, staff_id: int):
    resp = await _leave(async_client, staff_id, "2024-03-11", "2024-03-13")
    assert resp.status_code == 409
    assert resp.json()["code"] == "monthly_leave_cap_exceeded"
    assert (await _balance(async_client, staff_id))["used_paid_leave"] == 0


@pytest.mark.asyncio
async def test_non_working_days_not_charged(async_client: AsyncClient, configured: dict, staff_id: int):
    # Sat 16 .. Mon 18 March: Sunday is not a working day
    resp = await _leave(async_client, staff_id, "2024-03-16", "2024-03-18")
    assert resp.status_code == 200
    assert resp.json()["days"] == 2
    assert [r["date"] for r in resp.json()["records"]] == ["2024-03-16", "2024-03-18"]


@pytest.mark.asyncio
async def test_sunday_only_leave_rejected(async_client: AsyncClient, configured: dict, staff_id: int):
    resp = await _leave(async_client, staff_id, "2024-03-17", "2024-03-17")
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_date"


@pytest.mark.asyncio
async def test_unpaid_leave_ignores_balance(async_client: AsyncClient, configured: dict, staff_id: int):
    settings = dict(configured, max_paid_leave_per_year=0)
    await async_client.put("/api/v1/settings/attendance", json=settings)

    resp = await _leave(async_client, staff_id, "2024-03-11", "2024-03-15", leave_type="unpaid")
    assert resp.status_code == 200
    assert resp.json()["days"] == 5
    assert {r["status"] for r in resp.json()["records"]} == {"unpaidLeave"}
    assert resp.json()["balance"]["used_paid_leave"] == 0


@pytest.mark.asyncio
async def test_repeat_paid_leave_not_charged_twice(async_client: AsyncClient, configured: dict, staff_id: int):
    await _leave(async_client, staff_id, "2024-03-11", "2024-03-12")
    resp = await _leave(async_client, staff_id, "2024-03-12", "2024-03-13")
    assert resp.status_code == 200
    assert resp.json()["balance"]["used_paid_leave"] == 3


@pytest.mark.asyncio
async def test_unpaid_over_paid_refunds(async_client: AsyncClient, configured: dict, staff_id: int):
    await _leave(async_client, staff_id, "2024-03-11", "2024-03-12")
    resp = await _leave(async_client, staff_id, "2024-03-11", "2024-03-11", leave_type="unpaid")
    assert resp.status_code == 200
    assert resp.json()["balance"]["used_paid_leave"] == 1


@pytest.mark.asyncio
async def test_deleting_paid_leave_refunds(async_client: AsyncClient, configured: dict, staff_id: int):
    resp = await _leave(async_client, staff_id, "2024-03-11", "2024-03-12")
    att_id = resp.json()["records"][0]["id"]

    assert (await async_client.delete(f"/api/v1/attendance/{att_id}")).status_code == 200
    assert (await _balance(async_client, staff_id))["used_paid_leave"] == 1


@pytest.mark.asyncio
async def test_marking_over_paid_leave_refunds(async_client: AsyncClient, configured: dict, staff_id: int):
    await _leave(async_client, staff_id, "2024-03-11", "2024-03-11")
    resp = await async_client.post("/api/v1/attendance", json={
        "staff_id": staff_id, "date": "2024-03-11", "status": "present", "time": "18:00",
    })
    assert resp.status_code == 200
    assert resp.json()["attendance"]["status"] == "halfDay"
    assert resp.json()["attendance"]["leave_reason"] is None
    assert (await _balance(async_client, staff_id))["used_paid_leave"] == 0


@pytest.mark.asyncio
async def test_leave_request_validation(async_client: AsyncClient, configured: dict, staff_id: int):
    assert (await _leave(async_client, staff_id, "2024-03-11", "2024-03-11", reason="  ")).status_code == 422
    assert (await _leave(async_client, staff_id, "2024-03-12", "2024-03-11")).status_code == 422
    assert (await _leave(async_client, staff_id, "2023-12-30", "2024-01-02")).status_code == 422
    assert (await _leave(async_client, 9999, "2024-03-11", "2024-03-11")).status_code == 404


@pytest.mark.asyncio
async def test_future_leave_rejected(async_client: AsyncClient, configured: dict, staff_id: int):
    day = local_today() + timedelta(days=10)
    resp = await _leave(async_client, staff_id, day.isoformat(), day.isoformat(), leave_type="unpaid")
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_date"


@pytest.mark.asyncio
async def test_leave_retries_after_insert_race(
    async_client: AsyncClient, db_session: AsyncSession, configured: dict, staff_id: int, monkeypatch
):
    """A leave write that loses an insert race is replayed once; the balance is charged once."""
    real_upsert = attendance_endpoints.upsert_attendance
    calls = {"n": 0}

    async def _upsert(db, daily):
        calls["n"] += 1
        if calls["n"] == 1:
            raise IntegrityError("INSERT INTO attendance", {}, Exception("UNIQUE constraint failed"))
        return await real_upsert(db, daily)

    monkeypatch.setattr(attendance_endpoints, "upsert_attendance", _upsert)

    resp = await _leave(async_client, staff_id, "2024-03-11", "2024-03-12")
    assert resp.status_code == 200, resp.text
    assert resp.json()["balance"]["used_paid_leave"] == 2

    result = await db_session.execute(
        select(AttendanceRecord).where(AttendanceRecord.staff_id == staff_id)
    )
    assert sorted(r.date for r in result.scalars().all()) == ["2024-03-11", "2024-03-12"]
    assert (await _balance(async_client, staff_id))["used_paid_leave"] == 2
