"""Tests for monthly reports and the health endpoint."""

import pytest
from httpx import AsyncClient


async def _mark(client: AsyncClient, staff_id: int, day: str, status: str = "present", at: str = "07:00"):
    resp = await client.post("/api/v1/attendance", json={
        "staff_id": staff_id, "date": day, "status": status, "time": at,
    })
    assert resp.status_code == 200, resp.text


@pytest.mark.asyncio
async def test_health_check(async_client: AsyncClient):
    """GET /health should report database connectivity."""
    resp = await async_client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"db": True}


@pytest.mark.asyncio
async def test_monthly_report_roster(async_client: AsyncClient, configured: dict, staff_id: int):
    """Every active staff member is listed, including those without rows."""
    idle = (await async_client.post("/api/v1/staff", json={"first_name": "Zoya"})).json()["id"]

    # Full day on the 1st, half day on the 2nd, paid leave on the 4th
    await _mark(async_client, staff_id, "2024-04-01", at="06:30")
    await _mark(async_client, staff_id, "2024-04-01", at="18:30")
    await _mark(async_client, staff_id, "2024-04-02", at="06:30")
    await async_client.post("/api/v1/attendance/leave", json={
        "staff_id": staff_id, "start_date": "2024-04-04", "end_date": "2024-04-04",
        "leave_type": "paid", "reason": "Doctor",
    })

    resp = await async_client.get("/api/v1/reports/monthly/2024/4")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_days"] == 30

    by_id = {s["staff_id"]: s for s in data["staff"]}
    assert set(by_id) == {staff_id, idle}

    mine = by_id[staff_id]
    assert mine["first_name"] == "Priya"
    assert (mine["present_days"], mine["half_days"], mine["paid_leave_days"]) == (1, 1, 1)
    assert mine["total_working_days"] == 30
    assert mine["attendance_percentage"] == pytest.approx(2.5 / 30 * 100)

    assert by_id[idle]["present_days"] == 0
    assert by_id[idle]["attendance_percentage"] == 0.0


@pytest.mark.asyncio
async def test_monthly_report_keeps_deactivated_staff_with_rows(async_client: AsyncClient, configured: dict, staff_id: int):
    gone = (await async_client.post("/api/v1/staff", json={"first_name": "Vikram"})).json()["id"]
    await _mark(async_client, gone, "2024-04-03")
    await async_client.delete(f"/api/v1/staff/{gone}")
    never = (await async_client.post("/api/v1/staff", json={"first_name": "Neha"})).json()["id"]
    await async_client.delete(f"/api/v1/staff/{never}")

    data = (await async_client.get("/api/v1/reports/monthly/2024/4")).json()
    ids = {s["staff_id"] for s in data["staff"]}
    assert gone in ids
    assert never not in ids
    assert staff_id in ids


@pytest.mark.asyncio
async def test_staff_monthly_report(async_client: AsyncClient, configured: dict, staff_id: int):
    await _mark(async_client, staff_id, "2024-02-29", status="absent")
    resp = await async_client.get(f"/api/v1/reports/monthly/2024/2/staff/{staff_id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_days"] == 29
    assert data["absent_days"] == 1
    assert data["attendance_percentage"] == 0.0


@pytest.mark.asyncio
async def test_monthly_report_is_stable(async_client: AsyncClient, configured: dict, staff_id: int):
    await _mark(async_client, staff_id, "2024-04-05")
    first = (await async_client.get("/api/v1/reports/monthly/2024/4")).json()
    second = (await async_client.get("/api/v1/reports/monthly/2024/4")).json()
    assert first == second


@pytest.mark.asyncio
async def test_monthly_report_invalid_month(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/reports/monthly/2024/13")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_staff_monthly_report_not_found(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/reports/monthly/2024/4/staff/9999")
    assert resp.status_code == 404
