"""Tests for the attendance settings endpoints and the missing-settings guard."""

import pytest
from httpx import AsyncClient

from gym_attendance.db import repository


@pytest.mark.asyncio
async def test_get_settings_before_configured_is_409(async_client: AsyncClient):
    """Settings are never silently defaulted."""
    resp = await async_client.get("/api/v1/settings/attendance")
    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "settings_not_configured"
    assert body["success"] is False


@pytest.mark.asyncio
async def test_marking_blocked_until_configured(async_client: AsyncClient, staff_id: int):
    resp = await async_client.post("/api/v1/attendance", json={
        "staff_id": staff_id, "date": "2024-03-11", "status": "present", "time": "07:00",
    })
    assert resp.status_code == 409
    assert resp.json()["code"] == "settings_not_configured"


@pytest.mark.asyncio
async def test_put_then_get_settings(async_client: AsyncClient):
    body = {
        "morning_slot": {"start": "05:30", "end": "10:00", "half_day_limit": "07:45"},
        "evening_slot": {"start": "17:00", "end": "21:30", "half_day_limit": "18:45"},
        "allowed_buffer": 10,
        "working_days": ["Saturday", "monday", "tuesday"],
        "max_paid_leave_per_month": None,
        "max_paid_leave_per_year": 18,
    }
    resp = await async_client.put("/api/v1/settings/attendance", json=body)
    assert resp.status_code == 200, resp.text

    resp = await async_client.get("/api/v1/settings/attendance")
    assert resp.status_code == 200
    data = resp.json()
    assert data["morning_slot"] == {"start": "05:30", "end": "10:00", "half_day_limit": "07:45"}
    assert data["allowed_buffer"] == 10
    assert data["working_days"] == ["monday", "tuesday", "saturday"]
    assert data["max_paid_leave_per_month"] is None
    assert data["max_paid_leave_per_year"] == 18


@pytest.mark.asyncio
async def test_put_replaces_previous_settings(async_client: AsyncClient, configured: dict):
    updated = dict(configured, allowed_buffer=0)
    resp = await async_client.put("/api/v1/settings/attendance", json=updated)
    assert resp.status_code == 200
    resp = await async_client.get("/api/v1/settings/attendance")
    assert resp.json()["allowed_buffer"] == 0


@pytest.mark.asyncio
async def test_put_rejects_unordered_slot(async_client: AsyncClient, configured: dict):
    bad = dict(configured, morning_slot={"start": "09:00", "end": "11:00", "half_day_limit": "08:30"})
    resp = await async_client.put("/api/v1/settings/attendance", json=bad)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_put_rejects_unknown_weekday(async_client: AsyncClient, configured: dict):
    bad = dict(configured, working_days=["monday", "someday"])
    resp = await async_client.put("/api/v1/settings/attendance", json=bad)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_defaults_fallback_when_enabled(async_client: AsyncClient, monkeypatch):
    """The built-in defaults are stored only when the fallback is switched on."""
    monkeypatch.setattr(repository.app_settings, "ATTENDANCE_DEFAULTS_FALLBACK", True)
    resp = await async_client.get("/api/v1/settings/attendance")
    assert resp.status_code == 200
    assert resp.json()["morning_slot"]["half_day_limit"] == "08:30"

    monkeypatch.setattr(repository.app_settings, "ATTENDANCE_DEFAULTS_FALLBACK", False)
    resp = await async_client.get("/api/v1/settings/attendance")
    assert resp.status_code == 200
