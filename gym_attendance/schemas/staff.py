"""Pydantic schemas for the staff roster."""

from __future__ import annotations

import re
from datetime import date, datetime

from pydantic import BaseModel, field_validator

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _clean_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name must not be empty")
    if len(v) > 100:
        raise ValueError("Name must not exceed 100 characters")
    return v


def _clean_email(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip().lower()
    if not _EMAIL_RE.match(v):
        raise ValueError("Invalid email address")
    return v


class StaffCreate(BaseModel):
    first_name: str
    last_name: str = ""
    email: str | None = None
    phone: str | None = None
    designation: str | None = None
    branch_id: str = "default"
    join_date: str | None = None  # YYYY-MM-DD
    notes: str | None = None

    @field_validator("first_name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return _clean_email(v)

    @field_validator("join_date")
    @classmethod
    def _join_date(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            return date.fromisoformat(v).isoformat()
        except ValueError:
            raise ValueError("join_date must be YYYY-MM-DD") from None


class StaffUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    designation: str | None = None
    branch_id: str | None = None
    notes: str | None = None

    @field_validator("first_name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return _clean_name(v) if v is not None else v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return _clean_email(v)


class StaffRead(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    designation: str | None
    branch_id: str
    join_date: str | None
    notes: str | None
    is_active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}
