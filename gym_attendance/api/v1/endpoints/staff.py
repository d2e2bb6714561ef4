"""
Staff roster CRUD.

DELETE deactivates the staff member; their attendance history and leave
balances are kept for past monthly reports.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gym_attendance.api.v1.deps import get_db
from gym_attendance.models.staff import StaffMember
from gym_attendance.schemas.attendance import DeleteResponse
from gym_attendance.schemas.staff import StaffCreate, StaffRead, StaffUpdate

router = APIRouter(tags=["staff"])
logger = logging.getLogger(__name__)


async def _get_staff(db: AsyncSession, staff_id: int) -> StaffMember:
    result = await db.execute(
        select(StaffMember).where(StaffMember.id == staff_id, StaffMember.is_active.is_(True))
    )
    staff = result.scalar_one_or_none()
    if staff is None:
        raise HTTPException(status_code=404, detail="Staff member not found")
    return staff


async def _ensure_email_free(db: AsyncSession, email: str | None, staff_id: int | None = None) -> None:
    if email is None:
        return
    query = select(StaffMember).where(
        StaffMember.email == email, StaffMember.is_active.is_(True)
    )
    if staff_id is not None:
        query = query.where(StaffMember.id != staff_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail=f"Email '{email}' already registered")


@router.get("/staff", response_model=list[StaffRead])
async def list_staff(
    skip: int = 0,
    limit: int = Query(default=50, le=500),
    search: str | None = None,
    branch_id: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[StaffMember]:
    query = (
        select(StaffMember)
        .where(StaffMember.is_active.is_(True))
        .order_by(StaffMember.first_name, StaffMember.last_name)
        .offset(skip)
        .limit(limit)
    )
    if search:
        # Escape SQL LIKE metacharacters to prevent wildcard injection
        safe_search = search.replace("%", r"\%").replace("_", r"\_")
        pattern = f"%{safe_search}%"
        query = query.where(
            StaffMember.first_name.ilike(pattern, escape="\\")
            | StaffMember.last_name.ilike(pattern, escape="\\")
        )
    if branch_id:
        query = query.where(StaffMember.branch_id == branch_id)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("/staff", response_model=StaffRead, status_code=201)
async def create_staff(
    body: StaffCreate,
    db: AsyncSession = Depends(get_db),
) -> StaffMember:
    await _ensure_email_free(db, body.email)

    staff = StaffMember(**body.model_dump())
    db.add(staff)
    await db.commit()
    await db.refresh(staff)
    logger.info("Created staff member %d (%s)", staff.id, staff.full_name)
    return staff


@router.get("/staff/{staff_id}", response_model=StaffRead)
async def get_staff(
    staff_id: int,
    db: AsyncSession = Depends(get_db),
) -> StaffMember:
    return await _get_staff(db, staff_id)


@router.put("/staff/{staff_id}", response_model=StaffRead)
async def update_staff(
    staff_id: int,
    body: StaffUpdate,
    db: AsyncSession = Depends(get_db),
) -> StaffMember:
    staff = await _get_staff(db, staff_id)
    changes = body.model_dump(exclude_unset=True)
    if "email" in changes:
        await _ensure_email_free(db, changes["email"], staff_id)

    for field, value in changes.items():
        setattr(staff, field, value)

    await db.commit()
    await db.refresh(staff)
    logger.info("Updated staff member %d", staff_id)
    return staff


@router.delete("/staff/{staff_id}", response_model=DeleteResponse)
async def delete_staff(
    staff_id: int,
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    """Soft-delete (deactivate) a staff member. Attendance history is preserved."""
    staff = await _get_staff(db, staff_id)
    staff.is_active = False
    await db.commit()
    logger.info("Deactivated staff member %d (%s)", staff_id, staff.full_name)
    return DeleteResponse(success=True, message=f"Staff member '{staff.full_name}' deactivated")
