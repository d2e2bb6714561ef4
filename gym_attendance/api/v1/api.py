"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from gym_attendance.api.v1.endpoints import attendance, reports, settings, staff

api_router = APIRouter()

# Studio-wide attendance rules
api_router.include_router(settings.router)

# Staff roster
api_router.include_router(staff.router)

# Marking, leave, listing
api_router.include_router(attendance.router)

# Monthly reports, leave balances, health
api_router.include_router(reports.router)
