"""HTTP API routers."""
from shiftboard.api.shifts import router as shifts_router
from shiftboard.api.assignments import router as assignments_router
from shiftboard.api.claims import router as claims_router
from shiftboard.api.swaps import router as swaps_router

__all__ = [
    "shifts_router",
    "assignments_router",
    "claims_router",
    "swaps_router",
]
