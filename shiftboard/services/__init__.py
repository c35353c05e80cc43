"""Business logic services package."""
from shiftboard.services.store import ShiftStore, utcnow
from shiftboard.services.activity import ActivityEvent, ActivityLogger, EventBuffer
from shiftboard.services.lifecycle_service import ShiftLifecycleService
from shiftboard.services.claim_service import ClaimArbiter
from shiftboard.services.swap_service import SwapWorkflow
from shiftboard.services.rate_limiter import (
    RateLimiter,
    RateLimitDecision,
    AdmissionController,
    build_rate_limiter,
)

__all__ = [
    "ShiftStore",
    "utcnow",
    "ActivityEvent",
    "ActivityLogger",
    "EventBuffer",
    "ShiftLifecycleService",
    "ClaimArbiter",
    "SwapWorkflow",
    "RateLimiter",
    "RateLimitDecision",
    "AdmissionController",
    "build_rate_limiter",
]
