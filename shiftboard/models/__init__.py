"""Database models package."""
from shiftboard.models.shift import (
    Shift,
    ShiftStatus,
    SHIFT_TRANSITIONS,
    SHIFT_SETTLEMENT_TRANSITIONS,
    TERMINAL_SHIFT_STATUSES,
    can_settle_shift,
    can_transition_shift,
)
from shiftboard.models.claim import ShiftClaim, ClaimStatus, CLAIM_TRANSITIONS
from shiftboard.models.assignment import (
    ShiftAssignment,
    AssignmentStatus,
    AssignmentResponse,
    ASSIGNMENT_TRANSITIONS,
)
from shiftboard.models.swap import SwapRequest, SwapStatus, SwapType, SwapDecision, SWAP_TRANSITIONS

__all__ = [
    "Shift",
    "ShiftStatus",
    "SHIFT_TRANSITIONS",
    "SHIFT_SETTLEMENT_TRANSITIONS",
    "TERMINAL_SHIFT_STATUSES",
    "can_settle_shift",
    "can_transition_shift",
    "ShiftClaim",
    "ClaimStatus",
    "CLAIM_TRANSITIONS",
    "ShiftAssignment",
    "AssignmentStatus",
    "AssignmentResponse",
    "ASSIGNMENT_TRANSITIONS",
    "SwapRequest",
    "SwapStatus",
    "SwapType",
    "SwapDecision",
    "SWAP_TRANSITIONS",
]
