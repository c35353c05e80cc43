"""Swap request model for shift exchanges between two people."""
from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime
from typing import Dict, FrozenSet
import enum

from shiftboard.database import Base, enum_column_type
from shiftboard.models.shift import check_transition_table


class SwapType(str, enum.Enum):
    """Swap type enumeration."""
    OPEN = "open"
    TARGETED = "targeted"


class SwapStatus(str, enum.Enum):
    """Swap request status enumeration."""
    PROPOSED = "proposed"
    TARGET_ACCEPTED = "target_accepted"
    TARGET_DECLINED = "target_declined"
    APPROVED = "approved"
    DENIED = "denied"
    CANCELLED = "cancelled"


class SwapDecision(str, enum.Enum):
    """Target's answer to a swap proposal."""
    ACCEPT = "accept"
    DECLINE = "decline"


SWAP_TRANSITIONS: Dict[SwapStatus, FrozenSet[SwapStatus]] = {
    SwapStatus.PROPOSED: frozenset({
        SwapStatus.TARGET_ACCEPTED,
        SwapStatus.TARGET_DECLINED,
        SwapStatus.CANCELLED,
    }),
    SwapStatus.TARGET_ACCEPTED: frozenset({SwapStatus.APPROVED, SwapStatus.DENIED, SwapStatus.CANCELLED}),
    SwapStatus.TARGET_DECLINED: frozenset(),
    SwapStatus.APPROVED: frozenset(),
    SwapStatus.DENIED: frozenset(),
    SwapStatus.CANCELLED: frozenset(),
}

check_transition_table(SWAP_TRANSITIONS, SwapStatus)


class SwapRequest(Base):
    """Swap request model.

    Shifts and users are referenced by identifier only; they are resolved
    through the store when the request is acted on.
    """

    __tablename__ = "swap_requests"

    id = Column(String(36), primary_key=True)
    requesting_user_id = Column(String(36), nullable=False, index=True)
    original_shift_id = Column(String(36), nullable=False, index=True)
    target_user_id = Column(String(36), nullable=True, index=True)
    target_shift_id = Column(String(36), nullable=True)
    swap_type = Column(enum_column_type(SwapType), nullable=False)
    status = Column(enum_column_type(SwapStatus), nullable=False, default=SwapStatus.PROPOSED, index=True)
    notes = Column(Text, nullable=True)
    response_notes = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    approved_by = Column(String(36), nullable=True)
    approval_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return (
            f"<SwapRequest(id={self.id}, original_shift_id={self.original_shift_id}, "
            f"target_shift_id={self.target_shift_id}, status={self.status})>"
        )

    @property
    def is_open(self) -> bool:
        return self.swap_type == SwapType.OPEN

    @property
    def is_give_away(self) -> bool:
        return self.target_shift_id is None
