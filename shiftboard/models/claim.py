"""Shift claim model for employee bids on open shifts."""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from typing import Dict, FrozenSet
import enum

from shiftboard.database import Base, enum_column_type
from shiftboard.models.shift import check_transition_table


class ClaimStatus(str, enum.Enum):
    """Claim status enumeration."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# Approved -> Cancelled happens only when the assignment it produced is unassigned
CLAIM_TRANSITIONS: Dict[ClaimStatus, FrozenSet[ClaimStatus]] = {
    ClaimStatus.PENDING: frozenset({ClaimStatus.APPROVED, ClaimStatus.REJECTED, ClaimStatus.CANCELLED}),
    ClaimStatus.APPROVED: frozenset({ClaimStatus.CANCELLED}),
    ClaimStatus.REJECTED: frozenset(),
    ClaimStatus.CANCELLED: frozenset(),
}

check_transition_table(CLAIM_TRANSITIONS, ClaimStatus)

ACTIVE_CLAIM_STATUSES = (ClaimStatus.PENDING, ClaimStatus.APPROVED)


class ShiftClaim(Base):
    """Claim model representing an employee's bid to take an open shift."""

    __tablename__ = "shift_claims"

    id = Column(String(36), primary_key=True)
    shift_id = Column(String(36), ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    status = Column(enum_column_type(ClaimStatus), nullable=False, default=ClaimStatus.PENDING, index=True)
    approved_by = Column(String(36), nullable=True)
    approval_notes = Column(Text, nullable=True)
    # Equals user_id while pending/approved, NULL otherwise
    active_key = Column(String(36), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # One active claim per shift per user
    __table_args__ = (
        UniqueConstraint('shift_id', 'active_key', name='uq_claim_active_user'),
    )

    # Relationships
    shift = relationship("Shift", back_populates="claims")

    def __repr__(self) -> str:
        return f"<ShiftClaim(id={self.id}, shift_id={self.shift_id}, user_id={self.user_id}, status={self.status})>"
