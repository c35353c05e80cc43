"""Shift assignment model for manager-initiated offers."""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from typing import Dict, FrozenSet, Optional
import enum

from shiftboard.database import Base, enum_column_type
from shiftboard.models.shift import check_transition_table


class AssignmentStatus(str, enum.Enum):
    """Assignment status enumeration."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class AssignmentResponse(str, enum.Enum):
    """Assignee response enumeration."""
    ACCEPT = "accept"
    DECLINE = "decline"


ASSIGNMENT_TRANSITIONS: Dict[AssignmentStatus, FrozenSet[AssignmentStatus]] = {
    AssignmentStatus.PENDING: frozenset({
        AssignmentStatus.ACCEPTED,
        AssignmentStatus.DECLINED,
        AssignmentStatus.EXPIRED,
        AssignmentStatus.CANCELLED,
    }),
    AssignmentStatus.ACCEPTED: frozenset({AssignmentStatus.CANCELLED}),
    AssignmentStatus.DECLINED: frozenset(),
    AssignmentStatus.EXPIRED: frozenset(),
    AssignmentStatus.CANCELLED: frozenset(),
}

check_transition_table(ASSIGNMENT_TRANSITIONS, AssignmentStatus)

ACTIVE_ASSIGNMENT_STATUSES = (AssignmentStatus.PENDING, AssignmentStatus.ACCEPTED)


class ShiftAssignment(Base):
    """Assignment of a shift to a specific person, subject to acceptance."""

    __tablename__ = "shift_assignments"

    id = Column(String(36), primary_key=True)
    shift_id = Column(String(36), ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    assigned_by = Column(String(36), nullable=False)
    assignment_status = Column(
        enum_column_type(AssignmentStatus),
        nullable=False,
        default=AssignmentStatus.PENDING,
        index=True
    )
    acceptance_deadline = Column(DateTime, nullable=True, index=True)
    response = Column(enum_column_type(AssignmentResponse), nullable=True)
    response_notes = Column(Text, nullable=True)
    # Claim whose approval produced this assignment
    claim_id = Column(String(36), nullable=True)
    # Equals user_id while pending/accepted, NULL otherwise
    active_key = Column(String(36), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # One active assignment per shift per user
    __table_args__ = (
        UniqueConstraint('shift_id', 'active_key', name='uq_assignment_active_user'),
    )

    # Relationships
    shift = relationship("Shift", back_populates="assignments")

    def __repr__(self) -> str:
        return (
            f"<ShiftAssignment(id={self.id}, shift_id={self.shift_id}, "
            f"user_id={self.user_id}, status={self.assignment_status})>"
        )

    def is_overdue(self, now: datetime) -> bool:
        """True if still pending and the acceptance deadline has passed."""
        return (
            self.assignment_status == AssignmentStatus.PENDING
            and self.acceptance_deadline is not None
            and now > self.acceptance_deadline
        )

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """True if the assignment currently holds a headcount slot."""
        if self.assignment_status not in ACTIVE_ASSIGNMENT_STATUSES:
            return False
        return not (now is not None and self.is_overdue(now))
