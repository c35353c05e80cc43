"""Shift model for schedulable units of work."""
from sqlalchemy import Column, String, Integer, Text, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from typing import Dict, FrozenSet
import enum

from shiftboard.database import Base, enum_column_type


class ShiftStatus(str, enum.Enum):
    """Shift status enumeration."""
    OPEN = "open"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Edges a manager may take with a direct status change.
SHIFT_TRANSITIONS: Dict[ShiftStatus, FrozenSet[ShiftStatus]] = {
    ShiftStatus.OPEN: frozenset({ShiftStatus.ASSIGNED, ShiftStatus.CANCELLED}),
    ShiftStatus.ASSIGNED: frozenset({ShiftStatus.COMPLETED, ShiftStatus.CANCELLED}),
    ShiftStatus.COMPLETED: frozenset(),
    ShiftStatus.CANCELLED: frozenset(),
}

# Edges taken automatically as accepted headcount fills up or frees up.
SHIFT_SETTLEMENT_TRANSITIONS: Dict[ShiftStatus, FrozenSet[ShiftStatus]] = {
    ShiftStatus.OPEN: frozenset({ShiftStatus.ASSIGNED}),
    ShiftStatus.ASSIGNED: frozenset({ShiftStatus.OPEN}),
    ShiftStatus.COMPLETED: frozenset(),
    ShiftStatus.CANCELLED: frozenset(),
}

TERMINAL_SHIFT_STATUSES = frozenset(s for s, targets in SHIFT_TRANSITIONS.items() if not targets)


def check_transition_table(table: Dict, enum_cls) -> None:
    """Fail at import time if a status table misses any enum member."""
    missing = set(enum_cls) - set(table)
    if missing:
        raise RuntimeError(f"{enum_cls.__name__} transition table missing {sorted(m.value for m in missing)}")
    for current, targets in table.items():
        if not targets <= set(enum_cls):
            raise RuntimeError(f"{enum_cls.__name__} transition table has foreign targets for {current.value}")


check_transition_table(SHIFT_TRANSITIONS, ShiftStatus)
check_transition_table(SHIFT_SETTLEMENT_TRANSITIONS, ShiftStatus)


def can_transition_shift(current: ShiftStatus, target: ShiftStatus) -> bool:
    """Return True if the shift status graph has an edge current -> target."""
    return target in SHIFT_TRANSITIONS[current]


def can_settle_shift(current: ShiftStatus, target: ShiftStatus) -> bool:
    """Return True if a headcount change may move the shift current -> target."""
    return target in SHIFT_SETTLEMENT_TRANSITIONS[current]


class Shift(Base):
    """Shift model representing a schedulable unit of work with a headcount."""

    __tablename__ = "shifts"

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location_id = Column(String(36), nullable=False, index=True)
    team_id = Column(String(36), nullable=True, index=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    min_duration_minutes = Column(Integer, nullable=True)
    max_duration_minutes = Column(Integer, nullable=True)
    max_people = Column(Integer, nullable=False, default=1)
    status = Column(enum_column_type(ShiftStatus), nullable=False, default=ShiftStatus.OPEN, index=True)
    # Bumped by every write; conditional updates compare against it
    version = Column(Integer, nullable=False, default=1)
    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_shift_end_after_start"),
        CheckConstraint("max_people >= 1", name="ck_shift_max_people"),
    )

    # Relationships
    assignments = relationship(
        "ShiftAssignment",
        back_populates="shift",
        cascade="all, delete-orphan",
        order_by="ShiftAssignment.created_at"
    )
    claims = relationship(
        "ShiftClaim",
        back_populates="shift",
        cascade="all, delete-orphan",
        order_by="ShiftClaim.created_at"
    )

    def __repr__(self) -> str:
        return f"<Shift(id={self.id}, title={self.title}, status={self.status}, version={self.version})>"

    def validate(self) -> None:
        """Validate shift data."""
        if not self.id:
            raise ValueError("Shift ID is required")
        if not self.title:
            raise ValueError("Title is required")
        if not self.location_id:
            raise ValueError("Location ID is required")
        if not self.start_time or not self.end_time:
            raise ValueError("Start and end time are required")
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        if self.max_people is not None and self.max_people < 1:
            raise ValueError("max_people must be at least 1")

        span_minutes = (self.end_time - self.start_time).total_seconds() / 60
        if self.min_duration_minutes is not None and self.min_duration_minutes < 0:
            raise ValueError("min_duration_minutes cannot be negative")
        if self.max_duration_minutes is not None and self.max_duration_minutes > span_minutes:
            raise ValueError("max_duration_minutes cannot exceed the shift length")
        if (
            self.min_duration_minutes is not None
            and self.max_duration_minutes is not None
            and self.min_duration_minutes > self.max_duration_minutes
        ):
            raise ValueError("min_duration_minutes cannot exceed max_duration_minutes")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_SHIFT_STATUSES
