"""Store adapter: lookups and conditional (compare-and-set) writes.

Every status change in the services goes through one of the ``cas_*``
methods below. Each issues a single ``UPDATE ... WHERE <expected prior
state>`` and reports whether exactly one row matched. A ``False`` result
means another writer changed the row first; callers surface that as a
conflict and never retry the identical write.
"""
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Optional, Sequence
import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from shiftboard.exceptions import ResourceNotFoundError
from shiftboard.models.shift import Shift, ShiftStatus
from shiftboard.models.assignment import (
    ShiftAssignment,
    AssignmentStatus,
    ACTIVE_ASSIGNMENT_STATUSES,
)
from shiftboard.models.claim import ShiftClaim, ClaimStatus, ACTIVE_CLAIM_STATUSES
from shiftboard.models.swap import SwapRequest, SwapStatus


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Current time as naive UTC, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ShiftStore:
    """Thin persistence adapter over a SQLAlchemy session."""

    def __init__(self, db: Session):
        """
        Initialize store.

        Args:
            db: Database session
        """
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Commit on success, roll back and re-raise on any error."""
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def add(self, obj) -> None:
        """Stage a new row and flush so constraint violations surface here."""
        self.db.add(obj)
        self.db.flush()

    # Lookups

    def get_shift(self, shift_id: str) -> Shift:
        shift = self.db.get(Shift, shift_id)
        if shift is None:
            raise ResourceNotFoundError("shift", shift_id)
        return shift

    def get_assignment(self, assignment_id: str) -> ShiftAssignment:
        assignment = self.db.get(ShiftAssignment, assignment_id)
        if assignment is None:
            raise ResourceNotFoundError("assignment", assignment_id)
        return assignment

    def get_claim(self, claim_id: str) -> ShiftClaim:
        claim = self.db.get(ShiftClaim, claim_id)
        if claim is None:
            raise ResourceNotFoundError("claim", claim_id)
        return claim

    def get_swap(self, swap_id: str) -> SwapRequest:
        swap = self.db.get(SwapRequest, swap_id)
        if swap is None:
            raise ResourceNotFoundError("swap request", swap_id)
        return swap

    def list_shifts(
        self,
        status: Optional[ShiftStatus] = None,
        location_id: Optional[str] = None
    ) -> List[Shift]:
        query = select(Shift)
        if status is not None:
            query = query.where(Shift.status == status)
        if location_id is not None:
            query = query.where(Shift.location_id == location_id)
        return list(self.db.scalars(query.order_by(Shift.start_time.asc())))

    def active_assignments(self, shift_id: str) -> List[ShiftAssignment]:
        """Pending and accepted assignments for a shift, overdue ones included."""
        query = select(ShiftAssignment).where(
            ShiftAssignment.shift_id == shift_id,
            ShiftAssignment.assignment_status.in_(ACTIVE_ASSIGNMENT_STATUSES)
        )
        return list(self.db.scalars(query))

    def assignments_for_shift(self, shift_id: str) -> List[ShiftAssignment]:
        query = select(ShiftAssignment).where(ShiftAssignment.shift_id == shift_id)
        return list(self.db.scalars(query.order_by(ShiftAssignment.created_at.asc())))

    def assignments_for_user(
        self,
        user_id: str,
        statuses: Optional[Sequence[AssignmentStatus]] = None
    ) -> List[ShiftAssignment]:
        query = select(ShiftAssignment).where(ShiftAssignment.user_id == user_id)
        if statuses:
            query = query.where(ShiftAssignment.assignment_status.in_(statuses))
        return list(self.db.scalars(query.order_by(ShiftAssignment.created_at.desc())))

    def overdue_assignments(self, now: datetime) -> List[ShiftAssignment]:
        query = select(ShiftAssignment).where(
            ShiftAssignment.assignment_status == AssignmentStatus.PENDING,
            ShiftAssignment.acceptance_deadline.is_not(None),
            ShiftAssignment.acceptance_deadline < now
        )
        return list(self.db.scalars(query))

    def accepted_assignment_for(self, shift_id: str, user_id: str) -> Optional[ShiftAssignment]:
        query = select(ShiftAssignment).where(
            ShiftAssignment.shift_id == shift_id,
            ShiftAssignment.user_id == user_id,
            ShiftAssignment.assignment_status == AssignmentStatus.ACCEPTED
        )
        return self.db.scalars(query).first()

    def active_assignment_for(self, shift_id: str, user_id: str) -> Optional[ShiftAssignment]:
        query = select(ShiftAssignment).where(
            ShiftAssignment.shift_id == shift_id,
            ShiftAssignment.active_key == user_id
        )
        return self.db.scalars(query).first()

    def count_accepted(self, shift_id: str) -> int:
        query = select(func.count()).select_from(ShiftAssignment).where(
            ShiftAssignment.shift_id == shift_id,
            ShiftAssignment.assignment_status == AssignmentStatus.ACCEPTED
        )
        return self.db.scalar(query) or 0

    def claims_for_shift(self, shift_id: str, status: Optional[ClaimStatus] = None) -> List[ShiftClaim]:
        query = select(ShiftClaim).where(ShiftClaim.shift_id == shift_id)
        if status is not None:
            query = query.where(ShiftClaim.status == status)
        return list(self.db.scalars(query.order_by(ShiftClaim.created_at.asc())))

    def claims_for_user(self, user_id: str) -> List[ShiftClaim]:
        query = select(ShiftClaim).where(ShiftClaim.user_id == user_id)
        return list(self.db.scalars(query.order_by(ShiftClaim.created_at.desc())))

    def active_claim_for(self, shift_id: str, user_id: str) -> Optional[ShiftClaim]:
        query = select(ShiftClaim).where(
            ShiftClaim.shift_id == shift_id,
            ShiftClaim.active_key == user_id
        )
        return self.db.scalars(query).first()

    def list_swaps(self, status: Optional[SwapStatus] = None, user_id: Optional[str] = None) -> List[SwapRequest]:
        query = select(SwapRequest)
        if status is not None:
            query = query.where(SwapRequest.status == status)
        if user_id is not None:
            query = query.where(
                (SwapRequest.requesting_user_id == user_id) | (SwapRequest.target_user_id == user_id)
            )
        return list(self.db.scalars(query.order_by(SwapRequest.created_at.desc())))

    # Conditional writes

    def _apply(self, statement) -> bool:
        result = self.db.execute(statement.execution_options(synchronize_session=False))
        matched = result.rowcount == 1
        # Loaded instances are stale after a bulk write
        self.db.expire_all()
        return matched

    def cas_shift(
        self,
        shift_id: str,
        expected_version: int,
        expected_statuses: Optional[Iterable[ShiftStatus]] = None,
        **values
    ) -> bool:
        """Bump the shift version (and apply ``values``) if nobody else wrote since ``expected_version``."""
        statement = update(Shift).where(Shift.id == shift_id, Shift.version == expected_version)
        if expected_statuses is not None:
            statement = statement.where(Shift.status.in_(list(expected_statuses)))
        values.setdefault("updated_at", utcnow())
        return self._apply(statement.values(version=Shift.version + 1, **values))

    def cas_assignment(
        self,
        assignment_id: str,
        expected_status: AssignmentStatus,
        new_status: AssignmentStatus,
        **values
    ) -> bool:
        statement = update(ShiftAssignment).where(
            ShiftAssignment.id == assignment_id,
            ShiftAssignment.assignment_status == expected_status
        )
        if new_status not in ACTIVE_ASSIGNMENT_STATUSES:
            values["active_key"] = None
        values.setdefault("updated_at", utcnow())
        return self._apply(statement.values(assignment_status=new_status, **values))

    def cas_claim(
        self,
        claim_id: str,
        expected_status: ClaimStatus,
        new_status: ClaimStatus,
        **values
    ) -> bool:
        statement = update(ShiftClaim).where(
            ShiftClaim.id == claim_id,
            ShiftClaim.status == expected_status
        )
        if new_status not in ACTIVE_CLAIM_STATUSES:
            values["active_key"] = None
        values.setdefault("updated_at", utcnow())
        return self._apply(statement.values(status=new_status, **values))

    def cas_swap(
        self,
        swap_id: str,
        expected_status: SwapStatus,
        new_status: SwapStatus,
        **values
    ) -> bool:
        statement = update(SwapRequest).where(
            SwapRequest.id == swap_id,
            SwapRequest.status == expected_status
        )
        values.setdefault("updated_at", utcnow())
        return self._apply(statement.values(status=new_status, **values))

    def cas_delete_shift(self, shift_id: str, expected_version: int) -> bool:
        """
        Delete a shift and its claims and assignments if its version is still ``expected_version``.

        Children are removed explicitly for databases that do not enforce
        ON DELETE CASCADE.
        """
        if not self._apply(delete(Shift).where(Shift.id == shift_id, Shift.version == expected_version)):
            return False
        for model in (ShiftAssignment, ShiftClaim):
            self.db.execute(
                delete(model).where(model.shift_id == shift_id).execution_options(synchronize_session=False)
            )
        return True

    def cancel_pending_for_shift(self, shift_id: str, now: datetime) -> List[str]:
        """Cancel every pending claim and assignment of a shift. Returns the touched ids."""
        pending_claims = self.claims_for_shift(shift_id, ClaimStatus.PENDING)
        pending_assignments = [
            a for a in self.active_assignments(shift_id)
            if a.assignment_status == AssignmentStatus.PENDING
        ]
        touched = []
        for claim in pending_claims:
            if self.cas_claim(claim.id, ClaimStatus.PENDING, ClaimStatus.CANCELLED, updated_at=now):
                touched.append(claim.id)
        for assignment in pending_assignments:
            if self.cas_assignment(
                assignment.id, AssignmentStatus.PENDING, AssignmentStatus.CANCELLED, updated_at=now
            ):
                touched.append(assignment.id)
        return touched
