"""Claim arbitration for open shifts.

Any number of employees may hold a pending claim on the same open shift.
Approval is the exclusivity point: it succeeds only while the claim is
still pending and the shift still has a free headcount slot, and the slot
is taken through a conditional write on the shift version. Losing that
race is reported as a conflict.
"""
from datetime import datetime
from typing import Callable, List, Optional
import logging
import uuid

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shiftboard.config import settings
from shiftboard.exceptions import (
    ConflictError,
    DuplicateClaimError,
    ForbiddenError,
    InvalidStateError,
    MissingFieldError,
)
from shiftboard.models.shift import ShiftStatus
from shiftboard.models.claim import ShiftClaim, ClaimStatus
from shiftboard.services.activity import ActivityLogger, EventBuffer
from shiftboard.services.lifecycle_service import ShiftLifecycleService
from shiftboard.services.store import ShiftStore, utcnow


logger = logging.getLogger(__name__)


class ClaimArbiter:
    """Service for creating and deciding shift claims."""

    def __init__(
        self,
        db: Session,
        now_fn: Callable[[], datetime] = utcnow,
        activity_logger: Optional[ActivityLogger] = None,
        lifecycle: Optional[ShiftLifecycleService] = None
    ):
        """
        Initialize claim arbiter.

        Args:
            db: Database session
            now_fn: Clock returning naive UTC datetimes
            activity_logger: Sink for activity events
            lifecycle: Lifecycle service used to fill the slot on approval
        """
        self.db = db
        self.store = ShiftStore(db)
        self.now_fn = now_fn
        self.activity_logger = activity_logger or ActivityLogger()
        self.lifecycle = lifecycle or ShiftLifecycleService(
            db, now_fn=now_fn, activity_logger=self.activity_logger
        )

    def _cutoff_for(self, start_time: datetime) -> datetime:
        return start_time - relativedelta(hours=settings.claim_cutoff_hours)

    def claim(self, shift_id: str, user_id: str) -> ShiftClaim:
        """
        Create a pending claim on an open shift.

        Args:
            shift_id: ID of the shift
            user_id: ID of the claimant

        Returns:
            The new pending claim

        Raises:
            ResourceNotFoundError: If the shift does not exist
            InvalidStateError: If the shift is not open, is too close to its
                start, has no free slot, or already has the claimant assigned
            DuplicateClaimError: If the claimant already holds an active claim
        """
        if not user_id:
            raise MissingFieldError("user_id")

        self.lifecycle.expire_overdue_on_shift(shift_id)
        now = self.now_fn()
        buffer = EventBuffer(user_id, now)
        with self.store.transaction():
            shift = self.store.get_shift(shift_id)
            if shift.status != ShiftStatus.OPEN:
                raise InvalidStateError("shift", shift.status.value, "claim")
            if now >= self._cutoff_for(shift.start_time):
                raise InvalidStateError(
                    "shift",
                    shift.status.value,
                    "claim",
                    reason=f"claims close {settings.claim_cutoff_hours} hour(s) before the shift starts"
                )
            if self.store.active_claim_for(shift_id, user_id) is not None:
                raise DuplicateClaimError(shift_id, user_id)
            if self.store.active_assignment_for(shift_id, user_id) is not None:
                raise InvalidStateError(
                    "shift", shift.status.value, "claim", reason="you are already assigned to this shift"
                )

            snapshot = self.lifecycle.slot_snapshot(shift, buffer)
            if snapshot.free_slots <= 0:
                raise InvalidStateError(
                    "shift", snapshot.status.value, "claim", reason="no free headcount slot"
                )

            claim = ShiftClaim(
                id=str(uuid.uuid4()),
                shift_id=shift_id,
                user_id=user_id,
                status=ClaimStatus.PENDING,
                active_key=user_id,
                created_at=now,
                updated_at=now
            )
            try:
                self.store.add(claim)
            except IntegrityError:
                raise DuplicateClaimError(shift_id, user_id)
            buffer.record("claim", claim.id, "claimed", None, ClaimStatus.PENDING, shift_id=shift_id)
            claim_id = claim.id

        logger.info(f"Claim {claim_id} created on shift {shift_id} by {user_id}")
        self.activity_logger.emit_all(buffer.events)
        return self.store.get_claim(claim_id)

    def approve(self, claim_id: str, approver_id: str, notes: Optional[str] = None) -> ShiftClaim:
        """
        Approve a pending claim and give the claimant an accepted assignment.

        Other pending claims on the shift are left untouched.

        Raises:
            ResourceNotFoundError: If the claim does not exist
            InvalidStateError: If the claim is not pending or the shift is closed
            ConflictError: If the slot or the claim was taken by a concurrent writer
        """
        claim = self.store.get_claim(claim_id)
        if claim.status != ClaimStatus.PENDING:
            raise InvalidStateError("claim", claim.status.value, "approve")

        shift_id = claim.shift_id
        user_id = claim.user_id
        self.lifecycle.expire_overdue_on_shift(shift_id)
        now = self.now_fn()
        buffer = EventBuffer(approver_id, now)
        with self.store.transaction():
            shift = self.store.get_shift(shift_id)
            if shift.status == ShiftStatus.ASSIGNED:
                raise ConflictError("shift", shift_id, "shift has no free slot")
            if shift.status != ShiftStatus.OPEN:
                raise InvalidStateError("shift", shift.status.value, "approve a claim for")

            snapshot = self.lifecycle.slot_snapshot(shift, buffer)
            if snapshot.free_slots <= 0:
                raise ConflictError("shift", shift_id, "shift has no free slot")
            if self.store.active_assignment_for(shift_id, user_id) is not None:
                raise ConflictError("shift", shift_id, f"user {user_id} is already assigned to this shift")

            if not self.store.cas_claim(
                claim_id,
                ClaimStatus.PENDING,
                ClaimStatus.APPROVED,
                approved_by=approver_id,
                approval_notes=notes,
                updated_at=now
            ):
                raise ConflictError("claim", claim_id, "claim is no longer pending")
            buffer.record("claim", claim_id, "approved", ClaimStatus.PENDING, ClaimStatus.APPROVED, shift_id=shift_id)

            self.lifecycle.seat(snapshot, user_id, approver_id, buffer, claim_id=claim_id)

        logger.info(f"Claim {claim_id} approved by {approver_id}")
        self.activity_logger.emit_all(buffer.events)
        return self.store.get_claim(claim_id)

    def reject(self, claim_id: str, approver_id: str, notes: Optional[str] = None) -> ShiftClaim:
        """
        Reject a pending claim.

        Raises:
            ResourceNotFoundError: If the claim does not exist
            InvalidStateError: If the claim is not pending
            ConflictError: If the claim changed concurrently
        """
        claim = self.store.get_claim(claim_id)
        if claim.status != ClaimStatus.PENDING:
            raise InvalidStateError("claim", claim.status.value, "reject")

        shift_id = claim.shift_id
        now = self.now_fn()
        buffer = EventBuffer(approver_id, now)
        with self.store.transaction():
            if not self.store.cas_claim(
                claim_id,
                ClaimStatus.PENDING,
                ClaimStatus.REJECTED,
                approved_by=approver_id,
                approval_notes=notes,
                updated_at=now
            ):
                raise ConflictError("claim", claim_id, "claim is no longer pending")
            buffer.record("claim", claim_id, "rejected", ClaimStatus.PENDING, ClaimStatus.REJECTED, shift_id=shift_id)

        logger.info(f"Claim {claim_id} rejected by {approver_id}")
        self.activity_logger.emit_all(buffer.events)
        return self.store.get_claim(claim_id)

    def cancel(self, claim_id: str, user_id: str) -> ShiftClaim:
        """
        Withdraw a pending claim. Only the claimant may do this.

        Raises:
            ResourceNotFoundError: If the claim does not exist
            ForbiddenError: If the caller is not the claimant
            InvalidStateError: If the claim is not pending
        """
        claim = self.store.get_claim(claim_id)
        if claim.user_id != user_id:
            raise ForbiddenError("cancel claim", "only the claimant can cancel a claim")
        if claim.status != ClaimStatus.PENDING:
            raise InvalidStateError("claim", claim.status.value, "cancel")

        shift_id = claim.shift_id
        now = self.now_fn()
        buffer = EventBuffer(user_id, now)
        with self.store.transaction():
            if not self.store.cas_claim(claim_id, ClaimStatus.PENDING, ClaimStatus.CANCELLED, updated_at=now):
                raise ConflictError("claim", claim_id, "claim is no longer pending")
            buffer.record("claim", claim_id, "cancelled", ClaimStatus.PENDING, ClaimStatus.CANCELLED, shift_id=shift_id)

        self.activity_logger.emit_all(buffer.events)
        return self.store.get_claim(claim_id)

    def get_claim(self, claim_id: str) -> ShiftClaim:
        return self.store.get_claim(claim_id)

    def list_claims(self, shift_id: str, status: Optional[ClaimStatus] = None) -> List[ShiftClaim]:
        self.store.get_shift(shift_id)
        return self.store.claims_for_shift(shift_id, status)

    def list_claims_for_user(self, user_id: str) -> List[ShiftClaim]:
        return self.store.claims_for_user(user_id)
