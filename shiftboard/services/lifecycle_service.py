"""Shift lifecycle service: shift status, assignments and responses.

The shift status graph is ``open -> assigned -> completed`` with
``cancelled`` reachable from ``open`` and ``assigned``. Assignments are
offers that hold a headcount slot while pending or accepted; a shift turns
``assigned`` once its accepted assignments fill ``max_people`` and falls
back to ``open`` when a slot frees up. That reversion is a headcount
settlement only; a manager cannot take it with a direct status change.

Acceptance deadlines are checked lazily: any read or transition touching a
pending assignment first moves it to ``expired`` if its deadline passed.
"""
from datetime import datetime
from typing import Callable, List, NamedTuple, Optional
import logging
import uuid

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shiftboard.config import settings
from shiftboard.exceptions import (
    AlreadyRespondedError,
    AssignmentExpiredError,
    ConflictError,
    DuplicateAssignmentError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    InvalidTransitionError,
    MissingFieldError,
    ResourceNotFoundError,
    ShiftNotAssignableError,
)
from shiftboard.models.shift import (
    Shift,
    ShiftStatus,
    TERMINAL_SHIFT_STATUSES,
    can_settle_shift,
    can_transition_shift,
)
from shiftboard.models.assignment import (
    ShiftAssignment,
    AssignmentStatus,
    AssignmentResponse,
    ACTIVE_ASSIGNMENT_STATUSES,
)
from shiftboard.models.claim import ClaimStatus
from shiftboard.services.activity import ActivityLogger, EventBuffer
from shiftboard.services.store import ShiftStore, utcnow


logger = logging.getLogger(__name__)

WORKABLE_SHIFT_STATUSES = (ShiftStatus.OPEN, ShiftStatus.ASSIGNED)


class ShiftSnapshot(NamedTuple):
    """Shift state observed before a conditional write."""
    id: str
    version: int
    status: ShiftStatus
    max_people: int
    free_slots: int


class SeatTransfer(NamedTuple):
    """A verified move of one accepted seat from one user to another."""
    shift: ShiftSnapshot
    assignment_id: str
    from_user_id: str
    to_user_id: str
    # Claim that produced the outgoing seat, cancelled with it
    claim_id: Optional[str] = None


class ShiftLifecycleService:
    """Service owning shift status and assignment transitions."""

    def __init__(
        self,
        db: Session,
        now_fn: Callable[[], datetime] = utcnow,
        activity_logger: Optional[ActivityLogger] = None,
        require_acceptance: Optional[bool] = None
    ):
        """
        Initialize lifecycle service.

        Args:
            db: Database session
            now_fn: Clock returning naive UTC datetimes
            activity_logger: Sink for activity events
            require_acceptance: Default assignment policy; falls back to settings
        """
        self.db = db
        self.store = ShiftStore(db)
        self.now_fn = now_fn
        self.activity_logger = activity_logger or ActivityLogger()
        if require_acceptance is None:
            require_acceptance = settings.assignment_requires_acceptance
        self.require_acceptance = require_acceptance

    # Shifts

    def create_shift(
        self,
        title: str,
        location_id: str,
        start_time: datetime,
        end_time: datetime,
        created_by: str,
        description: Optional[str] = None,
        team_id: Optional[str] = None,
        min_duration_minutes: Optional[int] = None,
        max_duration_minutes: Optional[int] = None,
        max_people: int = 1
    ) -> Shift:
        """
        Create a new open shift.

        Raises:
            MissingFieldError: If the creator is missing
            InvalidArgumentError: If times, durations or headcount are inconsistent
        """
        if not created_by:
            raise MissingFieldError("created_by")

        now = self.now_fn()
        shift = Shift(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            location_id=location_id,
            team_id=team_id,
            start_time=start_time,
            end_time=end_time,
            min_duration_minutes=min_duration_minutes,
            max_duration_minutes=max_duration_minutes,
            max_people=max_people,
            status=ShiftStatus.OPEN,
            version=1,
            created_by=created_by,
            created_at=now,
            updated_at=now
        )
        try:
            shift.validate()
        except ValueError as e:
            raise InvalidArgumentError(str(e), details={"field": "shift"})

        buffer = EventBuffer(created_by, now)
        with self.store.transaction():
            self.store.add(shift)
            buffer.record("shift", shift.id, "created", None, ShiftStatus.OPEN, title=title)

        logger.info(f"Shift {shift.id} created by {created_by}")
        self.activity_logger.emit_all(buffer.events)
        return shift

    def get_shift(self, shift_id: str) -> Shift:
        return self.store.get_shift(shift_id)

    def list_shifts(self, status: Optional[ShiftStatus] = None, location_id: Optional[str] = None) -> List[Shift]:
        return self.store.list_shifts(status=status, location_id=location_id)

    def delete_shift(self, shift_id: str, actor_id: str) -> None:
        """
        Delete a shift together with its claims and assignments.

        Raises:
            ResourceNotFoundError: If the shift does not exist
            InvalidStateError: If accepted assignments or approved claims exist
            ConflictError: If the shift changed after it was checked
        """
        shift = self.store.get_shift(shift_id)
        previous = shift.status
        version = shift.version

        buffer = EventBuffer(actor_id, self.now_fn())
        with self.store.transaction():
            accepted = self.store.count_accepted(shift_id)
            approved = len(self.store.claims_for_shift(shift_id, ClaimStatus.APPROVED))
            if accepted or approved:
                raise InvalidStateError(
                    "shift",
                    previous.value,
                    "delete",
                    reason=f"{accepted} accepted assignment(s) and {approved} approved claim(s) exist"
                )
            # Accepting or approving bumps the version, so a fill after the check cannot be deleted
            if not self.store.cas_delete_shift(shift_id, version):
                raise ConflictError("shift", shift_id, "shift changed while deleting")
            buffer.record("shift", shift_id, "deleted", previous, None)

        logger.info(f"Shift {shift_id} deleted by {actor_id}")
        self.activity_logger.emit_all(buffer.events)

    def update_status(self, shift_id: str, target, actor_id: str) -> Shift:
        """
        Move a shift along one edge of the status graph (manager override).

        Moving a shift to a terminal status also cancels its pending claims
        and assignments.

        Raises:
            ResourceNotFoundError: If the shift does not exist
            InvalidTransitionError: If the edge is not in the graph
            ConflictError: If the shift changed concurrently
        """
        target = parse_enum(ShiftStatus, target, "status")
        now = self.now_fn()
        shift = self.store.get_shift(shift_id)
        current = shift.status
        version = shift.version

        if not can_transition_shift(current, target):
            raise InvalidTransitionError("shift", current.value, target.value)

        buffer = EventBuffer(actor_id, now)
        with self.store.transaction():
            if not self.store.cas_shift(shift_id, version, [current], status=target, updated_at=now):
                raise ConflictError("shift", shift_id, "shift changed while updating its status")
            buffer.record("shift", shift_id, "status_changed", current, target)

            if target in TERMINAL_SHIFT_STATUSES:
                touched = self.store.cancel_pending_for_shift(shift_id, now)
                if touched:
                    buffer.record("shift", shift_id, "pending_work_cancelled", cancelled_ids=touched)

        logger.info(f"Shift {shift_id} status {current.value} -> {target.value} by {actor_id}")
        self.activity_logger.emit_all(buffer.events)
        return self.store.get_shift(shift_id)

    # Headcount

    def slot_snapshot(self, shift: Shift, buffer: EventBuffer) -> ShiftSnapshot:
        """Observe free headcount slots and the version they were counted at."""
        snapshot_version = shift.version
        status = shift.status
        max_people = shift.max_people
        active = 0
        for assignment in self.store.active_assignments(shift.id):
            if assignment.is_overdue(buffer.now):
                self._expire(assignment, buffer)
            else:
                active += 1
        return ShiftSnapshot(shift.id, snapshot_version, status, max_people, max(max_people - active, 0))

    def free_slots(self, shift_id: str) -> int:
        shift = self.store.get_shift(shift_id)
        buffer = EventBuffer(None, self.now_fn())
        with self.store.transaction():
            snapshot = self.slot_snapshot(shift, buffer)
        self.activity_logger.emit_all(buffer.events)
        return snapshot.free_slots

    def _settle_shift(self, snapshot: ShiftSnapshot, buffer: EventBuffer, reason: str) -> ShiftStatus:
        """Bump the shift version and align its status with the accepted headcount."""
        accepted = self.store.count_accepted(snapshot.id)
        target = snapshot.status
        if snapshot.status == ShiftStatus.OPEN and accepted >= snapshot.max_people:
            target = ShiftStatus.ASSIGNED
        elif snapshot.status == ShiftStatus.ASSIGNED and accepted < snapshot.max_people:
            target = ShiftStatus.OPEN
        if target != snapshot.status and not can_settle_shift(snapshot.status, target):
            raise InvalidTransitionError("shift", snapshot.status.value, target.value)

        if not self.store.cas_shift(snapshot.id, snapshot.version, [snapshot.status], status=target, updated_at=buffer.now):
            raise ConflictError("shift", snapshot.id, reason)
        if target != snapshot.status:
            buffer.record("shift", snapshot.id, "status_changed", snapshot.status, target, accepted=accepted)
        return target

    def seat(
        self,
        snapshot: ShiftSnapshot,
        user_id: str,
        assigner_id: str,
        buffer: EventBuffer,
        claim_id: Optional[str] = None
    ) -> ShiftAssignment:
        """Place an accepted assignment into a free slot observed in ``snapshot``."""
        assignment = ShiftAssignment(
            id=str(uuid.uuid4()),
            shift_id=snapshot.id,
            user_id=user_id,
            assigned_by=assigner_id,
            assignment_status=AssignmentStatus.ACCEPTED,
            response=AssignmentResponse.ACCEPT,
            claim_id=claim_id,
            active_key=user_id,
            created_at=buffer.now,
            updated_at=buffer.now
        )
        try:
            self.store.add(assignment)
        except IntegrityError:
            raise ConflictError("shift", snapshot.id, "user already holds an active assignment for this shift")
        buffer.record(
            "assignment", assignment.id, "assigned", None, AssignmentStatus.ACCEPTED,
            shift_id=snapshot.id, user_id=user_id, claim_id=claim_id
        )
        self._settle_shift(snapshot, buffer, "shift changed while filling a slot")
        return assignment

    # Assignments

    def assign(
        self,
        shift_id: str,
        user_id: str,
        assigner_id: str,
        deadline: Optional[datetime] = None,
        require_acceptance: Optional[bool] = None
    ) -> ShiftAssignment:
        """
        Offer a shift to a user, or assign it outright under the direct policy.

        Args:
            shift_id: ID of the shift
            user_id: ID of the assignee
            assigner_id: ID of the manager assigning
            deadline: Optional acceptance deadline (response-required policy only)
            require_acceptance: Per-call override of the assignment policy

        Returns:
            The new assignment, pending or accepted

        Raises:
            ShiftNotAssignableError: If the shift is not open or has no spare headcount
            DuplicateAssignmentError: If the user already holds an active assignment
            ConflictError: If the shift changed concurrently
        """
        if not user_id:
            raise MissingFieldError("user_id")
        if not assigner_id:
            raise MissingFieldError("assigner_id")

        if require_acceptance is None:
            require_acceptance = self.require_acceptance
        now = self.now_fn()
        if require_acceptance and deadline is None and settings.default_acceptance_hours:
            deadline = now + relativedelta(hours=settings.default_acceptance_hours)

        self.expire_overdue_on_shift(shift_id)
        buffer = EventBuffer(assigner_id, now)
        with self.store.transaction():
            shift = self.store.get_shift(shift_id)
            if shift.status not in WORKABLE_SHIFT_STATUSES:
                raise ShiftNotAssignableError("shift", shift.status.value, "assign")

            snapshot = self.slot_snapshot(shift, buffer)
            if snapshot.free_slots <= 0:
                raise ShiftNotAssignableError(
                    "shift", snapshot.status.value, "assign", reason="no free headcount slot"
                )
            if self.store.active_assignment_for(shift_id, user_id) is not None:
                raise DuplicateAssignmentError(shift_id, user_id)

            if not require_acceptance:
                assignment = self.seat(snapshot, user_id, assigner_id, buffer)
            else:
                assignment = ShiftAssignment(
                    id=str(uuid.uuid4()),
                    shift_id=shift_id,
                    user_id=user_id,
                    assigned_by=assigner_id,
                    assignment_status=AssignmentStatus.PENDING,
                    acceptance_deadline=deadline,
                    active_key=user_id,
                    created_at=now,
                    updated_at=now
                )
                try:
                    self.store.add(assignment)
                except IntegrityError:
                    raise DuplicateAssignmentError(shift_id, user_id)
                buffer.record(
                    "assignment", assignment.id, "assigned", None, AssignmentStatus.PENDING,
                    shift_id=shift_id, user_id=user_id
                )
                # Pending offers hold a slot, so concurrent fills must serialize on the version
                self._settle_shift(snapshot, buffer, "shift changed while assigning")
            assignment_id = assignment.id

        logger.info(f"Shift {shift_id} assigned to {user_id} by {assigner_id} (acceptance required: {require_acceptance})")
        self.activity_logger.emit_all(buffer.events)
        return self.store.get_assignment(assignment_id)

    def _expire(self, assignment: ShiftAssignment, buffer: EventBuffer) -> bool:
        assignment_id = assignment.id
        shift_id = assignment.shift_id
        if self.store.cas_assignment(
            assignment_id, AssignmentStatus.PENDING, AssignmentStatus.EXPIRED, updated_at=buffer.now
        ):
            buffer.record(
                "assignment", assignment_id, "expired", AssignmentStatus.PENDING, AssignmentStatus.EXPIRED,
                shift_id=shift_id
            )
            return True
        return False

    def _resolve_expiry(self, assignment: ShiftAssignment) -> ShiftAssignment:
        now = self.now_fn()
        if not assignment.is_overdue(now):
            return assignment

        assignment_id = assignment.id
        buffer = EventBuffer(None, now)
        with self.store.transaction():
            self._expire(assignment, buffer)
        self.activity_logger.emit_all(buffer.events)
        return self.store.get_assignment(assignment_id)

    def expire_overdue_on_shift(self, shift_id: str) -> int:
        """
        Persist expiry of a shift's overdue offers in a transaction of their own.

        Run before a write that may be refused, so the expiry survives that
        write's rollback. Returns how many assignments expired.
        """
        now = self.now_fn()
        overdue = [a for a in self.store.active_assignments(shift_id) if a.is_overdue(now)]
        if not overdue:
            return 0
        buffer = EventBuffer(None, now)
        with self.store.transaction():
            for assignment in overdue:
                self._expire(assignment, buffer)
        self.activity_logger.emit_all(buffer.events)
        return len(buffer.events)

    def get_assignment(self, assignment_id: str) -> ShiftAssignment:
        """Fetch an assignment, persisting expiry first if its deadline passed."""
        return self._resolve_expiry(self.store.get_assignment(assignment_id))

    def list_assignments(self, shift_id: str) -> List[ShiftAssignment]:
        self.store.get_shift(shift_id)
        return [self._resolve_expiry(a) for a in self.store.assignments_for_shift(shift_id)]

    def list_assignments_for_user(self, user_id: str, pending_only: bool = False) -> List[ShiftAssignment]:
        statuses = [AssignmentStatus.PENDING] if pending_only else None
        resolved = [self._resolve_expiry(a) for a in self.store.assignments_for_user(user_id, statuses)]
        if pending_only:
            return [a for a in resolved if a.assignment_status == AssignmentStatus.PENDING]
        return resolved

    def respond(
        self,
        assignment_id: str,
        response,
        responder_id: Optional[str] = None,
        notes: Optional[str] = None
    ) -> ShiftAssignment:
        """
        Accept or decline a pending assignment.

        Raises:
            ResourceNotFoundError: If the assignment does not exist
            ForbiddenError: If the responder is not the assignee
            AlreadyRespondedError: If a response was already recorded
            AssignmentExpiredError: If the acceptance deadline passed
            InvalidStateError: If the assignment was cancelled
            ConflictError: If the assignment or shift changed concurrently
        """
        response = parse_enum(AssignmentResponse, response, "response")
        now = self.now_fn()
        assignment = self.store.get_assignment(assignment_id)

        if responder_id is not None and assignment.user_id != responder_id:
            raise ForbiddenError("respond to assignment", "assignment belongs to another user")
        if assignment.response is not None:
            raise AlreadyRespondedError(assignment_id, assignment.response.value)

        deadline = assignment.acceptance_deadline
        if assignment.is_overdue(now):
            self._resolve_expiry(assignment)
            raise AssignmentExpiredError(assignment_id, deadline)
        if assignment.assignment_status == AssignmentStatus.EXPIRED:
            raise AssignmentExpiredError(assignment_id, deadline)
        if assignment.assignment_status != AssignmentStatus.PENDING:
            raise InvalidStateError("assignment", assignment.assignment_status.value, "respond to")

        accept = response == AssignmentResponse.ACCEPT
        new_status = AssignmentStatus.ACCEPTED if accept else AssignmentStatus.DECLINED
        buffer = EventBuffer(responder_id or assignment.user_id, now)
        with self.store.transaction():
            shift = self.store.get_shift(assignment.shift_id)
            if accept and shift.status not in WORKABLE_SHIFT_STATUSES:
                raise InvalidStateError("shift", shift.status.value, "accept an assignment for")
            snapshot = ShiftSnapshot(shift.id, shift.version, shift.status, shift.max_people, 0)

            if not self.store.cas_assignment(
                assignment_id,
                AssignmentStatus.PENDING,
                new_status,
                response=response,
                response_notes=notes,
                updated_at=now
            ):
                raise ConflictError("assignment", assignment_id, "assignment changed while responding")
            buffer.record(
                "assignment", assignment_id, "accepted" if accept else "declined",
                AssignmentStatus.PENDING, new_status, shift_id=snapshot.id
            )
            if snapshot.status in WORKABLE_SHIFT_STATUSES:
                self._settle_shift(snapshot, buffer, "shift changed while responding")

        logger.info(f"Assignment {assignment_id} {new_status.value}")
        self.activity_logger.emit_all(buffer.events)
        return self.store.get_assignment(assignment_id)

    def unassign(
        self,
        shift_id: str,
        actor_id: str,
        assignment_id: Optional[str] = None,
        user_id: Optional[str] = None
    ) -> ShiftAssignment:
        """
        Cancel a pending or accepted assignment; the shift reopens if a slot frees up.

        An assignment produced by claim approval also cancels that claim.

        Raises:
            MissingFieldError: If neither assignment nor user is given
            ResourceNotFoundError: If no matching assignment exists on the shift
            InvalidStateError: If the assignment is no longer active
            ConflictError: If the assignment or shift changed concurrently
        """
        if assignment_id is None and user_id is None:
            raise MissingFieldError("assignment_id")

        self.store.get_shift(shift_id)
        if assignment_id is not None:
            assignment = self.store.get_assignment(assignment_id)
            if assignment.shift_id != shift_id:
                raise ResourceNotFoundError("assignment", assignment_id)
        else:
            assignment = self.store.active_assignment_for(shift_id, user_id)
            if assignment is None:
                history = [a for a in self.store.assignments_for_shift(shift_id) if a.user_id == user_id]
                if not history:
                    raise ResourceNotFoundError("assignment", f"{shift_id}/{user_id}")
                assignment = history[-1]

        assignment = self._resolve_expiry(assignment)
        previous = assignment.assignment_status
        if previous not in ACTIVE_ASSIGNMENT_STATUSES:
            raise InvalidStateError("assignment", previous.value, "unassign")

        assignment_id = assignment.id
        claim_id = assignment.claim_id
        now = self.now_fn()
        buffer = EventBuffer(actor_id, now)
        with self.store.transaction():
            shift = self.store.get_shift(shift_id)
            if shift.status not in WORKABLE_SHIFT_STATUSES:
                raise InvalidStateError("shift", shift.status.value, "unassign from")
            snapshot = ShiftSnapshot(shift.id, shift.version, shift.status, shift.max_people, 0)

            if not self.store.cas_assignment(assignment_id, previous, AssignmentStatus.CANCELLED, updated_at=now):
                raise ConflictError("assignment", assignment_id, "assignment changed while unassigning")
            buffer.record(
                "assignment", assignment_id, "unassigned", previous, AssignmentStatus.CANCELLED, shift_id=shift_id
            )
            if claim_id and self.store.cas_claim(claim_id, ClaimStatus.APPROVED, ClaimStatus.CANCELLED, updated_at=now):
                buffer.record("claim", claim_id, "cancelled", ClaimStatus.APPROVED, ClaimStatus.CANCELLED, shift_id=shift_id)
            self._settle_shift(snapshot, buffer, "shift changed while unassigning")

        logger.info(f"Assignment {assignment_id} on shift {shift_id} cancelled by {actor_id}")
        self.activity_logger.emit_all(buffer.events)
        return self.store.get_assignment(assignment_id)

    def expire_overdue_assignments(self) -> int:
        """Expire every pending assignment past its deadline. Returns how many changed."""
        buffer = EventBuffer(None, self.now_fn())
        with self.store.transaction():
            for assignment in self.store.overdue_assignments(buffer.now):
                self._expire(assignment, buffer)
        self.activity_logger.emit_all(buffer.events)
        return len(buffer.events)

    # Seat transfers (swaps)

    def plan_transfer(self, shift_id: str, from_user_id: str, to_user_id: str) -> SeatTransfer:
        """
        Verify that a shift seat can move between two users without writing anything.

        Raises:
            ConflictError: If the shift is gone, no longer workable, not held by
                ``from_user_id``, or already held by ``to_user_id``
        """
        shift = self.db.get(Shift, shift_id)
        if shift is None:
            raise ConflictError("shift", shift_id, "shift no longer exists")
        if shift.status not in WORKABLE_SHIFT_STATUSES:
            raise ConflictError("shift", shift_id, f"shift is {shift.status.value}")
        holding = self.store.accepted_assignment_for(shift_id, from_user_id)
        if holding is None:
            raise ConflictError("shift", shift_id, f"user {from_user_id} no longer holds this shift")
        if self.store.active_assignment_for(shift_id, to_user_id) is not None:
            raise ConflictError("shift", shift_id, f"user {to_user_id} is already assigned to this shift")
        snapshot = ShiftSnapshot(shift.id, shift.version, shift.status, shift.max_people, 0)
        return SeatTransfer(snapshot, holding.id, from_user_id, to_user_id, holding.claim_id)

    def apply_transfer(self, transfer: SeatTransfer, actor_id: str, buffer: EventBuffer) -> ShiftAssignment:
        """Write a planned transfer; must run inside the caller's transaction."""
        shift_id = transfer.shift.id
        if not self.store.cas_assignment(
            transfer.assignment_id, AssignmentStatus.ACCEPTED, AssignmentStatus.CANCELLED, updated_at=buffer.now
        ):
            raise ConflictError("assignment", transfer.assignment_id, "assignment changed during swap")
        buffer.record(
            "assignment", transfer.assignment_id, "unassigned", AssignmentStatus.ACCEPTED, AssignmentStatus.CANCELLED,
            shift_id=shift_id, reason="swap"
        )
        if transfer.claim_id and self.store.cas_claim(
            transfer.claim_id, ClaimStatus.APPROVED, ClaimStatus.CANCELLED, updated_at=buffer.now
        ):
            buffer.record(
                "claim", transfer.claim_id, "cancelled", ClaimStatus.APPROVED, ClaimStatus.CANCELLED,
                shift_id=shift_id, reason="swap"
            )

        assignment = ShiftAssignment(
            id=str(uuid.uuid4()),
            shift_id=shift_id,
            user_id=transfer.to_user_id,
            assigned_by=actor_id,
            assignment_status=AssignmentStatus.ACCEPTED,
            response=AssignmentResponse.ACCEPT,
            active_key=transfer.to_user_id,
            created_at=buffer.now,
            updated_at=buffer.now
        )
        try:
            self.store.add(assignment)
        except IntegrityError:
            raise ConflictError("shift", shift_id, f"user {transfer.to_user_id} was assigned concurrently")
        buffer.record(
            "assignment", assignment.id, "assigned", None, AssignmentStatus.ACCEPTED,
            shift_id=shift_id, user_id=transfer.to_user_id, reason="swap"
        )

        if not self.store.cas_shift(shift_id, transfer.shift.version, [transfer.shift.status], updated_at=buffer.now):
            raise ConflictError("shift", shift_id, "shift changed during swap")
        return assignment


def parse_enum(enum_cls, value, field_name: str):
    """Convert a raw value to ``enum_cls`` or raise InvalidArgumentError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidArgumentError(
            f"Unrecognized {field_name}: {value}",
            details={"field": field_name, "allowed": [member.value for member in enum_cls]}
        )
