"""Swap workflow: proposal, target response and manager decision.

A swap moves the requester's accepted seat on the origin shift to the
target user and, for shift-for-shift swaps, moves the target's seat on the
target shift back to the requester. Approval verifies both sides before
writing either; all writes share one transaction, so a conflicting change
on either shift rolls the whole approval back.
"""
from datetime import datetime
from typing import Callable, List, Optional
import logging
import uuid

from sqlalchemy.orm import Session

from shiftboard.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    MissingFieldError,
)
from shiftboard.models.swap import SwapRequest, SwapStatus, SwapType, SwapDecision
from shiftboard.services.activity import ActivityLogger, EventBuffer
from shiftboard.services.lifecycle_service import ShiftLifecycleService, parse_enum
from shiftboard.services.store import ShiftStore, utcnow


logger = logging.getLogger(__name__)

CANCELLABLE_SWAP_STATUSES = (SwapStatus.PROPOSED, SwapStatus.TARGET_ACCEPTED)


class SwapWorkflow:
    """Service for shift swap requests."""

    def __init__(
        self,
        db: Session,
        now_fn: Callable[[], datetime] = utcnow,
        activity_logger: Optional[ActivityLogger] = None,
        lifecycle: Optional[ShiftLifecycleService] = None
    ):
        self.db = db
        self.store = ShiftStore(db)
        self.now_fn = now_fn
        self.activity_logger = activity_logger or ActivityLogger()
        self.lifecycle = lifecycle or ShiftLifecycleService(
            db, now_fn=now_fn, activity_logger=self.activity_logger
        )

    def propose(
        self,
        original_shift_id: str,
        requester_id: str,
        target_user_id: Optional[str] = None,
        target_shift_id: Optional[str] = None,
        notes: Optional[str] = None
    ) -> SwapRequest:
        """
        Propose giving away or exchanging a shift the requester holds.

        Without ``target_user_id`` the swap is open to any eligible taker.

        Args:
            original_shift_id: Shift the requester wants to hand over
            requester_id: ID of the requesting user
            target_user_id: Optional user the swap is addressed to
            target_shift_id: Optional shift held by the target, taken in exchange
            notes: Free-form notes

        Returns:
            The new proposed swap request

        Raises:
            ResourceNotFoundError: If a referenced shift does not exist
            InvalidStateError: If the origin shift is completed or cancelled
            InvalidArgumentError: If the requester does not hold the origin shift,
                or the target shift is not held by the target user
        """
        if not original_shift_id:
            raise MissingFieldError("original_shift_id")
        if not requester_id:
            raise MissingFieldError("requester_id")

        origin = self.store.get_shift(original_shift_id)
        if origin.is_terminal:
            raise InvalidStateError("shift", origin.status.value, "swap")
        if self.store.accepted_assignment_for(original_shift_id, requester_id) is None:
            raise InvalidArgumentError(
                "You can only swap a shift you are assigned to",
                details={"original_shift_id": original_shift_id, "requester_id": requester_id}
            )
        if target_user_id is not None and target_user_id == requester_id:
            raise InvalidArgumentError("You cannot swap a shift with yourself", details={"target_user_id": target_user_id})

        if target_shift_id is not None:
            if target_user_id is None:
                raise InvalidArgumentError(
                    "A target shift requires a target user",
                    details={"target_shift_id": target_shift_id}
                )
            if target_shift_id == original_shift_id:
                raise InvalidArgumentError(
                    "Target shift must differ from the original shift",
                    details={"target_shift_id": target_shift_id}
                )
            target_shift = self.store.get_shift(target_shift_id)
            if target_shift.is_terminal:
                raise InvalidStateError("shift", target_shift.status.value, "swap")
            if self.store.accepted_assignment_for(target_shift_id, target_user_id) is None:
                raise InvalidArgumentError(
                    "Target shift is not held by the target user",
                    details={"target_shift_id": target_shift_id, "target_user_id": target_user_id}
                )

        now = self.now_fn()
        swap = SwapRequest(
            id=str(uuid.uuid4()),
            requesting_user_id=requester_id,
            original_shift_id=original_shift_id,
            target_user_id=target_user_id,
            target_shift_id=target_shift_id,
            swap_type=SwapType.TARGETED if target_user_id else SwapType.OPEN,
            status=SwapStatus.PROPOSED,
            notes=notes,
            created_at=now,
            updated_at=now
        )
        buffer = EventBuffer(requester_id, now)
        with self.store.transaction():
            self.store.add(swap)
            buffer.record(
                "swap", swap.id, "proposed", None, SwapStatus.PROPOSED,
                swap_type=swap.swap_type.value, original_shift_id=original_shift_id,
                target_shift_id=target_shift_id
            )
            swap_id = swap.id

        logger.info(f"Swap {swap_id} proposed by {requester_id} for shift {original_shift_id}")
        self.activity_logger.emit_all(buffer.events)
        return self.store.get_swap(swap_id)

    def respond(
        self,
        swap_id: str,
        responder_id: str,
        decision,
        notes: Optional[str] = None
    ) -> SwapRequest:
        """
        Accept or decline a proposed swap.

        A targeted swap is answered by its target user. An open swap is
        accepted by the first eligible taker, who becomes its target; open
        swaps cannot be declined.

        Raises:
            ResourceNotFoundError: If the swap does not exist
            InvalidStateError: If the swap is not proposed
            ForbiddenError: If the responder has no standing on this swap
            ConflictError: If another response landed first
        """
        decision = parse_enum(SwapDecision, decision, "decision")
        swap = self.store.get_swap(swap_id)
        if swap.status != SwapStatus.PROPOSED:
            raise InvalidStateError("swap request", swap.status.value, "respond to")

        values = {}
        if swap.is_open:
            if responder_id == swap.requesting_user_id:
                raise ForbiddenError("respond to swap", "you cannot take your own swap")
            if self.store.active_assignment_for(swap.original_shift_id, responder_id) is not None:
                raise ForbiddenError("respond to swap", "you are already assigned to this shift")
            if decision == SwapDecision.DECLINE:
                raise InvalidArgumentError(
                    "Open swaps cannot be declined",
                    details={"swap_id": swap_id, "decision": decision.value}
                )
            values["target_user_id"] = responder_id
        elif responder_id != swap.target_user_id:
            raise ForbiddenError("respond to swap", "only the target user can respond")

        accept = decision == SwapDecision.ACCEPT
        new_status = SwapStatus.TARGET_ACCEPTED if accept else SwapStatus.TARGET_DECLINED
        now = self.now_fn()
        buffer = EventBuffer(responder_id, now)
        with self.store.transaction():
            if not self.store.cas_swap(
                swap_id,
                SwapStatus.PROPOSED,
                new_status,
                response_notes=notes,
                responded_at=now,
                updated_at=now,
                **values
            ):
                raise ConflictError("swap request", swap_id, "swap was answered concurrently")
            buffer.record(
                "swap", swap_id, "target_accepted" if accept else "target_declined",
                SwapStatus.PROPOSED, new_status
            )

        logger.info(f"Swap {swap_id} {new_status.value} by {responder_id}")
        self.activity_logger.emit_all(buffer.events)
        return self.store.get_swap(swap_id)

    def approve(self, swap_id: str, approver_id: str, notes: Optional[str] = None) -> SwapRequest:
        """
        Approve an accepted swap and move the seats.

        Both shifts are verified before either is written. If any check or
        conditional write fails, nothing changes and ConflictError is raised.

        Raises:
            ResourceNotFoundError: If the swap does not exist
            InvalidStateError: If the swap is not target_accepted
            ConflictError: If either shift is no longer swappable
        """
        swap = self.store.get_swap(swap_id)
        if swap.status != SwapStatus.TARGET_ACCEPTED:
            raise InvalidStateError("swap request", swap.status.value, "approve")

        requester_id = swap.requesting_user_id
        target_user_id = swap.target_user_id
        original_shift_id = swap.original_shift_id
        target_shift_id = swap.target_shift_id

        now = self.now_fn()
        buffer = EventBuffer(approver_id, now)
        with self.store.transaction():
            transfers = [self.lifecycle.plan_transfer(original_shift_id, requester_id, target_user_id)]
            if target_shift_id is not None:
                transfers.append(self.lifecycle.plan_transfer(target_shift_id, target_user_id, requester_id))

            if not self.store.cas_swap(
                swap_id,
                SwapStatus.TARGET_ACCEPTED,
                SwapStatus.APPROVED,
                approved_by=approver_id,
                approval_notes=notes,
                updated_at=now
            ):
                raise ConflictError("swap request", swap_id, "swap changed while approving")
            buffer.record("swap", swap_id, "approved", SwapStatus.TARGET_ACCEPTED, SwapStatus.APPROVED)

            for transfer in transfers:
                self.lifecycle.apply_transfer(transfer, approver_id, buffer)

        logger.info(f"Swap {swap_id} approved by {approver_id}")
        self.activity_logger.emit_all(buffer.events)
        return self.store.get_swap(swap_id)

    def deny(self, swap_id: str, approver_id: str, notes: Optional[str] = None) -> SwapRequest:
        """
        Deny an accepted swap. Denied swaps are terminal.

        Raises:
            ResourceNotFoundError: If the swap does not exist
            InvalidStateError: If the swap is not target_accepted
        """
        swap = self.store.get_swap(swap_id)
        if swap.status != SwapStatus.TARGET_ACCEPTED:
            raise InvalidStateError("swap request", swap.status.value, "deny")

        now = self.now_fn()
        buffer = EventBuffer(approver_id, now)
        with self.store.transaction():
            if not self.store.cas_swap(
                swap_id,
                SwapStatus.TARGET_ACCEPTED,
                SwapStatus.DENIED,
                approved_by=approver_id,
                approval_notes=notes,
                updated_at=now
            ):
                raise ConflictError("swap request", swap_id, "swap changed while denying")
            buffer.record("swap", swap_id, "denied", SwapStatus.TARGET_ACCEPTED, SwapStatus.DENIED)

        self.activity_logger.emit_all(buffer.events)
        return self.store.get_swap(swap_id)

    def cancel(self, swap_id: str, user_id: str) -> SwapRequest:
        """
        Withdraw a swap before the manager decides. Only the requester may do this.

        Raises:
            ResourceNotFoundError: If the swap does not exist
            ForbiddenError: If the caller is not the requester
            InvalidStateError: If the swap is already decided
        """
        swap = self.store.get_swap(swap_id)
        if swap.requesting_user_id != user_id:
            raise ForbiddenError("cancel swap", "only the requester can cancel a swap")
        current = swap.status
        if current not in CANCELLABLE_SWAP_STATUSES:
            raise InvalidStateError("swap request", current.value, "cancel")

        now = self.now_fn()
        buffer = EventBuffer(user_id, now)
        with self.store.transaction():
            if not self.store.cas_swap(swap_id, current, SwapStatus.CANCELLED, updated_at=now):
                raise ConflictError("swap request", swap_id, "swap changed while cancelling")
            buffer.record("swap", swap_id, "cancelled", current, SwapStatus.CANCELLED)

        self.activity_logger.emit_all(buffer.events)
        return self.store.get_swap(swap_id)

    def get_swap(self, swap_id: str) -> SwapRequest:
        return self.store.get_swap(swap_id)

    def list_swaps(self, status: Optional[SwapStatus] = None, user_id: Optional[str] = None) -> List[SwapRequest]:
        return self.store.list_swaps(status=status, user_id=user_id)
