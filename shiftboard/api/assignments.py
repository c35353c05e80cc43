"""Assignment routes for assignees."""
from typing import List

from fastapi import APIRouter, Depends, Query

from shiftboard.api.dependencies import Actor, get_current_actor, get_lifecycle_service, rate_limited
from shiftboard.api.schemas import AssignmentOut, AssignmentRespondBody
from shiftboard.exceptions import ForbiddenError
from shiftboard.services.lifecycle_service import ShiftLifecycleService


router = APIRouter(prefix="/assignments", tags=["assignments"])


@router.get("/mine", response_model=List[AssignmentOut], dependencies=[Depends(rate_limited("general"))])
def list_my_assignments(
    pending: bool = Query(False),
    actor: Actor = Depends(get_current_actor),
    service: ShiftLifecycleService = Depends(get_lifecycle_service)
):
    """List the caller's assignments, optionally only those awaiting a response."""
    return service.list_assignments_for_user(actor.id, pending_only=pending)


@router.get("/{assignment_id}", response_model=AssignmentOut, dependencies=[Depends(rate_limited("general"))])
def get_assignment(
    assignment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ShiftLifecycleService = Depends(get_lifecycle_service)
):
    assignment = service.get_assignment(assignment_id)
    if assignment.user_id != actor.id and not actor.is_manager:
        raise ForbiddenError("view assignment", "assignment belongs to another user")
    return assignment


@router.post(
    "/{assignment_id}/respond",
    response_model=AssignmentOut,
    dependencies=[Depends(rate_limited("sensitive"))]
)
def respond_to_assignment(
    assignment_id: str,
    body: AssignmentRespondBody,
    actor: Actor = Depends(get_current_actor),
    service: ShiftLifecycleService = Depends(get_lifecycle_service)
):
    """Accept or decline an assignment offered to the caller."""
    return service.respond(assignment_id, body.decision, responder_id=actor.id, notes=body.notes)
