"""Shift routes: creation, lookup, assignment and status changes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from shiftboard.api.dependencies import (
    Actor,
    get_current_actor,
    get_lifecycle_service,
    rate_limited,
    require_manager,
)
from shiftboard.api.schemas import (
    AssignBody,
    AssignmentOut,
    ShiftCreate,
    ShiftOut,
    StatusBody,
    UnassignBody,
)
from shiftboard.models.shift import ShiftStatus
from shiftboard.services.lifecycle_service import ShiftLifecycleService


router = APIRouter(prefix="/shifts", tags=["shifts"])


@router.post(
    "",
    response_model=ShiftOut,
    status_code=201,
    dependencies=[Depends(rate_limited("admin"))]
)
def create_shift(
    body: ShiftCreate,
    manager: Actor = Depends(require_manager),
    service: ShiftLifecycleService = Depends(get_lifecycle_service)
):
    """Create a new open shift."""
    return service.create_shift(created_by=manager.id, **body.model_dump())


@router.get("", response_model=List[ShiftOut], dependencies=[Depends(rate_limited("general"))])
def list_shifts(
    status: Optional[ShiftStatus] = Query(None),
    location_id: Optional[str] = Query(None),
    actor: Actor = Depends(get_current_actor),
    service: ShiftLifecycleService = Depends(get_lifecycle_service)
):
    return service.list_shifts(status=status, location_id=location_id)


@router.get("/{shift_id}", response_model=ShiftOut, dependencies=[Depends(rate_limited("general"))])
def get_shift(
    shift_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ShiftLifecycleService = Depends(get_lifecycle_service)
):
    return service.get_shift(shift_id)


@router.delete("/{shift_id}", status_code=204, dependencies=[Depends(rate_limited("admin"))])
def delete_shift(
    shift_id: str,
    manager: Actor = Depends(require_manager),
    service: ShiftLifecycleService = Depends(get_lifecycle_service)
):
    """Delete a shift that has no accepted assignments or approved claims."""
    service.delete_shift(shift_id, manager.id)
    return Response(status_code=204)


@router.post(
    "/{shift_id}/assign",
    response_model=AssignmentOut,
    status_code=201,
    dependencies=[Depends(rate_limited("admin"))]
)
def assign_shift(
    shift_id: str,
    body: AssignBody,
    manager: Actor = Depends(require_manager),
    service: ShiftLifecycleService = Depends(get_lifecycle_service)
):
    """
    Offer a shift to a user.

    Returns a pending assignment, or an accepted one when acceptance is not
    required.
    """
    return service.assign(
        shift_id,
        body.user_id,
        manager.id,
        deadline=body.deadline,
        require_acceptance=body.require_acceptance
    )


@router.post("/{shift_id}/unassign", response_model=AssignmentOut, dependencies=[Depends(rate_limited("admin"))])
def unassign_shift(
    shift_id: str,
    body: Optional[UnassignBody] = None,
    manager: Actor = Depends(require_manager),
    service: ShiftLifecycleService = Depends(get_lifecycle_service)
):
    body = body or UnassignBody()
    return service.unassign(
        shift_id,
        manager.id,
        assignment_id=body.assignment_id,
        user_id=body.user_id
    )


@router.post("/{shift_id}/status", response_model=ShiftOut, dependencies=[Depends(rate_limited("admin"))])
def update_shift_status(
    shift_id: str,
    body: StatusBody,
    manager: Actor = Depends(require_manager),
    service: ShiftLifecycleService = Depends(get_lifecycle_service)
):
    """Manager override along one edge of the shift status graph."""
    return service.update_status(shift_id, body.status, manager.id)


@router.get(
    "/{shift_id}/assignments",
    response_model=List[AssignmentOut],
    dependencies=[Depends(rate_limited("general"))]
)
def list_shift_assignments(
    shift_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ShiftLifecycleService = Depends(get_lifecycle_service)
):
    return service.list_assignments(shift_id)
