"""Swap request routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from shiftboard.api.dependencies import (
    Actor,
    get_current_actor,
    get_swap_workflow,
    rate_limited,
    require_manager,
)
from shiftboard.api.schemas import DecisionNotesBody, SwapCreate, SwapOut, SwapRespondBody
from shiftboard.models.swap import SwapStatus
from shiftboard.services.swap_service import SwapWorkflow


router = APIRouter(prefix="/swaps", tags=["swaps"])


@router.post("", response_model=SwapOut, status_code=201, dependencies=[Depends(rate_limited("sensitive"))])
def propose_swap(
    body: SwapCreate,
    actor: Actor = Depends(get_current_actor),
    workflow: SwapWorkflow = Depends(get_swap_workflow)
):
    """
    Propose a swap of a shift the caller holds.

    Omitting ``target_user_id`` opens the swap to any eligible taker;
    omitting ``target_shift_id`` makes it a give-away.
    """
    return workflow.propose(
        body.origin_shift_id,
        actor.id,
        target_user_id=body.target_user_id,
        target_shift_id=body.target_shift_id,
        notes=body.notes
    )


@router.get("", response_model=List[SwapOut], dependencies=[Depends(rate_limited("general"))])
def list_swaps(
    status: Optional[SwapStatus] = Query(None),
    actor: Actor = Depends(get_current_actor),
    workflow: SwapWorkflow = Depends(get_swap_workflow)
):
    """Managers see every swap; employees see the ones they are part of."""
    user_id = None if actor.is_manager else actor.id
    return workflow.list_swaps(status=status, user_id=user_id)


@router.get("/{swap_id}", response_model=SwapOut, dependencies=[Depends(rate_limited("general"))])
def get_swap(
    swap_id: str,
    actor: Actor = Depends(get_current_actor),
    workflow: SwapWorkflow = Depends(get_swap_workflow)
):
    return workflow.get_swap(swap_id)


@router.post("/{swap_id}/respond", response_model=SwapOut, dependencies=[Depends(rate_limited("sensitive"))])
def respond_to_swap(
    swap_id: str,
    body: SwapRespondBody,
    actor: Actor = Depends(get_current_actor),
    workflow: SwapWorkflow = Depends(get_swap_workflow)
):
    return workflow.respond(swap_id, actor.id, body.decision, notes=body.notes)


@router.post("/{swap_id}/approve", response_model=SwapOut, dependencies=[Depends(rate_limited("admin"))])
def approve_swap(
    swap_id: str,
    body: Optional[DecisionNotesBody] = None,
    manager: Actor = Depends(require_manager),
    workflow: SwapWorkflow = Depends(get_swap_workflow)
):
    """Approve an accepted swap; both sides move or neither does."""
    return workflow.approve(swap_id, manager.id, notes=body.notes if body else None)


@router.post("/{swap_id}/deny", response_model=SwapOut, dependencies=[Depends(rate_limited("admin"))])
def deny_swap(
    swap_id: str,
    body: Optional[DecisionNotesBody] = None,
    manager: Actor = Depends(require_manager),
    workflow: SwapWorkflow = Depends(get_swap_workflow)
):
    return workflow.deny(swap_id, manager.id, notes=body.notes if body else None)


@router.post("/{swap_id}/cancel", response_model=SwapOut, dependencies=[Depends(rate_limited("sensitive"))])
def cancel_swap(
    swap_id: str,
    actor: Actor = Depends(get_current_actor),
    workflow: SwapWorkflow = Depends(get_swap_workflow)
):
    return workflow.cancel(swap_id, actor.id)
