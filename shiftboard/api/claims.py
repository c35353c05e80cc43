"""Claim routes: employees claim open shifts, managers decide."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from shiftboard.api.dependencies import (
    Actor,
    get_claim_arbiter,
    get_current_actor,
    rate_limited,
    require_manager,
)
from shiftboard.api.schemas import ClaimOut, DecisionNotesBody
from shiftboard.models.claim import ClaimStatus
from shiftboard.services.claim_service import ClaimArbiter


router = APIRouter(tags=["claims"])


@router.post(
    "/shifts/{shift_id}/claim",
    response_model=ClaimOut,
    status_code=201,
    dependencies=[Depends(rate_limited("sensitive"))]
)
def claim_shift(
    shift_id: str,
    actor: Actor = Depends(get_current_actor),
    arbiter: ClaimArbiter = Depends(get_claim_arbiter)
):
    """Place a pending claim on an open shift for the caller."""
    return arbiter.claim(shift_id, actor.id)


@router.get(
    "/shifts/{shift_id}/claims",
    response_model=List[ClaimOut],
    dependencies=[Depends(rate_limited("general"))]
)
def list_shift_claims(
    shift_id: str,
    status: Optional[ClaimStatus] = Query(None),
    manager: Actor = Depends(require_manager),
    arbiter: ClaimArbiter = Depends(get_claim_arbiter)
):
    return arbiter.list_claims(shift_id, status)


@router.get("/claims/mine", response_model=List[ClaimOut], dependencies=[Depends(rate_limited("general"))])
def list_my_claims(
    actor: Actor = Depends(get_current_actor),
    arbiter: ClaimArbiter = Depends(get_claim_arbiter)
):
    return arbiter.list_claims_for_user(actor.id)


@router.post(
    "/claims/{claim_id}/approve",
    response_model=ClaimOut,
    dependencies=[Depends(rate_limited("admin"))]
)
def approve_claim(
    claim_id: str,
    body: Optional[DecisionNotesBody] = None,
    manager: Actor = Depends(require_manager),
    arbiter: ClaimArbiter = Depends(get_claim_arbiter)
):
    """
    Approve a pending claim.

    Returns 409 when another approval already took the last free slot.
    """
    return arbiter.approve(claim_id, manager.id, notes=body.notes if body else None)


@router.post(
    "/claims/{claim_id}/reject",
    response_model=ClaimOut,
    dependencies=[Depends(rate_limited("admin"))]
)
def reject_claim(
    claim_id: str,
    body: Optional[DecisionNotesBody] = None,
    manager: Actor = Depends(require_manager),
    arbiter: ClaimArbiter = Depends(get_claim_arbiter)
):
    return arbiter.reject(claim_id, manager.id, notes=body.notes if body else None)


@router.post(
    "/claims/{claim_id}/cancel",
    response_model=ClaimOut,
    dependencies=[Depends(rate_limited("sensitive"))]
)
def cancel_claim(
    claim_id: str,
    actor: Actor = Depends(get_current_actor),
    arbiter: ClaimArbiter = Depends(get_claim_arbiter)
):
    return arbiter.cancel(claim_id, actor.id)
