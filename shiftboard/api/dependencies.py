"""Request dependencies: actor identity, admission control and services."""
from dataclasses import dataclass
from typing import Callable, Optional
import enum

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from shiftboard.config import settings
from shiftboard.database import get_db
from shiftboard.exceptions import ForbiddenError
from shiftboard.services.activity import ActivityLogger
from shiftboard.services.claim_service import ClaimArbiter
from shiftboard.services.lifecycle_service import ShiftLifecycleService
from shiftboard.services.rate_limiter import AdmissionController
from shiftboard.services.swap_service import SwapWorkflow


class ActorRole(str, enum.Enum):
    """Roles supplied by the upstream auth layer."""
    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    id: str
    role: ActorRole

    @property
    def is_manager(self) -> bool:
        return self.role in (ActorRole.MANAGER, ActorRole.ADMIN)


def get_current_actor(
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None)
) -> Actor:
    """
    Get the verified actor injected by the auth layer.

    Raises:
        HTTPException: If no actor header is present or the role is unknown
    """
    if not x_actor_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        role = ActorRole(x_actor_role or ActorRole.EMPLOYEE.value)
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role: {x_actor_role}")
    return Actor(id=x_actor_id, role=role)


def require_manager(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Only managers and admins pass."""
    if not actor.is_manager:
        raise ForbiddenError("perform this action", "manager role required")
    return actor


def rate_limited(route_class: str) -> Callable:
    """
    Build a dependency that admits one request for ``route_class``.

    The caller key is the actor header when present, else the client address.
    """
    # Fail at import time on a misspelled class
    settings.rate_limit_for(route_class)

    def dependency(request: Request, x_actor_id: Optional[str] = Header(None)) -> None:
        caller = x_actor_id or (request.client.host if request.client else "unknown")
        controller = AdmissionController(request.app.state.rate_limiter, settings)
        controller.admit(route_class, caller)

    return dependency


def get_activity_logger(request: Request) -> ActivityLogger:
    return getattr(request.app.state, "activity_logger", None) or ActivityLogger()


def get_lifecycle_service(
    db: Session = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger)
) -> ShiftLifecycleService:
    return ShiftLifecycleService(db, activity_logger=activity_logger)


def get_claim_arbiter(
    db: Session = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger)
) -> ClaimArbiter:
    return ClaimArbiter(db, activity_logger=activity_logger)


def get_swap_workflow(
    db: Session = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger)
) -> SwapWorkflow:
    return SwapWorkflow(db, activity_logger=activity_logger)
