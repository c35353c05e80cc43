"""Custom exceptions and error handling for shift coordination.

Every error raised by the services carries a user-facing message, a
machine-readable code and the precondition that failed. None of them
expose storage or driver detail.
"""
from typing import Optional, Dict, Any


class SchedulingError(Exception):
    """Base class for scheduling errors with user-friendly messages."""

    status_code = 400

    def __init__(self, message: str, error_code: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize scheduling error.

        Args:
            message: User-friendly error message
            error_code: Machine-readable error code
            details: Optional additional error details
        """
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary format for API responses.

        Returns:
            Dictionary with error information
        """
        return {
            "success": False,
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


class ResourceNotFoundError(SchedulingError):
    """Error raised when a requested resource is not found."""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        """
        Initialize resource not found error.

        Args:
            resource_type: Type of resource (e.g., "shift", "claim", "swap")
            resource_id: ID of the resource
        """
        super().__init__(
            message=f"{resource_type.capitalize()} not found (ID: {resource_id})",
            error_code="RESOURCE_NOT_FOUND",
            details={
                "resource_type": resource_type,
                "resource_id": resource_id
            }
        )


class MissingFieldError(SchedulingError):
    """Error raised when a required field is missing."""

    status_code = 422

    def __init__(self, field_name: str):
        super().__init__(
            message=f"{field_name} is required",
            error_code="MISSING_FIELD",
            details={"field_name": field_name}
        )


class InvalidArgumentError(SchedulingError):
    """Error raised when an argument is well-formed but not acceptable."""

    status_code = 422

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, error_code="INVALID_ARGUMENT", details=details)


class InvalidStateError(SchedulingError):
    """Error raised when an operation is not legal from the current status."""

    status_code = 409

    def __init__(self, entity_type: str, current_status: str, attempted_action: str, reason: Optional[str] = None):
        """
        Initialize invalid state error.

        Args:
            entity_type: Kind of record (e.g., "shift", "assignment")
            current_status: Status the record is in
            attempted_action: Action that was attempted
            reason: Optional extra explanation
        """
        message = f"Cannot {attempted_action} {entity_type} while it is {current_status}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            error_code="INVALID_STATE",
            details={
                "entity_type": entity_type,
                "current_status": current_status,
                "attempted_action": attempted_action,
                "reason": reason
            }
        )


class ShiftNotAssignableError(InvalidStateError):
    """Error raised when a shift cannot take another assignment."""

    status_code = 422


class InvalidTransitionError(SchedulingError):
    """Error raised when attempting a status change outside the transition table."""

    status_code = 422

    def __init__(self, entity_type: str, current_status: str, target_status: str):
        super().__init__(
            message=(
                f"Illegal {entity_type} status transition: "
                f"{current_status} -> {target_status}"
            ),
            error_code="INVALID_TRANSITION",
            details={
                "entity_type": entity_type,
                "current_status": current_status,
                "target_status": target_status
            }
        )


class ConflictError(SchedulingError):
    """Error raised when a conditional write lost to a concurrent writer.

    Callers must re-fetch and decide again; the identical request is never
    retried automatically.
    """

    status_code = 409

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        super().__init__(
            message=f"Conflicting update on {entity_type} {entity_id}: {reason}",
            error_code="CONFLICT",
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "reason": reason
            }
        )


class DuplicateClaimError(SchedulingError):
    """Error raised when a user already holds an active claim on a shift."""

    status_code = 409

    def __init__(self, shift_id: str, user_id: str):
        super().__init__(
            message="You have already claimed this shift",
            error_code="DUPLICATE_CLAIM",
            details={"shift_id": shift_id, "user_id": user_id}
        )


class DuplicateAssignmentError(SchedulingError):
    """Error raised when a user already has an active assignment on a shift."""

    status_code = 409

    def __init__(self, shift_id: str, user_id: str):
        super().__init__(
            message="User already has an active assignment for this shift",
            error_code="DUPLICATE_ASSIGNMENT",
            details={"shift_id": shift_id, "user_id": user_id}
        )


class ForbiddenError(SchedulingError):
    """Error raised when the actor has no standing to act on a record."""

    status_code = 403

    def __init__(self, action: str, reason: str):
        super().__init__(
            message=f"Not allowed to {action}: {reason}",
            error_code="FORBIDDEN",
            details={"action": action, "reason": reason}
        )


class AssignmentExpiredError(SchedulingError):
    """Error raised when responding to an assignment past its deadline."""

    status_code = 410

    def __init__(self, assignment_id: str, deadline):
        super().__init__(
            message="The acceptance deadline for this assignment has passed",
            error_code="ASSIGNMENT_EXPIRED",
            details={
                "assignment_id": assignment_id,
                "acceptance_deadline": deadline.isoformat() if deadline else None
            }
        )


class AlreadyRespondedError(SchedulingError):
    """Error raised when an assignment already carries a response."""

    status_code = 409

    def __init__(self, assignment_id: str, response: str):
        super().__init__(
            message=f"This assignment was already answered ({response})",
            error_code="ALREADY_RESPONDED",
            details={"assignment_id": assignment_id, "response": response}
        )


class RateLimitedError(SchedulingError):
    """Error raised when a caller exceeds the admission limit."""

    status_code = 429

    def __init__(self, route_class: str, limit: int, window_seconds: int, retry_after: int):
        self.retry_after = retry_after
        super().__init__(
            message="Rate limit exceeded. Please try again later.",
            error_code="RATE_LIMITED",
            details={
                "route_class": route_class,
                "limit": limit,
                "window_seconds": window_seconds,
                "retry_after": retry_after
            }
        )


def format_error_for_api(error: SchedulingError) -> Dict[str, Any]:
    """
    Format scheduling error for API response.

    Args:
        error: Scheduling error to format

    Returns:
        Dictionary suitable for JSON API response
    """
    return error.to_dict()
