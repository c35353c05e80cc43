"""Request and response bodies."""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shiftboard.models.shift import ShiftStatus
from shiftboard.models.assignment import AssignmentStatus, AssignmentResponse
from shiftboard.models.claim import ClaimStatus
from shiftboard.models.swap import SwapStatus, SwapType, SwapDecision


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class ShiftCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    location_id: str = Field(..., min_length=1)
    team_id: Optional[str] = None
    start_time: datetime
    end_time: datetime
    min_duration_minutes: Optional[int] = None
    max_duration_minutes: Optional[int] = None
    max_people: int = 1

    @field_validator("start_time", "end_time")
    @classmethod
    def naive_utc(cls, value):
        return _to_naive_utc(value)


class AssignBody(BaseModel):
    user_id: str = Field(..., min_length=1)
    deadline: Optional[datetime] = None
    require_acceptance: Optional[bool] = None

    @field_validator("deadline")
    @classmethod
    def naive_utc(cls, value):
        return _to_naive_utc(value)


class UnassignBody(BaseModel):
    assignment_id: Optional[str] = None
    user_id: Optional[str] = None


class StatusBody(BaseModel):
    status: ShiftStatus


class AssignmentRespondBody(BaseModel):
    decision: AssignmentResponse
    notes: Optional[str] = None


class DecisionNotesBody(BaseModel):
    notes: Optional[str] = None


class SwapCreate(BaseModel):
    origin_shift_id: str = Field(..., min_length=1)
    target_user_id: Optional[str] = None
    target_shift_id: Optional[str] = None
    notes: Optional[str] = None


class SwapRespondBody(BaseModel):
    decision: SwapDecision
    notes: Optional[str] = None


class ShiftOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    location_id: str
    team_id: Optional[str] = None
    start_time: datetime
    end_time: datetime
    min_duration_minutes: Optional[int] = None
    max_duration_minutes: Optional[int] = None
    max_people: int
    status: ShiftStatus
    version: int
    created_by: str
    created_at: datetime
    updated_at: datetime


class AssignmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    shift_id: str
    user_id: str
    assigned_by: str
    assignment_status: AssignmentStatus
    acceptance_deadline: Optional[datetime] = None
    response: Optional[AssignmentResponse] = None
    response_notes: Optional[str] = None
    claim_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ClaimOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    shift_id: str
    user_id: str
    status: ClaimStatus
    approved_by: Optional[str] = None
    approval_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SwapOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    requesting_user_id: str
    original_shift_id: str
    target_user_id: Optional[str] = None
    target_shift_id: Optional[str] = None
    swap_type: SwapType
    status: SwapStatus
    notes: Optional[str] = None
    response_notes: Optional[str] = None
    responded_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approval_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
