"""Pydantic schemas for applied-plan workout API operations."""

from datetime import date
from typing import List, Optional

from pydantic import Field

from stableplan.models.planned_session import Slot
from stableplan.schemas.schedule import CamelModel, DayEntry, ScheduleBlock


class WorkoutResponse(CamelModel):
    """Schema for workout API responses."""

    id: int
    applied_plan_id: int
    horse_id: int
    origin_week: int
    origin_day: int
    scheduled_date: Optional[date] = None
    slot: Slot
    is_rest: bool
    baseline_data: DayEntry
    current_data: DayEntry
    changed_fields: List[str] = Field(
        default_factory=list, description="Keys where current data differs from baseline"
    )


class WorkoutUpdate(CamelModel):
    """Partial update of a workout's current data. Position cannot change here."""

    title: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    duration_min: Optional[int] = Field(None, ge=1)
    duration_max: Optional[int] = Field(None, ge=1)
    intensity_label: Optional[str] = None
    intensity_rpe_min: Optional[int] = Field(None, ge=1, le=10)
    intensity_rpe_max: Optional[int] = Field(None, ge=1, le=10)
    blocks: Optional[List[ScheduleBlock]] = None
    substitution: Optional[str] = None
    manual_ref: Optional[str] = None

    def changes(self) -> dict:
        """Only the fields the client sent, keyed as stored in current data."""
        return self.model_dump(exclude_unset=True, by_alias=True, mode="json")


class RescheduleRequest(CamelModel):
    target_date: date = Field(..., description="New date")
    slot: Optional[Slot] = Field(None, description="New slot; defaults to AM")


class RescheduleResponse(CamelModel):
    workout: WorkoutResponse
    swapped_with_id: Optional[int] = None
    rest_fill_id: Optional[int] = None
