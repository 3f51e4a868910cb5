"""Pydantic schemas for applied plan API operations."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from stableplan.models.applied_plan import AppliedPlanStatus
from stableplan.schemas.schedule import CamelModel


class RepeatMode(str, Enum):
    """How a plan is repeated."""
    ORIGINAL = "original"
    AMENDED = "amended"


# ============== Requests ==============

class ApplyPlanRequest(CamelModel):
    """Apply a published programme version to a horse."""

    horse_id: int = Field(..., description="Horse ID")
    programme_version_id: int = Field(..., description="Published programme version ID")
    start_date: date = Field(..., description="Date of week 1, day 1")

    class Config:
        json_schema_extra = {
            "example": {"horseId": 7, "programmeVersionId": 3, "startDate": "2026-03-02"}
        }


class RepeatPlanRequest(CamelModel):
    """Repeat an applied plan at a new start date."""

    mode: RepeatMode = Field(RepeatMode.ORIGINAL, description="original or amended")
    start_date: date = Field(..., description="Date of week 1, day 1")


class StatusUpdateRequest(CamelModel):
    status: AppliedPlanStatus = Field(..., description="COMPLETED or CANCELLED")


# ============== Responses ==============

class ApplyResponse(CamelModel):
    """IDs of a newly materialized plan."""

    applied_plan_id: int
    plan_block_id: int
    work_item_count: int
    forked_version_id: Optional[int] = None
    forked_version: Optional[int] = None


class PlanSummary(CamelModel):
    total: int
    training_days: int
    rest_days: int
    earliest_date: Optional[date] = None
    latest_date: Optional[date] = None


class AppliedPlanResponse(CamelModel):
    """Schema for applied plan API responses."""

    id: int
    horse_id: int
    programme_version_id: int
    assigned_by_id: int
    start_date: date
    status: AppliedPlanStatus
    source_applied_plan_id: Optional[int] = None
    is_amended: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AppliedPlanDetail(AppliedPlanResponse):
    """Applied plan with its programme and workout summary."""

    programme_id: int
    programme_name: str
    version: int
    summary: PlanSummary


class RemoveResponse(CamelModel):
    removed_work_items: int = Field(..., description="Number of workouts deleted")
