"""Pydantic schemas package for API request/response models."""

from stableplan.schemas.schedule import CamelModel, DayEntry, ScheduleBlock
from stableplan.schemas.programmes import (
    ImportResponse,
    ParseResponse,
    ProgrammeCreate,
    ProgrammeResponse,
    ProgrammeUpdate,
    VersionCreate,
    VersionResponse,
    VersionSummary,
)
from stableplan.schemas.applied_plans import (
    AppliedPlanDetail,
    AppliedPlanResponse,
    ApplyPlanRequest,
    ApplyResponse,
    PlanSummary,
    RemoveResponse,
    RepeatMode,
    RepeatPlanRequest,
    StatusUpdateRequest,
)
from stableplan.schemas.workouts import (
    RescheduleRequest,
    RescheduleResponse,
    WorkoutResponse,
    WorkoutUpdate,
)

__all__ = [
    "CamelModel",
    "DayEntry",
    "ScheduleBlock",
    "ImportResponse",
    "ParseResponse",
    "ProgrammeCreate",
    "ProgrammeResponse",
    "ProgrammeUpdate",
    "VersionCreate",
    "VersionResponse",
    "VersionSummary",
    "AppliedPlanDetail",
    "AppliedPlanResponse",
    "ApplyPlanRequest",
    "ApplyResponse",
    "PlanSummary",
    "RemoveResponse",
    "RepeatMode",
    "RepeatPlanRequest",
    "StatusUpdateRequest",
    "RescheduleRequest",
    "RescheduleResponse",
    "WorkoutResponse",
    "WorkoutUpdate",
]
