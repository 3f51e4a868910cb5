"""Database models for the stable planner."""

from stableplan.models.base import Base
from stableplan.models.user import User, UserRole
from stableplan.models.horse import Horse, HorseAssignment, AssignmentPermission
from stableplan.models.programme import Programme, ProgrammeVersion, ProgrammeStatus
from stableplan.models.applied_plan import AppliedPlan, AppliedPlanStatus, Workout
from stableplan.models.planned_session import (
    ActualSessionLog,
    PlanBlock,
    PlannedSession,
    Slot,
)

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Horse",
    "HorseAssignment",
    "AssignmentPermission",
    "Programme",
    "ProgrammeVersion",
    "ProgrammeStatus",
    "AppliedPlan",
    "AppliedPlanStatus",
    "Workout",
    "PlanBlock",
    "PlannedSession",
    "ActualSessionLog",
    "Slot",
]
