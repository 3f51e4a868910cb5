"""Services package for scheduling business logic."""

from stableplan.services.errors import (
    MaterializationError,
    NotFoundError,
    PreconditionError,
    ScheduleConflictError,
    ScheduleParseError,
    SchedulingError,
)
from stableplan.services.schedule_parser import ParseResult, parse_schedule
from stableplan.services.projection import SessionFields, project_to_session_fields
from stableplan.services.scheduler import ApplyResult, PlanSpec, apply_schedule, unit_of_work

__all__ = [
    "MaterializationError",
    "NotFoundError",
    "PreconditionError",
    "ScheduleConflictError",
    "ScheduleParseError",
    "SchedulingError",
    "ParseResult",
    "parse_schedule",
    "SessionFields",
    "project_to_session_fields",
    "ApplyResult",
    "PlanSpec",
    "apply_schedule",
    "unit_of_work",
]
