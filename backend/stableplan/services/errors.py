"""Exceptions raised by the scheduling services.

Routers translate these into HTTP responses; messages of everything but
``MaterializationError`` are meant to be shown to the user as-is.
"""

from typing import List


class SchedulingError(Exception):
    """Base class for scheduling failures."""
    pass


class NotFoundError(SchedulingError):
    """A referenced horse, programme, version, plan or workout does not exist."""
    pass


class PreconditionError(SchedulingError):
    """The request is valid but the current state does not allow it."""
    pass


class ScheduleParseError(SchedulingError):
    """A schedule.csv could not be parsed; ``diagnostics`` lists every problem."""

    def __init__(self, diagnostics: List[str]):
        self.diagnostics = diagnostics
        errors = [d for d in diagnostics if not d.startswith("Warning:")]
        super().__init__(f"Schedule has {len(errors)} error(s)")


class ScheduleConflictError(SchedulingError):
    """Projected dates collide with existing planned sessions."""

    def __init__(self, conflict_dates: List[str], action: str = "apply", slot: str = "AM"):
        self.conflict_dates = conflict_dates
        super().__init__(
            f"Cannot {action}: {len(conflict_dates)} date(s) already have {slot} planned sessions"
        )


class MaterializationError(SchedulingError):
    """Storage failure inside a unit of work; nothing was written."""
    pass
