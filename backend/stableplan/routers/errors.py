"""Translation of scheduling errors into HTTP responses."""

from fastapi import HTTPException, status

from stableplan.services.errors import (
    NotFoundError,
    PreconditionError,
    ScheduleConflictError,
    ScheduleParseError,
    SchedulingError,
)


def to_http_exception(e: SchedulingError) -> HTTPException:
    """
    Map a scheduling error to the HTTP status the API documents.

    Conflicts carry the colliding dates and parse failures every diagnostic,
    so clients can show them without another request.
    """
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ScheduleConflictError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": str(e), "conflictDates": e.conflict_dates},
        )
    if isinstance(e, ScheduleParseError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": str(e), "diagnostics": e.diagnostics},
        )
    if isinstance(e, PreconditionError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    # MaterializationError and anything unexpected
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
