"""Workouts API router: calendar views, edits and rescheduling."""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from stableplan.database import get_db
from stableplan.models.applied_plan import Workout
from stableplan.models.user import User
from stableplan.routers.errors import to_http_exception
from stableplan.schemas.schedule import DayEntry
from stableplan.schemas.workouts import (
    RescheduleRequest,
    RescheduleResponse,
    WorkoutResponse,
    WorkoutUpdate,
)
from stableplan.services import plan_workflow, workout_editor
from stableplan.services.access import require_horse_edit, require_horse_view
from stableplan.services.auth_service import get_current_user
from stableplan.services.errors import SchedulingError

logger = logging.getLogger(__name__)

router = APIRouter()


def to_response(workout: Workout) -> WorkoutResponse:
    return WorkoutResponse(
        id=workout.id,
        applied_plan_id=workout.applied_plan_id,
        horse_id=workout.horse_id,
        origin_week=workout.origin_week,
        origin_day=workout.origin_day,
        scheduled_date=workout.scheduled_date,
        slot=workout.slot,
        is_rest=workout.is_rest,
        baseline_data=DayEntry.from_json(workout.baseline_data),
        current_data=DayEntry.from_json(workout.current_data),
        changed_fields=workout_editor.changed_fields(workout.baseline_data, workout.current_data),
    )


def _load_workout(db: Session, workout_id: int) -> Workout:
    try:
        return workout_editor.get_workout(db, workout_id)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.get("", response_model=List[WorkoutResponse])
async def list_workouts(
    horse_id: int = Query(..., alias="horseId"),
    week_start: Optional[date] = Query(None, alias="weekStart"),
    week_end: Optional[date] = Query(None, alias="weekEnd"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[WorkoutResponse]:
    """Scheduled workouts of a horse, optionally limited to a date range (inclusive)."""
    require_horse_view(db, current_user, horse_id)

    if week_start and week_end and week_start > week_end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="weekStart must not be after weekEnd",
        )

    query = db.query(Workout).filter(
        Workout.horse_id == horse_id,
        Workout.scheduled_date.isnot(None),
    )
    if week_start:
        query = query.filter(Workout.scheduled_date >= week_start)
    if week_end:
        query = query.filter(Workout.scheduled_date <= week_end)

    workouts = query.order_by(Workout.scheduled_date, Workout.slot, Workout.id).all()
    return [to_response(w) for w in workouts]


@router.get("/unscheduled", response_model=List[WorkoutResponse])
async def list_unscheduled(
    applied_plan_id: int = Query(..., alias="appliedPlanId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[WorkoutResponse]:
    """Workouts of a plan without a date, in schedule order."""
    try:
        plan = plan_workflow.get_applied_plan(db, applied_plan_id)
    except SchedulingError as e:
        raise to_http_exception(e)
    require_horse_view(db, current_user, plan.horse_id)

    workouts = db.query(Workout).filter(
        Workout.applied_plan_id == applied_plan_id,
        Workout.scheduled_date.is_(None),
    ).order_by(Workout.origin_week, Workout.origin_day).all()
    return [to_response(w) for w in workouts]


@router.get("/{workout_id}", response_model=WorkoutResponse)
async def get_workout(
    workout_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> WorkoutResponse:
    workout = _load_workout(db, workout_id)
    require_horse_view(db, current_user, workout.horse_id)
    return to_response(workout)


@router.put("/{workout_id}", response_model=WorkoutResponse)
async def update_workout(
    workout_id: int,
    update: WorkoutUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> WorkoutResponse:
    """Edit a workout's current data. Only the fields sent are changed."""
    workout = _load_workout(db, workout_id)
    require_horse_edit(db, current_user, workout.horse_id)

    try:
        workout = workout_editor.update_current_data(db, workout_id, update.changes())
    except SchedulingError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return to_response(workout)


@router.post("/{workout_id}/reset", response_model=WorkoutResponse)
async def reset_workout(
    workout_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> WorkoutResponse:
    """Throw away edits and restore the programme's original day."""
    workout = _load_workout(db, workout_id)
    require_horse_edit(db, current_user, workout.horse_id)

    try:
        workout = workout_editor.reset_to_baseline(db, workout_id)
    except SchedulingError as e:
        raise to_http_exception(e)

    return to_response(workout)


@router.post("/{workout_id}/reschedule", response_model=RescheduleResponse)
async def reschedule_workout(
    workout_id: int,
    request: RescheduleRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RescheduleResponse:
    """Move a workout to another date/slot, swapping with whatever is there."""
    workout = _load_workout(db, workout_id)
    require_horse_edit(db, current_user, workout.horse_id)

    try:
        result = workout_editor.reschedule(db, workout_id, request.target_date, request.slot)
    except SchedulingError as e:
        raise to_http_exception(e)

    return RescheduleResponse(
        workout=to_response(result.workout),
        swapped_with_id=result.swapped_with_id,
        rest_fill_id=result.rest_fill_id,
    )
