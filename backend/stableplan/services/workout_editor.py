"""
In-place editing of applied-plan workouts.

Edits only ever touch ``current_data``; ``baseline_data`` keeps what the
programme said so a workout can be reset and a plan can be repeated with or
without the edits. Every change re-projects the workout's planned sessions
so the calendar and the workout stay in step.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from stableplan.config import settings
from stableplan.models.applied_plan import AppliedPlan, Workout
from stableplan.models.planned_session import PlanBlock, PlannedSession, Slot
from stableplan.schemas.schedule import DayEntry
from stableplan.services.errors import NotFoundError, PreconditionError, ScheduleConflictError
from stableplan.services.projection import project_to_session_fields
from stableplan.services.scheduler import create_workout, unit_of_work

logger = logging.getLogger(__name__)


@dataclass
class RescheduleResult:
    workout: Workout
    swapped_with_id: Optional[int] = None
    rest_fill_id: Optional[int] = None


def get_workout(db: Session, workout_id: int) -> Workout:
    workout = db.get(Workout, workout_id)
    if workout is None:
        raise NotFoundError(f"Workout {workout_id} not found")
    return workout


def _require_active(workout: Workout) -> AppliedPlan:
    plan = workout.applied_plan
    if not plan.is_active:
        raise PreconditionError(
            f"Cannot modify a workout of a {plan.status.value} plan; only ACTIVE plans can change"
        )
    return plan


def _apply_entry(workout: Workout, entry: DayEntry) -> None:
    """Store ``entry`` as the current data and re-project linked sessions."""
    workout.current_data = entry.to_json()
    workout.is_rest = entry.is_rest

    fields = project_to_session_fields(entry).as_columns()
    for session in workout.planned_sessions:
        for column, value in fields.items():
            setattr(session, column, value)


def changed_fields(baseline: Dict[str, Any], current: Dict[str, Any]) -> List[str]:
    """Keys whose values differ between two day entry snapshots."""
    keys = set(baseline) | set(current)
    return sorted(key for key in keys if baseline.get(key) != current.get(key))


def update_current_data(db: Session, workout_id: int, changes: Dict[str, Any]) -> Workout:
    """
    Merge a partial update (camelCase keys) into a workout's current data.

    Raises:
        NotFoundError: unknown workout
        PreconditionError: the workout's plan is not ACTIVE
        ValueError: the merged data is not a valid day entry
    """
    workout = get_workout(db, workout_id)
    _require_active(workout)

    # Position belongs to the workout row, never to an edit
    merged = {**workout.current_data, **changes}
    merged["week"] = workout.origin_week
    merged["day"] = workout.origin_day
    entry = DayEntry.from_json(merged)

    with unit_of_work(db):
        _apply_entry(workout, entry)

    logger.info(
        f"Updated workout {workout_id}: "
        f"{', '.join(changed_fields(workout.baseline_data, workout.current_data)) or 'no changes'}"
    )
    return workout


def reset_to_baseline(db: Session, workout_id: int) -> Workout:
    """Discard edits: current data becomes the baseline again."""
    workout = get_workout(db, workout_id)
    _require_active(workout)

    with unit_of_work(db):
        _apply_entry(workout, DayEntry.from_json(workout.baseline_data))

    logger.info(f"Reset workout {workout_id} to baseline")
    return workout


def _plan_block(db: Session, plan_id: int) -> Optional[PlanBlock]:
    return db.query(PlanBlock).filter(
        PlanBlock.applied_plan_id == plan_id
    ).order_by(PlanBlock.id).first()


def _drop_sessions(db: Session, workouts: List[Workout]) -> None:
    db.query(PlannedSession).filter(
        PlannedSession.workout_id.in_([w.id for w in workouts])
    ).delete(synchronize_session="fetch")
    for workout in workouts:
        db.expire(workout, ["planned_sessions"])


def _add_session(db: Session, workout: Workout) -> None:
    block = _plan_block(db, workout.applied_plan_id)
    if block is None or workout.scheduled_date is None:
        return
    entry = DayEntry.from_json(workout.current_data)
    db.add(PlannedSession(
        plan_block_id=block.id,
        horse_id=workout.horse_id,
        workout_id=workout.id,
        date=workout.scheduled_date,
        slot=workout.slot,
        **project_to_session_fields(entry).as_columns(),
    ))


def reschedule(
    db: Session,
    workout_id: int,
    target_date: date,
    slot: Optional[Slot] = None,
) -> RescheduleResult:
    """
    Move a scheduled workout to ``target_date`` / ``slot``.

    ``slot`` defaults to the configured default slot. If another workout
    of the horse sits on the target, the two swap positions; that
    workout's plan must be ACTIVE too. Otherwise the workout moves, and a
    rest day fills the vacated date when nothing else of its plan is left
    there.

    Raises:
        NotFoundError: unknown workout
        PreconditionError: either plan not ACTIVE, or the workout is unscheduled
        ScheduleConflictError: the target holds a planned session that
            belongs to no workout
    """
    workout = get_workout(db, workout_id)
    plan = _require_active(workout)

    if workout.scheduled_date is None:
        raise PreconditionError("Workout is not scheduled; schedule it before moving it")

    target_slot = slot or Slot(settings.DEFAULT_SLOT)
    if workout.scheduled_date == target_date and workout.slot == target_slot:
        return RescheduleResult(workout=workout)

    occupant = db.query(Workout).filter(
        Workout.horse_id == workout.horse_id,
        Workout.scheduled_date == target_date,
        Workout.slot == target_slot,
        Workout.id != workout.id,
    ).order_by(Workout.id).first()
    if occupant is not None and not occupant.applied_plan.is_active:
        raise PreconditionError(
            f"Cannot swap with workout {occupant.id} of a "
            f"{occupant.applied_plan.status.value} plan"
        )

    blocking = db.query(PlannedSession.id).filter(
        PlannedSession.horse_id == workout.horse_id,
        PlannedSession.date == target_date,
        PlannedSession.slot == target_slot,
    )
    if occupant is not None:
        blocking = blocking.filter(or_(
            PlannedSession.workout_id.is_(None),
            PlannedSession.workout_id != occupant.id,
        ))
    if blocking.first() is not None:
        raise ScheduleConflictError(
            [target_date.isoformat()], action="reschedule", slot=target_slot.value
        )

    old_date, old_slot = workout.scheduled_date, workout.slot
    result = RescheduleResult(workout=workout)

    with unit_of_work(db):
        moving = [workout] if occupant is None else [workout, occupant]
        _drop_sessions(db, moving)
        db.flush()

        workout.scheduled_date, workout.slot = target_date, target_slot
        if occupant is not None:
            occupant.scheduled_date, occupant.slot = old_date, old_slot
            result.swapped_with_id = occupant.id
        db.flush()

        for moved in moving:
            _add_session(db, moved)

        if occupant is None:
            left_behind = db.query(Workout.id).filter(
                Workout.applied_plan_id == plan.id,
                Workout.scheduled_date == old_date,
            ).first()
            if left_behind is None:
                filler = create_workout(
                    db,
                    plan,
                    _plan_block(db, plan.id),
                    DayEntry.rest(workout.origin_week, workout.origin_day),
                    old_date,
                    old_slot,
                )
                db.flush()
                result.rest_fill_id = filler.id

    if occupant is not None:
        logger.info(f"Swapped workout {workout_id} with workout {occupant.id}")
    else:
        logger.info(f"Moved workout {workout_id} from {old_date} to {target_date} {target_slot.value}")
    return result
