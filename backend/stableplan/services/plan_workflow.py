"""
Apply / repeat / amend workflow for applied plans.

- apply: put a published programme version on a horse's calendar
- repeat original: re-apply the same version at a new start date
- repeat amended: fork the source plan's edited workouts into a new
  published version and apply that
- status changes and removal of applied plans
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from stableplan.models.applied_plan import AppliedPlan, AppliedPlanStatus, Workout
from stableplan.models.horse import Horse
from stableplan.models.planned_session import ActualSessionLog, PlanBlock, PlannedSession
from stableplan.models.programme import ProgrammeStatus, ProgrammeVersion
from stableplan.schemas.schedule import DayEntry, entries_from_json, entries_to_json
from stableplan.services.errors import NotFoundError, PreconditionError
from stableplan.services.scheduler import (
    ApplyResult,
    PlanSpec,
    apply_schedule,
    check_conflicts,
    materialize,
    unit_of_work,
)

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (AppliedPlanStatus.COMPLETED, AppliedPlanStatus.CANCELLED)


def block_name(version: ProgrammeVersion, amended: bool = False) -> str:
    name = f"{version.programme.name} v{version.version}"
    return f"{name} (amended)" if amended else name


def get_horse(db: Session, horse_id: int) -> Horse:
    horse = db.get(Horse, horse_id)
    if horse is None:
        raise NotFoundError(f"Horse {horse_id} not found")
    return horse


def get_applied_plan(db: Session, plan_id: int) -> AppliedPlan:
    plan = db.get(AppliedPlan, plan_id)
    if plan is None:
        raise NotFoundError(f"Applied plan {plan_id} not found")
    return plan


def plan_workouts(db: Session, plan_id: int) -> List[Workout]:
    """Workouts of a plan in schedule order."""
    return db.query(Workout).filter(
        Workout.applied_plan_id == plan_id
    ).order_by(Workout.origin_week, Workout.origin_day, Workout.id).all()


def apply_programme(
    db: Session,
    horse_id: int,
    version_id: int,
    start_date: date,
    assigned_by_id: int,
) -> ApplyResult:
    """
    Apply a published programme version to a horse.

    Raises:
        NotFoundError: unknown horse or version
        PreconditionError: version not published or without schedule data
        ScheduleConflictError: the horse already has sessions on projected dates
    """
    get_horse(db, horse_id)

    version = db.get(ProgrammeVersion, version_id)
    if version is None:
        raise NotFoundError(f"Programme version {version_id} not found")
    if not version.is_published:
        raise PreconditionError("Can only apply a PUBLISHED programme version")

    entries = entries_from_json(version.schedule_data)
    if not entries:
        raise PreconditionError("Programme version has no schedule data")

    spec = PlanSpec(
        horse_id=horse_id,
        programme_id=version.programme_id,
        programme_version_id=version.id,
        assigned_by_id=assigned_by_id,
        start_date=start_date,
        block_name=block_name(version),
        num_weeks=version.num_weeks,
    )
    return apply_schedule(db, spec, entries)


def repeat_original(
    db: Session,
    source_plan_id: int,
    start_date: date,
    assigned_by_id: int,
) -> ApplyResult:
    """Re-apply the source plan's programme version, unedited, at ``start_date``."""
    source = get_applied_plan(db, source_plan_id)
    version = source.programme_version

    entries = entries_from_json(version.schedule_data)
    if not entries:
        raise PreconditionError("Source programme version has no schedule data")

    spec = PlanSpec(
        horse_id=source.horse_id,
        programme_id=version.programme_id,
        programme_version_id=version.id,
        assigned_by_id=assigned_by_id,
        start_date=start_date,
        block_name=block_name(version),
        num_weeks=version.num_weeks,
        source_applied_plan_id=source.id,
    )
    return apply_schedule(db, spec, entries, action="repeat")


def amended_entries(workouts: Sequence[Workout]) -> List[DayEntry]:
    """
    Rebuild day entries from workouts' current data at their origin positions.

    A position can hold two workouts after a move (the moved workout and the
    rest day filling its vacated date); the oldest workout wins.
    """
    entries: Dict[tuple, DayEntry] = {}
    for workout in sorted(workouts, key=lambda w: (w.origin_week, w.origin_day, w.id)):
        position = (workout.origin_week, workout.origin_day)
        if position in entries:
            continue
        entries[position] = DayEntry.from_json(workout.current_data).at(*position)
    return [entries[position] for position in sorted(entries)]


def fork_version(
    db: Session,
    source_version: ProgrammeVersion,
    entries: Sequence[DayEntry],
    num_weeks: int,
) -> ProgrammeVersion:
    """Add the next version of the source's programme, published, carrying its manual."""
    latest = db.query(func.max(ProgrammeVersion.version)).filter(
        ProgrammeVersion.programme_id == source_version.programme_id
    ).scalar() or 0

    forked = ProgrammeVersion(
        programme_id=source_version.programme_id,
        version=latest + 1,
        status=ProgrammeStatus.PUBLISHED,
        num_weeks=num_weeks,
        manual_html=source_version.manual_html,
        manual_file_name=source_version.manual_file_name,
        schedule_data=entries_to_json(entries),
        published_at=datetime.utcnow(),
    )
    db.add(forked)
    db.flush()
    return forked


def repeat_amended(
    db: Session,
    source_plan_id: int,
    start_date: date,
    assigned_by_id: int,
) -> ApplyResult:
    """
    Repeat a plan with the trainer's edits baked in.

    The edited workouts become a new published version of the programme;
    the fork and the new plan are written in one unit of work, after the
    collision pre-flight.
    """
    source = get_applied_plan(db, source_plan_id)
    source_version = source.programme_version

    workouts = plan_workouts(db, source.id)
    if not workouts:
        raise PreconditionError("Source plan has no workouts to derive from")

    entries = amended_entries(workouts)
    num_weeks = max(entry.week for entry in entries)

    spec = PlanSpec(
        horse_id=source.horse_id,
        programme_id=source_version.programme_id,
        programme_version_id=source_version.id,
        assigned_by_id=assigned_by_id,
        start_date=start_date,
        block_name=block_name(source_version, amended=True),
        num_weeks=num_weeks,
        source_applied_plan_id=source.id,
        is_amended=True,
    )
    check_conflicts(db, spec, entries, action="repeat")

    with unit_of_work(db):
        forked = fork_version(db, source_version, entries, num_weeks)
        spec.programme_version_id = forked.id
        spec.block_name = block_name(forked, amended=True)
        result = materialize(db, spec, entries)
        result.forked_version_id = forked.id
        result.forked_version = forked.version

    logger.info(
        f"Repeated plan {source.id} as amended plan {result.applied_plan_id} "
        f"(programme {forked.programme_id} v{forked.version})"
    )
    return result


def change_status(db: Session, plan_id: int, new_status: AppliedPlanStatus) -> AppliedPlan:
    """Move an ACTIVE plan to COMPLETED or CANCELLED."""
    plan = get_applied_plan(db, plan_id)

    if new_status not in TERMINAL_STATUSES:
        raise PreconditionError("Status can only be changed to COMPLETED or CANCELLED")
    if plan.status != AppliedPlanStatus.ACTIVE:
        raise PreconditionError(
            f"Cannot change status of a {plan.status.value} plan; only ACTIVE plans can change"
        )

    with unit_of_work(db):
        plan.status = new_status

    logger.info(f"Applied plan {plan_id} marked {new_status.value}")
    return plan


def remove_applied_plan(db: Session, plan_id: int) -> int:
    """
    Delete an applied plan with its workouts, plan blocks and planned sessions.

    Execution logs are kept; their link to a deleted planned session is
    cleared. Repeats of the plan lose their provenance link. Removing a plan
    that does not exist is a no-op.

    Returns:
        Number of workouts removed
    """
    if db.get(AppliedPlan, plan_id) is None:
        logger.info(f"Applied plan {plan_id} already removed")
        return 0

    block_ids = select(PlanBlock.id).where(PlanBlock.applied_plan_id == plan_id)
    workout_ids = select(Workout.id).where(Workout.applied_plan_id == plan_id)
    plan_sessions = or_(
        PlannedSession.plan_block_id.in_(block_ids),
        PlannedSession.workout_id.in_(workout_ids),
    )
    session_ids = select(PlannedSession.id).where(plan_sessions)

    with unit_of_work(db):
        db.query(ActualSessionLog).filter(
            ActualSessionLog.planned_session_id.in_(session_ids)
        ).update({ActualSessionLog.planned_session_id: None}, synchronize_session=False)

        db.query(AppliedPlan).filter(
            AppliedPlan.source_applied_plan_id == plan_id
        ).update({AppliedPlan.source_applied_plan_id: None}, synchronize_session=False)

        db.query(PlannedSession).filter(plan_sessions).delete(synchronize_session="fetch")
        db.query(PlanBlock).filter(
            PlanBlock.applied_plan_id == plan_id
        ).delete(synchronize_session="fetch")
        removed = db.query(Workout).filter(
            Workout.applied_plan_id == plan_id
        ).delete(synchronize_session="fetch")
        db.query(AppliedPlan).filter(AppliedPlan.id == plan_id).delete(synchronize_session="fetch")

    logger.info(f"Removed applied plan {plan_id} with {removed} workouts")
    return removed


def plan_summary(db: Session, plan: AppliedPlan) -> Dict[str, Any]:
    """Workout counts and scheduled date range of a plan."""
    workouts = plan_workouts(db, plan.id)
    dates = [w.scheduled_date for w in workouts if w.scheduled_date is not None]
    total = len(workouts)
    rest = sum(1 for w in workouts if w.is_rest)

    return {
        "total": total,
        "training_days": total - rest,
        "rest_days": rest,
        "earliest_date": min(dates) if dates else None,
        "latest_date": max(dates) if dates else None,
    }
