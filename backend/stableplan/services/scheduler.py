"""
Programme scheduler.

Projects a list of day entries onto a horse's calendar starting at a given
date, checks the projected dates against existing planned sessions, and
writes the applied plan, its plan block, one workout per entry and the
matching planned sessions inside a single unit of work.

The collision check is a pre-flight read; it is not serialized against
concurrent writers. The (horse, date, slot) unique constraint on planned
sessions is what finally prevents double booking: losing that race surfaces
as a ``MaterializationError`` with everything rolled back.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Iterator, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stableplan.config import settings
from stableplan.models.applied_plan import AppliedPlan, AppliedPlanStatus, Workout
from stableplan.models.planned_session import PlanBlock, PlannedSession, Slot
from stableplan.schemas.schedule import DayEntry
from stableplan.services.errors import (
    MaterializationError,
    PreconditionError,
    ScheduleConflictError,
    SchedulingError,
)
from stableplan.services.projection import project_to_session_fields

logger = logging.getLogger(__name__)


@dataclass
class PlanSpec:
    """Everything needed to create an applied plan besides its entries."""

    horse_id: int
    programme_id: int
    programme_version_id: int
    assigned_by_id: int
    start_date: date
    block_name: str
    num_weeks: int
    source_applied_plan_id: Optional[int] = None
    is_amended: bool = False
    slot: Slot = Slot(settings.DEFAULT_SLOT)


@dataclass
class ApplyResult:
    """Identifiers of a freshly materialized plan."""

    applied_plan_id: int
    plan_block_id: int
    work_item_count: int
    forked_version_id: Optional[int] = None
    forked_version: Optional[int] = None


def scheduled_date_for(start_date: date, week: int, day: int) -> date:
    """Calendar date of schedule position (week, day) for a plan starting on ``start_date``."""
    return start_date + timedelta(days=(week - 1) * 7 + (day - 1))


def project_dates(entries: Iterable[DayEntry], start_date: date) -> List[date]:
    return [scheduled_date_for(start_date, entry.week, entry.day) for entry in entries]


def find_conflicts(
    db: Session,
    horse_id: int,
    dates: Iterable[date],
    slot: Slot = Slot.AM,
) -> List[str]:
    """
    Return the ISO dates among ``dates`` that already hold a planned session
    for this horse and slot, in ascending order.
    """
    wanted = set(dates)
    if not wanted:
        return []

    rows = db.query(PlannedSession.date).filter(
        PlannedSession.horse_id == horse_id,
        PlannedSession.slot == slot,
        PlannedSession.date.in_(wanted),
    ).order_by(PlannedSession.date).all()

    return [row.date.isoformat() for row in rows]


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Run a block of writes as one transaction.

    Commits when the block finishes, rolls back on any exception. Storage
    errors are logged and re-raised as ``MaterializationError``; scheduling
    errors raised by the block propagate unchanged.
    """
    try:
        yield db
        db.commit()
    except SchedulingError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Unit of work failed, rolled back")
        raise MaterializationError("Failed to save changes; nothing was written") from e
    except Exception:
        db.rollback()
        raise


def create_workout(
    db: Session,
    plan: AppliedPlan,
    block: Optional[PlanBlock],
    entry: DayEntry,
    scheduled_date: Optional[date],
    slot: Slot,
) -> Workout:
    """Add a workout for ``entry`` and, when it is scheduled, its planned session."""
    workout = Workout(
        applied_plan=plan,
        horse_id=plan.horse_id,
        origin_week=entry.week,
        origin_day=entry.day,
        scheduled_date=scheduled_date,
        slot=slot,
        baseline_data=entry.to_json(),
        current_data=entry.to_json(),
        is_rest=entry.is_rest,
    )
    db.add(workout)

    if scheduled_date is not None and block is not None:
        db.add(PlannedSession(
            plan_block=block,
            horse_id=plan.horse_id,
            workout=workout,
            date=scheduled_date,
            slot=slot,
            **project_to_session_fields(entry).as_columns(),
        ))

    return workout


def materialize(db: Session, spec: PlanSpec, entries: Sequence[DayEntry]) -> ApplyResult:
    """
    Write the applied plan for ``entries`` into the current transaction.

    Only flushes; committing or rolling back is the caller's unit of work.
    """
    plan = AppliedPlan(
        horse_id=spec.horse_id,
        programme_version_id=spec.programme_version_id,
        assigned_by_id=spec.assigned_by_id,
        start_date=spec.start_date,
        status=AppliedPlanStatus.ACTIVE,
        source_applied_plan_id=spec.source_applied_plan_id,
        is_amended=spec.is_amended,
    )
    db.add(plan)

    block = PlanBlock(
        horse_id=spec.horse_id,
        programme_id=spec.programme_id,
        applied_plan=plan,
        name=spec.block_name,
        start_date=spec.start_date,
        num_weeks=spec.num_weeks,
    )
    db.add(block)

    for entry in entries:
        scheduled = scheduled_date_for(spec.start_date, entry.week, entry.day)
        create_workout(db, plan, block, entry, scheduled, spec.slot)

    db.flush()

    return ApplyResult(
        applied_plan_id=plan.id,
        plan_block_id=block.id,
        work_item_count=len(entries),
    )


def check_conflicts(db: Session, spec: PlanSpec, entries: Sequence[DayEntry], action: str) -> None:
    conflict_dates = find_conflicts(
        db, spec.horse_id, project_dates(entries, spec.start_date), spec.slot
    )
    if conflict_dates:
        logger.warning(
            f"Refusing to {action} on horse {spec.horse_id}: "
            f"{len(conflict_dates)} conflicting date(s) from {spec.start_date}"
        )
        raise ScheduleConflictError(conflict_dates, action=action, slot=spec.slot.value)


def apply_schedule(
    db: Session,
    spec: PlanSpec,
    entries: Sequence[DayEntry],
    action: str = "apply",
) -> ApplyResult:
    """
    Apply ``entries`` to a horse's calendar from ``spec.start_date``.

    Args:
        db: Database session; the write happens in its own unit of work
        spec: Plan metadata (horse, version, start date, provenance)
        entries: Day entries to materialize, one workout each
        action: Verb used in the conflict message ("apply" or "repeat")

    Returns:
        ApplyResult with the new plan and plan block IDs

    Raises:
        PreconditionError: if ``entries`` is empty
        ScheduleConflictError: if any projected date is already booked
        MaterializationError: if the write fails; nothing is persisted
    """
    if not entries:
        raise PreconditionError("Programme version has no schedule data")

    check_conflicts(db, spec, entries, action)

    with unit_of_work(db):
        result = materialize(db, spec, entries)

    logger.info(
        f"Applied plan {result.applied_plan_id} to horse {spec.horse_id}: "
        f"{result.work_item_count} workouts from {spec.start_date}"
    )
    return result
