"""
Integration tests for apply / repeat / amend, status changes and removal
of applied plans.
"""

from datetime import date

import pytest
from sqlalchemy import func

from conftest import MONDAY
from stableplan.models import (
    ActualSessionLog,
    AppliedPlan,
    AppliedPlanStatus,
    PlanBlock,
    PlannedSession,
    ProgrammeStatus,
    ProgrammeVersion,
    Slot,
    Workout,
)
from stableplan.services import plan_workflow
from stableplan.services.errors import NotFoundError, PreconditionError, ScheduleConflictError
from stableplan.services.workout_editor import update_current_data

NEXT_MONDAY = date(2025, 1, 13)


@pytest.fixture
def applied(db_session, horse, trainer, published_version):
    """The published one-week version applied from MONDAY."""
    result = plan_workflow.apply_programme(
        db_session, horse.id, published_version.id, MONDAY, trainer.id
    )
    return db_session.get(AppliedPlan, result.applied_plan_id)


def workout_on(db, plan_id, on):
    return db.query(Workout).filter(
        Workout.applied_plan_id == plan_id, Workout.scheduled_date == on
    ).one()


# =============================================================================
# Apply
# =============================================================================


@pytest.mark.integration
class TestApplyProgramme:

    def test_apply_names_block_after_programme(self, db_session, applied):
        block = db_session.query(PlanBlock).filter(PlanBlock.applied_plan_id == applied.id).one()

        assert block.name == "Foundation v1"
        assert block.num_weeks == 1
        assert block.programme_id == applied.programme_version.programme_id

    def test_unknown_horse(self, db_session, trainer, published_version):
        with pytest.raises(NotFoundError):
            plan_workflow.apply_programme(db_session, 999, published_version.id, MONDAY, trainer.id)

    def test_unknown_version(self, db_session, horse, trainer):
        with pytest.raises(NotFoundError):
            plan_workflow.apply_programme(db_session, horse.id, 999, MONDAY, trainer.id)

    def test_draft_version_cannot_be_applied(self, db_session, horse, trainer, published_version):
        published_version.status = ProgrammeStatus.DRAFT
        db_session.commit()

        with pytest.raises(PreconditionError, match="PUBLISHED"):
            plan_workflow.apply_programme(
                db_session, horse.id, published_version.id, MONDAY, trainer.id
            )

    def test_version_without_schedule(self, db_session, horse, trainer, published_version):
        published_version.schedule_data = []
        db_session.commit()

        with pytest.raises(PreconditionError, match="no schedule data"):
            plan_workflow.apply_programme(
                db_session, horse.id, published_version.id, MONDAY, trainer.id
            )

    def test_applying_twice_on_same_dates_conflicts(self, db_session, horse, trainer, applied):
        with pytest.raises(ScheduleConflictError) as exc_info:
            plan_workflow.apply_programme(
                db_session, horse.id, applied.programme_version_id, date(2025, 1, 10), trainer.id
            )

        assert exc_info.value.conflict_dates == ["2025-01-10", "2025-01-11", "2025-01-12"]


# =============================================================================
# Repeat
# =============================================================================


@pytest.mark.integration
class TestRepeat:

    def test_repeat_original(self, db_session, trainer, applied):
        result = plan_workflow.repeat_original(db_session, applied.id, NEXT_MONDAY, trainer.id)

        repeat = db_session.get(AppliedPlan, result.applied_plan_id)
        assert repeat.source_applied_plan_id == applied.id
        assert repeat.programme_version_id == applied.programme_version_id
        assert repeat.is_amended is False
        assert result.forked_version is None
        assert plan_workflow.plan_summary(db_session, repeat)["earliest_date"] == NEXT_MONDAY

    def test_repeat_original_ignores_edits(self, db_session, trainer, applied):
        update_current_data(db_session, workout_on(db_session, applied.id, MONDAY).id, {"title": "Long hack"})

        result = plan_workflow.repeat_original(db_session, applied.id, NEXT_MONDAY, trainer.id)

        first = workout_on(db_session, result.applied_plan_id, NEXT_MONDAY)
        assert first.current_data["title"] == "Flat work"

    def test_repeat_conflict_message(self, db_session, trainer, applied):
        with pytest.raises(ScheduleConflictError, match="Cannot repeat"):
            plan_workflow.repeat_original(db_session, applied.id, MONDAY, trainer.id)

    def test_unknown_source_plan(self, db_session, trainer):
        with pytest.raises(NotFoundError):
            plan_workflow.repeat_amended(db_session, 999, NEXT_MONDAY, trainer.id)

    def test_amended_repeat_without_edits_forks_identical_schedule(
        self, db_session, trainer, applied, published_version
    ):
        source_schedule = list(published_version.schedule_data)

        result = plan_workflow.repeat_amended(db_session, applied.id, NEXT_MONDAY, trainer.id)

        forked = db_session.get(ProgrammeVersion, result.forked_version_id)
        assert forked.schedule_data == source_schedule
        assert forked.version == 2
        assert result.forked_version == 2
        assert forked.status == ProgrammeStatus.PUBLISHED
        assert forked.published_at is not None
        assert forked.manual_html == "<h1>Foundation manual</h1>"
        assert forked.manual_file_name == "foundation.docx"

    def test_amended_repeat_carries_edits_forward(self, db_session, trainer, applied):
        tuesday = workout_on(db_session, applied.id, date(2025, 1, 7))
        update_current_data(db_session, tuesday.id, {"title": "Extended hack"})

        amended = plan_workflow.repeat_amended(db_session, applied.id, NEXT_MONDAY, trainer.id)

        forked = db_session.get(ProgrammeVersion, amended.forked_version_id)
        forked_entry = next(e for e in forked.schedule_data if (e["week"], e["day"]) == (1, 2))
        assert forked_entry["title"] == "Extended hack"

        plan = db_session.get(AppliedPlan, amended.applied_plan_id)
        assert plan.is_amended is True
        assert plan.source_applied_plan_id == applied.id
        assert plan.programme_version_id == forked.id
        block = db_session.query(PlanBlock).filter(PlanBlock.applied_plan_id == plan.id).one()
        assert block.name == "Foundation v2 (amended)"

        again = plan_workflow.repeat_original(db_session, plan.id, date(2025, 1, 20), trainer.id)

        repeated = workout_on(db_session, again.applied_plan_id, date(2025, 1, 21))
        assert repeated.baseline_data["title"] == "Extended hack"
        assert repeated.current_data["title"] == "Extended hack"

    def test_amended_repeat_conflict_forks_nothing(self, db_session, trainer, applied):
        versions_before = db_session.query(func.count(ProgrammeVersion.id)).scalar()
        plans_before = db_session.query(func.count(AppliedPlan.id)).scalar()

        with pytest.raises(ScheduleConflictError):
            plan_workflow.repeat_amended(db_session, applied.id, date(2025, 1, 12), trainer.id)

        assert db_session.query(func.count(ProgrammeVersion.id)).scalar() == versions_before
        assert db_session.query(func.count(AppliedPlan.id)).scalar() == plans_before

    def test_amended_repeat_needs_workouts(self, db_session, trainer, applied):
        db_session.query(PlannedSession).delete()
        db_session.query(Workout).delete()
        db_session.commit()

        with pytest.raises(PreconditionError, match="no workouts"):
            plan_workflow.repeat_amended(db_session, applied.id, NEXT_MONDAY, trainer.id)

    def test_amended_entries_prefer_oldest_workout_per_position(self, db_session, applied):
        workouts = plan_workflow.plan_workouts(db_session, applied.id)
        first = workouts[0]
        filler = Workout(
            applied_plan_id=applied.id,
            horse_id=applied.horse_id,
            origin_week=first.origin_week,
            origin_day=first.origin_day,
            scheduled_date=None,
            slot=Slot.AM,
            baseline_data={"week": 1, "day": 1, "title": "Rest", "category": "rest"},
            current_data={"week": 1, "day": 1, "title": "Rest", "category": "rest"},
            is_rest=True,
        )
        db_session.add(filler)
        db_session.commit()

        entries = plan_workflow.amended_entries(plan_workflow.plan_workouts(db_session, applied.id))

        assert len(entries) == 7
        assert entries[0].title == "Flat work"


# =============================================================================
# Status and summary
# =============================================================================


@pytest.mark.integration
class TestStatus:

    @pytest.mark.parametrize("new_status", [AppliedPlanStatus.COMPLETED, AppliedPlanStatus.CANCELLED])
    def test_active_plan_can_finish(self, db_session, applied, new_status):
        plan = plan_workflow.change_status(db_session, applied.id, new_status)

        assert plan.status == new_status
        assert not plan.is_active

    def test_terminal_status_is_final(self, db_session, applied):
        plan_workflow.change_status(db_session, applied.id, AppliedPlanStatus.COMPLETED)

        with pytest.raises(PreconditionError):
            plan_workflow.change_status(db_session, applied.id, AppliedPlanStatus.CANCELLED)

    def test_cannot_move_back_to_active(self, db_session, applied):
        with pytest.raises(PreconditionError):
            plan_workflow.change_status(db_session, applied.id, AppliedPlanStatus.ACTIVE)

    def test_plan_summary(self, db_session, applied):
        summary = plan_workflow.plan_summary(db_session, applied)

        assert summary == {
            "total": 7,
            "training_days": 5,
            "rest_days": 2,
            "earliest_date": date(2025, 1, 6),
            "latest_date": date(2025, 1, 12),
        }


# =============================================================================
# Removal
# =============================================================================


@pytest.mark.integration
class TestRemove:

    def test_remove_deletes_plan_rows(self, db_session, applied):
        plan_id = applied.id

        removed = plan_workflow.remove_applied_plan(db_session, plan_id)

        assert removed == 7
        assert db_session.get(AppliedPlan, plan_id) is None
        assert db_session.query(Workout).filter(Workout.applied_plan_id == plan_id).count() == 0
        assert db_session.query(PlanBlock).filter(PlanBlock.applied_plan_id == plan_id).count() == 0
        assert db_session.query(func.count(PlannedSession.id)).scalar() == 0

    def test_remove_keeps_logs_and_clears_their_link(self, db_session, trainer, applied):
        session = db_session.query(PlannedSession).filter(PlannedSession.date == MONDAY).one()
        log = ActualSessionLog(
            horse_id=applied.horse_id,
            date=MONDAY,
            slot=Slot.AM,
            planned_session_id=session.id,
            session_type="Flat work",
            duration_minutes=35,
            rider="Rory",
            created_by_id=trainer.id,
        )
        db_session.add(log)
        db_session.commit()
        log_id = log.id

        plan_workflow.remove_applied_plan(db_session, applied.id)

        kept = db_session.get(ActualSessionLog, log_id)
        assert kept is not None
        assert kept.planned_session_id is None
        assert kept.duration_minutes == 35

    def test_remove_clears_provenance_of_repeats(self, db_session, trainer, applied):
        result = plan_workflow.repeat_original(db_session, applied.id, NEXT_MONDAY, trainer.id)

        plan_workflow.remove_applied_plan(db_session, applied.id)

        repeat = db_session.get(AppliedPlan, result.applied_plan_id)
        assert repeat is not None
        assert repeat.source_applied_plan_id is None
        assert db_session.query(Workout).filter(
            Workout.applied_plan_id == repeat.id
        ).count() == 7

    def test_remove_frees_dates_for_reapply(self, db_session, horse, trainer, applied):
        version_id = applied.programme_version_id
        plan_workflow.remove_applied_plan(db_session, applied.id)

        result = plan_workflow.apply_programme(db_session, horse.id, version_id, MONDAY, trainer.id)

        assert result.work_item_count == 7

    def test_remove_is_idempotent(self, db_session, applied):
        plan_workflow.remove_applied_plan(db_session, applied.id)

        assert plan_workflow.remove_applied_plan(db_session, applied.id) == 0
        assert plan_workflow.remove_applied_plan(db_session, 999) == 0
