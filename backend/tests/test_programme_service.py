"""Integration tests for the programme version lifecycle."""

import pytest

from conftest import MONDAY, build_week
from stableplan.models import ProgrammeStatus, ProgrammeVersion, User, UserRole
from stableplan.services import plan_workflow, programme_service
from stableplan.services.errors import NotFoundError, PreconditionError, ScheduleParseError

GOOD_CSV = "\n".join([
    "Week,Day,Session,Type,Duration (min),Notes",
    "1,Mon,Flat work,training,30,ignored",
    "1,Wed,Hack,training,45,ignored",
    "2,Mon,Jumping,training,40,ignored",
])


@pytest.mark.integration
class TestCreate:

    def test_create_programme(self, db_session, trainer):
        programme = programme_service.create_programme(db_session, "Fittening", "Six weeks", trainer.id)

        assert programme.id is not None
        assert programme.status is None
        assert programme.latest_version_id is None

    def test_create_version_numbers_increase(self, db_session, programme):
        first = programme_service.create_version(db_session, programme.id, 1, build_week())
        second = programme_service.create_version(db_session, programme.id, 1, build_week())

        assert (first.version, second.version) == (1, 2)
        assert first.status == ProgrammeStatus.DRAFT
        assert programme.status == ProgrammeStatus.DRAFT
        assert len(second.schedule_data) == 7

    def test_create_version_requires_seven_entries_per_week(self, db_session, programme):
        with pytest.raises(PreconditionError, match="Expected 14 day entries"):
            programme_service.create_version(db_session, programme.id, 2, build_week())

    def test_create_version_rejects_duplicate_positions(self, db_session, programme):
        entries = build_week()[:6] + [build_week()[0]]

        with pytest.raises(PreconditionError, match="unique"):
            programme_service.create_version(db_session, programme.id, 1, entries)

    def test_create_version_rejects_too_many_weeks(self, db_session, programme):
        with pytest.raises(PreconditionError, match="between 1 and 52"):
            programme_service.create_version(db_session, programme.id, 53, build_week())

    def test_unknown_programme(self, db_session):
        with pytest.raises(NotFoundError):
            programme_service.create_version(db_session, 999, 1, build_week())


@pytest.mark.integration
class TestImport:

    def test_import_creates_draft_with_warnings(self, db_session, programme):
        version, warnings = programme_service.import_schedule(
            db_session, programme.id, GOOD_CSV, manual_file_name="manual.docx"
        )

        assert version.status == ProgrammeStatus.DRAFT
        assert version.num_weeks == 2
        assert len(version.schedule_data) == 14
        assert version.schedule_data[0]["title"] == "Flat work"
        assert version.schedule_data[0]["durationMin"] == 30
        assert version.schedule_data[1]["category"] == "rest"
        assert version.manual_file_name == "manual.docx"
        assert warnings == ['Warning: unknown column "notes" will be ignored']

    def test_import_failure_raises_with_diagnostics(self, db_session, programme):
        with pytest.raises(ScheduleParseError) as exc_info:
            programme_service.import_schedule(db_session, programme.id, "week,day,title\n1,1,Flat")

        assert 'Missing required column: "category"' in exc_info.value.diagnostics
        assert programme.versions == []


@pytest.mark.integration
class TestPublish:

    def test_publish_makes_version_latest(self, db_session, programme):
        draft = programme_service.create_version(db_session, programme.id, 1, build_week())

        published = programme_service.publish_version(db_session, programme.id, draft.id)

        assert published.status == ProgrammeStatus.PUBLISHED
        assert published.published_at is not None
        assert programme.latest_version_id == draft.id
        assert programme.status == ProgrammeStatus.PUBLISHED

    def test_publish_twice(self, db_session, programme):
        draft = programme_service.create_version(db_session, programme.id, 1, build_week())
        programme_service.publish_version(db_session, programme.id, draft.id)

        with pytest.raises(PreconditionError, match="already published"):
            programme_service.publish_version(db_session, programme.id, draft.id)

    def test_publish_archived_version(self, db_session, programme):
        draft = programme_service.create_version(db_session, programme.id, 1, build_week())
        draft.status = ProgrammeStatus.ARCHIVED
        db_session.commit()

        with pytest.raises(PreconditionError, match="archived"):
            programme_service.publish_version(db_session, programme.id, draft.id)

    def test_publish_version_of_other_programme(self, db_session, trainer, programme):
        other = programme_service.create_programme(db_session, "Other", None, trainer.id)
        draft = programme_service.create_version(db_session, other.id, 1, build_week())

        with pytest.raises(NotFoundError):
            programme_service.publish_version(db_session, programme.id, draft.id)


@pytest.mark.integration
class TestArchive:

    def test_archive(self, db_session, programme):
        archived = programme_service.archive_programme(db_session, programme.id)

        assert archived.status == ProgrammeStatus.ARCHIVED

    def test_archived_programme_takes_no_versions(self, db_session, programme):
        programme_service.archive_programme(db_session, programme.id)

        with pytest.raises(PreconditionError):
            programme_service.create_version(db_session, programme.id, 1, build_week())
        with pytest.raises(PreconditionError, match="already archived"):
            programme_service.archive_programme(db_session, programme.id)


@pytest.mark.integration
class TestManage:

    def test_list_is_scoped_to_creator(self, db_session, trainer, rider, programme):
        programme_service.create_programme(db_session, "Athletic", None, trainer.id)
        admin = User(email="admin@example.com", name="Ada Admin", role=UserRole.ADMIN)
        db_session.add(admin)
        db_session.commit()

        assert [p.name for p in programme_service.list_programmes(db_session, trainer)] == ["Athletic", "Foundation"]
        assert programme_service.list_programmes(db_session, rider) == []
        assert len(programme_service.list_programmes(db_session, admin)) == 2

    def test_update_replaces_name_and_description(self, db_session, programme):
        programme_service.update_programme(db_session, programme.id, "Foundation II", None)

        assert programme.name == "Foundation II"
        assert programme.description is None

    def test_delete_cascades_to_versions(self, db_session, programme):
        draft = programme_service.create_version(db_session, programme.id, 1, build_week())
        draft_id = draft.id

        programme_service.delete_programme(db_session, programme.id)

        assert db_session.get(ProgrammeVersion, draft_id) is None
        with pytest.raises(NotFoundError):
            programme_service.get_programme(db_session, programme.id)

    def test_delete_refused_once_applied(self, db_session, trainer, horse, programme, published_version):
        plan_workflow.apply_programme(db_session, horse.id, published_version.id, MONDAY, trainer.id)

        with pytest.raises(PreconditionError, match="archive it instead"):
            programme_service.delete_programme(db_session, programme.id)
