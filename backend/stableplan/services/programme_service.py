"""
Programme version lifecycle.

Versions are created as DRAFTs, either from JSON day entries or from an
uploaded schedule.csv, and become appliable once published. A published
version is never edited again; changes go into a new version.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from stableplan.config import settings
from stableplan.models.applied_plan import AppliedPlan
from stableplan.models.programme import Programme, ProgrammeStatus, ProgrammeVersion
from stableplan.models.user import User
from stableplan.schemas.schedule import DayEntry, entries_to_json
from stableplan.services.errors import NotFoundError, PreconditionError, ScheduleParseError
from stableplan.services.schedule_parser import parse_schedule
from stableplan.services.scheduler import unit_of_work

logger = logging.getLogger(__name__)


def get_programme(db: Session, programme_id: int) -> Programme:
    programme = db.get(Programme, programme_id)
    if programme is None:
        raise NotFoundError(f"Programme {programme_id} not found")
    return programme


def get_version(db: Session, programme_id: int, version_id: int) -> ProgrammeVersion:
    version = db.query(ProgrammeVersion).filter(
        ProgrammeVersion.id == version_id,
        ProgrammeVersion.programme_id == programme_id,
    ).first()
    if version is None:
        raise NotFoundError(f"Programme version {version_id} not found")
    return version


def create_programme(
    db: Session,
    name: str,
    description: Optional[str],
    created_by_id: int,
) -> Programme:
    programme = Programme(name=name, description=description, created_by_id=created_by_id)
    with unit_of_work(db):
        db.add(programme)

    logger.info(f"Created programme {programme.id} '{name}'")
    return programme


def list_programmes(db: Session, user: User) -> List[Programme]:
    """Programmes visible to ``user``: admins see all, everyone else only their own."""
    query = db.query(Programme)
    if not user.is_admin:
        query = query.filter(Programme.created_by_id == user.id)
    return query.order_by(Programme.name, Programme.id).all()


def update_programme(
    db: Session,
    programme_id: int,
    name: str,
    description: Optional[str],
) -> Programme:
    programme = get_programme(db, programme_id)
    with unit_of_work(db):
        programme.name = name
        programme.description = description

    logger.info(f"Updated programme {programme_id}")
    return programme


def delete_programme(db: Session, programme_id: int) -> None:
    """
    Delete a programme with all of its versions.

    A programme whose versions were applied to a horse cannot be deleted;
    archive it instead.
    """
    programme = get_programme(db, programme_id)

    applied = db.query(AppliedPlan.id).join(
        ProgrammeVersion, AppliedPlan.programme_version_id == ProgrammeVersion.id
    ).filter(ProgrammeVersion.programme_id == programme_id).first()
    if applied is not None:
        raise PreconditionError("Programme has applied plans; archive it instead")

    with unit_of_work(db):
        db.delete(programme)

    logger.info(f"Deleted programme {programme_id}")


def validate_entries(num_weeks: int, entries: Sequence[DayEntry]) -> None:
    """A version must hold exactly seven entries per week, one per (week, day)."""
    if not 1 <= num_weeks <= settings.MAX_SCHEDULE_WEEKS:
        raise PreconditionError(
            f"num_weeks must be between 1 and {settings.MAX_SCHEDULE_WEEKS}, got {num_weeks}"
        )

    expected = num_weeks * 7
    if len(entries) != expected:
        raise PreconditionError(
            f"Expected {expected} day entries for {num_weeks} weeks, got {len(entries)}"
        )

    positions = {entry.position for entry in entries}
    if len(positions) != len(entries):
        raise PreconditionError("Day entries must have unique (week, day) positions")
    if any(week > num_weeks for week, _ in positions):
        raise PreconditionError(f"Day entries must not go beyond week {num_weeks}")


def create_version(
    db: Session,
    programme_id: int,
    num_weeks: int,
    entries: Sequence[DayEntry],
    manual_html: Optional[str] = None,
    manual_file_name: Optional[str] = None,
) -> ProgrammeVersion:
    """
    Add a DRAFT version to a programme.

    The new version number is one above the highest existing one. An
    archived programme cannot take new versions.
    """
    programme = get_programme(db, programme_id)
    if programme.status == ProgrammeStatus.ARCHIVED:
        raise PreconditionError("Cannot add a version to an archived programme")

    validate_entries(num_weeks, entries)

    latest = db.query(func.max(ProgrammeVersion.version)).filter(
        ProgrammeVersion.programme_id == programme_id
    ).scalar() or 0

    version = ProgrammeVersion(
        programme_id=programme_id,
        version=latest + 1,
        status=ProgrammeStatus.DRAFT,
        num_weeks=num_weeks,
        manual_html=manual_html,
        manual_file_name=manual_file_name,
        schedule_data=entries_to_json(sorted(entries, key=lambda e: e.position)),
    )

    with unit_of_work(db):
        db.add(version)
        if programme.status is None:
            programme.status = ProgrammeStatus.DRAFT

    logger.info(
        f"Created draft version {version.version} of programme {programme_id} "
        f"({num_weeks} weeks)"
    )
    return version


def import_schedule(
    db: Session,
    programme_id: int,
    raw: Union[str, bytes],
    manual_html: Optional[str] = None,
    manual_file_name: Optional[str] = None,
) -> Tuple[ProgrammeVersion, List[str]]:
    """
    Create a DRAFT version from a schedule.csv upload.

    Returns:
        The new version and the parser's warnings

    Raises:
        ScheduleParseError: with every diagnostic when the file has fatal errors
    """
    get_programme(db, programme_id)

    result = parse_schedule(raw)
    if not result.ok:
        logger.warning(
            f"Rejected schedule import for programme {programme_id}: "
            f"{len(result.errors)} error(s)"
        )
        raise ScheduleParseError(result.diagnostics)

    version = create_version(
        db,
        programme_id,
        result.num_weeks,
        result.entries,
        manual_html=manual_html,
        manual_file_name=manual_file_name,
    )
    return version, result.warnings


def publish_version(db: Session, programme_id: int, version_id: int) -> ProgrammeVersion:
    """Publish a DRAFT version and make it the programme's latest."""
    programme = get_programme(db, programme_id)
    version = get_version(db, programme_id, version_id)

    if version.is_published:
        raise PreconditionError("Version is already published")
    if version.status == ProgrammeStatus.ARCHIVED:
        raise PreconditionError("Cannot publish an archived version")

    with unit_of_work(db):
        version.status = ProgrammeStatus.PUBLISHED
        version.published_at = datetime.utcnow()
        programme.latest_version_id = version.id
        programme.status = ProgrammeStatus.PUBLISHED

    logger.info(f"Published version {version.version} of programme {programme_id}")
    return version


def archive_programme(db: Session, programme_id: int) -> Programme:
    """Archive a programme. Existing applied plans are unaffected."""
    programme = get_programme(db, programme_id)
    if programme.status == ProgrammeStatus.ARCHIVED:
        raise PreconditionError("Programme is already archived")

    with unit_of_work(db):
        programme.status = ProgrammeStatus.ARCHIVED

    logger.info(f"Archived programme {programme_id}")
    return programme
