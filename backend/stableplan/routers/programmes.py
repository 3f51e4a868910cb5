"""Programmes API router: schedule parsing and version lifecycle."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from stableplan.config import settings
from stableplan.database import get_db
from stableplan.models.programme import Programme, ProgrammeVersion
from stableplan.models.user import User, UserRole
from stableplan.routers.errors import to_http_exception
from stableplan.schemas.programmes import (
    ImportResponse,
    ParseResponse,
    ProgrammeCreate,
    ProgrammeResponse,
    ProgrammeUpdate,
    VersionCreate,
    VersionResponse,
    VersionSummary,
)
from stableplan.services import programme_service
from stableplan.services.access import require_programme_owner
from stableplan.services.auth_service import get_current_user, require_role
from stableplan.services.errors import SchedulingError
from stableplan.services.schedule_parser import parse_schedule

logger = logging.getLogger(__name__)

router = APIRouter()

trainer_only = require_role(UserRole.TRAINER)


async def read_upload(file: UploadFile) -> bytes:
    """Read an uploaded schedule.csv, enforcing the upload size limit."""
    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {settings.MAX_UPLOAD_BYTES} bytes",
        )
    return content


def _load_owned_programme(db: Session, user: User, programme_id: int) -> Programme:
    """404 for an unknown programme, 403 when ``user`` neither owns it nor is an admin."""
    try:
        programme = programme_service.get_programme(db, programme_id)
    except SchedulingError as e:
        raise to_http_exception(e)
    require_programme_owner(user, programme)
    return programme


# ============== Parsing ==============

@router.post("/parse", response_model=ParseResponse)
async def parse_upload(
    file: UploadFile = File(..., description="schedule.csv"),
    current_user: User = Depends(get_current_user),
) -> ParseResponse:
    """
    Parse a schedule.csv without saving anything.

    Always returns 200; check ``ok`` and ``errors`` for the outcome.
    """
    result = parse_schedule(await read_upload(file))

    return ParseResponse(
        ok=result.ok,
        num_weeks=result.num_weeks,
        entries=result.entries,
        errors=result.errors,
        warnings=result.warnings,
    )


# ============== Programmes ==============

@router.get("", response_model=List[ProgrammeResponse])
async def list_programmes(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[Programme]:
    """Programmes by name. Trainers see only their own; admins see all."""
    return programme_service.list_programmes(db, current_user)


@router.post("", response_model=ProgrammeResponse, status_code=status.HTTP_201_CREATED)
async def create_programme(
    programme_data: ProgrammeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(trainer_only),
) -> Programme:
    """Create an empty programme owned by the current user."""
    return programme_service.create_programme(
        db, programme_data.name, programme_data.description, current_user.id
    )


@router.get("/{programme_id}", response_model=ProgrammeResponse)
async def get_programme(
    programme_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Programme:
    return _load_owned_programme(db, current_user, programme_id)


@router.put("/{programme_id}", response_model=ProgrammeResponse)
async def update_programme(
    programme_id: int,
    programme_data: ProgrammeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(trainer_only),
) -> Programme:
    _load_owned_programme(db, current_user, programme_id)

    try:
        return programme_service.update_programme(
            db, programme_id, programme_data.name, programme_data.description
        )
    except SchedulingError as e:
        raise to_http_exception(e)


@router.delete("/{programme_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_programme(
    programme_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(trainer_only),
) -> None:
    """
    Delete a programme and all of its versions.

    Programmes that were applied to a horse return 400; archive them instead.
    """
    _load_owned_programme(db, current_user, programme_id)

    try:
        programme_service.delete_programme(db, programme_id)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.patch("/{programme_id}/archive", response_model=ProgrammeResponse)
async def archive_programme(
    programme_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(trainer_only),
) -> Programme:
    _load_owned_programme(db, current_user, programme_id)

    try:
        return programme_service.archive_programme(db, programme_id)
    except SchedulingError as e:
        raise to_http_exception(e)


# ============== Versions ==============

@router.get("/{programme_id}/versions", response_model=List[VersionSummary])
async def list_versions(
    programme_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[ProgrammeVersion]:
    """List all versions of a programme, oldest first."""
    programme = _load_owned_programme(db, current_user, programme_id)
    return programme.versions


@router.post(
    "/{programme_id}/versions",
    response_model=VersionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_version(
    programme_id: int,
    version_data: VersionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(trainer_only),
) -> ProgrammeVersion:
    """Create a draft version from JSON day entries."""
    _load_owned_programme(db, current_user, programme_id)

    try:
        return programme_service.create_version(
            db,
            programme_id,
            version_data.num_weeks,
            version_data.entries,
            manual_html=version_data.manual_html,
            manual_file_name=version_data.manual_file_name,
        )
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post(
    "/{programme_id}/versions/import",
    response_model=ImportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def import_version(
    programme_id: int,
    file: UploadFile = File(..., description="schedule.csv"),
    manual_html: Optional[str] = Form(None, alias="manualHtml"),
    manual_file_name: Optional[str] = Form(None, alias="manualFileName"),
    db: Session = Depends(get_db),
    current_user: User = Depends(trainer_only),
) -> ImportResponse:
    """
    Create a draft version from a schedule.csv upload.

    A file with errors returns 400 with every diagnostic and creates nothing.
    """
    _load_owned_programme(db, current_user, programme_id)
    content = await read_upload(file)

    try:
        version, warnings = programme_service.import_schedule(
            db,
            programme_id,
            content,
            manual_html=manual_html,
            manual_file_name=manual_file_name,
        )
    except SchedulingError as e:
        raise to_http_exception(e)

    logger.info(f"Imported {file.filename} as version {version.version} of programme {programme_id}")
    return ImportResponse(version=VersionResponse.model_validate(version), warnings=warnings)


@router.get("/{programme_id}/versions/{version_id}", response_model=VersionResponse)
async def get_version(
    programme_id: int,
    version_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ProgrammeVersion:
    _load_owned_programme(db, current_user, programme_id)

    try:
        return programme_service.get_version(db, programme_id, version_id)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post("/{programme_id}/versions/{version_id}/publish", response_model=VersionResponse)
async def publish_version(
    programme_id: int,
    version_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(trainer_only),
) -> ProgrammeVersion:
    """Publish a draft version so it can be applied to horses."""
    _load_owned_programme(db, current_user, programme_id)

    try:
        return programme_service.publish_version(db, programme_id, version_id)
    except SchedulingError as e:
        raise to_http_exception(e)
