"""Access checks: horses by assignment, programmes by ownership."""

import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from stableplan.models.horse import AssignmentPermission, HorseAssignment
from stableplan.models.programme import Programme
from stableplan.models.user import User

logger = logging.getLogger(__name__)


def _assignment(db: Session, user: User, horse_id: int):
    return db.query(HorseAssignment).filter(
        HorseAssignment.user_id == user.id,
        HorseAssignment.horse_id == horse_id,
    ).first()


def can_view_horse(db: Session, user: User, horse_id: int) -> bool:
    """Admins see every horse; others need an assignment of any level."""
    if user.is_admin:
        return True
    return _assignment(db, user, horse_id) is not None


def can_edit_horse(db: Session, user: User, horse_id: int) -> bool:
    """Admins edit every horse; others need an EDIT assignment."""
    if user.is_admin:
        return True
    assignment = _assignment(db, user, horse_id)
    return assignment is not None and assignment.permission == AssignmentPermission.EDIT


def require_horse_view(db: Session, user: User, horse_id: int) -> None:
    if not can_view_horse(db, user, horse_id):
        logger.warning(f"User {user.id} denied view access to horse {horse_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this horse",
        )


def require_horse_edit(db: Session, user: User, horse_id: int) -> None:
    if not can_edit_horse(db, user, horse_id):
        logger.warning(f"User {user.id} denied edit access to horse {horse_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have edit access to this horse",
        )


def can_manage_programme(user: User, programme: Programme) -> bool:
    """Admins manage every programme; trainers only the ones they created."""
    return user.is_admin or programme.created_by_id == user.id


def require_programme_owner(user: User, programme: Programme) -> None:
    if not can_manage_programme(user, programme):
        logger.warning(f"User {user.id} denied access to programme {programme.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this programme",
        )
