"""Horse and horse-assignment models."""

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING, List

from sqlalchemy import Integer, String, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stableplan.models.base import Base

if TYPE_CHECKING:
    from stableplan.models.user import User


class AssignmentPermission(str, PyEnum):
    """Access level a user holds on a horse."""
    VIEW = "VIEW"
    EDIT = "EDIT"


class Horse(Base):
    """A horse in the yard."""

    __tablename__ = "horses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    assignments: Mapped[List["HorseAssignment"]] = relationship(
        "HorseAssignment", back_populates="horse", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Horse(id={self.id}, name='{self.name}')>"


class HorseAssignment(Base):
    """Grants a user VIEW or EDIT access to one horse."""

    __tablename__ = "horse_assignments"
    __table_args__ = (
        UniqueConstraint("user_id", "horse_id", name="uq_horse_assignment_user_horse"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    horse_id: Mapped[int] = mapped_column(Integer, ForeignKey("horses.id"), index=True)
    permission: Mapped[AssignmentPermission] = mapped_column(
        Enum(AssignmentPermission), default=AssignmentPermission.VIEW
    )

    user: Mapped["User"] = relationship("User", back_populates="horse_assignments")
    horse: Mapped["Horse"] = relationship("Horse", back_populates="assignments")
