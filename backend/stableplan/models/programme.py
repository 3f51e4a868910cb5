"""Programme and programme version models.

A programme is a named training programme owned by a trainer. Its schedule
content lives in immutable, numbered versions; only PUBLISHED versions can
be applied to a horse.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import Integer, String, DateTime, ForeignKey, Enum, Text, UniqueConstraint
from sqlalchemy.types import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stableplan.models.base import Base

if TYPE_CHECKING:
    from stableplan.models.user import User


class ProgrammeStatus(str, PyEnum):
    """Lifecycle of a programme version."""
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class Programme(Base):
    """Training programme."""

    __tablename__ = "programmes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)

    # Null for programmes that have never had a version
    status: Mapped[Optional[ProgrammeStatus]] = mapped_column(Enum(ProgrammeStatus), nullable=True)
    latest_version_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    created_by: Mapped["User"] = relationship("User")
    versions: Mapped[List["ProgrammeVersion"]] = relationship(
        "ProgrammeVersion",
        back_populates="programme",
        cascade="all, delete-orphan",
        order_by="ProgrammeVersion.version",
    )

    def __repr__(self) -> str:
        return f"<Programme(id={self.id}, name='{self.name}', status={self.status})>"


class ProgrammeVersion(Base):
    """Immutable snapshot of a programme schedule (one per version number)."""

    __tablename__ = "programme_versions"
    __table_args__ = (
        UniqueConstraint("programme_id", "version", name="uq_programme_version_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    programme_id: Mapped[int] = mapped_column(Integer, ForeignKey("programmes.id"), index=True)
    version: Mapped[int] = mapped_column(Integer)
    status: Mapped[ProgrammeStatus] = mapped_column(
        Enum(ProgrammeStatus), default=ProgrammeStatus.DRAFT
    )
    num_weeks: Mapped[int] = mapped_column(Integer)

    # Trainer manual shown next to the schedule
    manual_html: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    manual_file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # List of day entries in their camelCase wire shape, sorted by (week, day)
    schedule_data: Mapped[List[Dict[str, Any]]] = mapped_column(JSON)

    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    programme: Mapped["Programme"] = relationship("Programme", back_populates="versions")

    def __repr__(self) -> str:
        return (
            f"<ProgrammeVersion(id={self.id}, programme_id={self.programme_id}, "
            f"version={self.version}, status={self.status})>"
        )

    @property
    def is_published(self) -> bool:
        return self.status == ProgrammeStatus.PUBLISHED
