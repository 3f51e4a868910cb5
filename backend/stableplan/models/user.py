"""User model for stable staff (admins, trainers, riders, owners)."""

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Integer, String, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stableplan.models.base import Base

if TYPE_CHECKING:
    from stableplan.models.horse import HorseAssignment


class UserRole(str, PyEnum):
    """Account roles."""
    ADMIN = "ADMIN"
    TRAINER = "TRAINER"
    RIDER = "RIDER"
    OWNER = "OWNER"


class User(Base):
    """User account. Identity management itself lives outside this service."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), default=UserRole.RIDER)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    horse_assignments: Mapped[List["HorseAssignment"]] = relationship(
        "HorseAssignment", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
