"""Calendar models: plan blocks, planned sessions and actual session logs.

Planned sessions are the flat, date-anchored rows the day-by-day planner
reads. When they come from an applied programme, each one mirrors a
workout (see ``stableplan.models.applied_plan``) and is kept in lockstep
with it by the scheduling services.
"""

from datetime import datetime
from datetime import date as date_type
from enum import Enum as PyEnum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Integer, String, Date, DateTime, ForeignKey, Enum, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stableplan.models.base import Base

if TYPE_CHECKING:
    from stableplan.models.applied_plan import AppliedPlan, Workout


class Slot(str, PyEnum):
    """Half-day calendar slot."""
    AM = "AM"
    PM = "PM"


class PlanBlock(Base):
    """Named block on the planner grid, one per applied plan."""

    __tablename__ = "plan_blocks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    horse_id: Mapped[int] = mapped_column(Integer, ForeignKey("horses.id"), index=True)
    programme_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("programmes.id", ondelete="SET NULL"), nullable=True
    )
    # Null for manually created blocks
    applied_plan_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("applied_plans.id", ondelete="SET NULL"), nullable=True, index=True
    )

    name: Mapped[str] = mapped_column(String(255))
    start_date: Mapped[date_type] = mapped_column(Date)
    num_weeks: Mapped[int] = mapped_column(Integer, default=6)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    applied_plan: Mapped[Optional["AppliedPlan"]] = relationship(
        "AppliedPlan", back_populates="plan_blocks"
    )
    sessions: Mapped[List["PlannedSession"]] = relationship(
        "PlannedSession", back_populates="plan_block", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<PlanBlock(id={self.id}, name='{self.name}', start_date={self.start_date})>"


class PlannedSession(Base):
    """A planned session on one horse's calendar (one per horse, date and slot)."""

    __tablename__ = "planned_sessions"
    __table_args__ = (
        UniqueConstraint("horse_id", "date", "slot", name="uq_planned_session_horse_date_slot"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    plan_block_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("plan_blocks.id", ondelete="CASCADE"), index=True
    )
    horse_id: Mapped[int] = mapped_column(Integer, ForeignKey("horses.id"), index=True)
    # Null for manually created sessions
    workout_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("workouts.id", ondelete="SET NULL"), nullable=True, index=True
    )

    date: Mapped[date_type] = mapped_column(Date, index=True)
    slot: Mapped[Slot] = mapped_column(Enum(Slot))

    # Projected fields
    session_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    intensity_rpe: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    plan_block: Mapped["PlanBlock"] = relationship("PlanBlock", back_populates="sessions")
    workout: Mapped[Optional["Workout"]] = relationship("Workout", back_populates="planned_sessions")

    def __repr__(self) -> str:
        return (
            f"<PlannedSession(id={self.id}, horse_id={self.horse_id}, "
            f"date={self.date}, slot={self.slot}, session_type='{self.session_type}')>"
        )


class ActualSessionLog(Base):
    """What was actually ridden. Survives removal of the planned session it refers to."""

    __tablename__ = "actual_session_logs"
    __table_args__ = (
        UniqueConstraint("horse_id", "date", "slot", name="uq_actual_session_horse_date_slot"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    horse_id: Mapped[int] = mapped_column(Integer, ForeignKey("horses.id"), index=True)
    date: Mapped[date_type] = mapped_column(Date, index=True)
    slot: Mapped[Slot] = mapped_column(Enum(Slot))
    planned_session_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("planned_sessions.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )

    session_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    intensity_rpe: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rider: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    deviation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    planned_session: Mapped[Optional["PlannedSession"]] = relationship("PlannedSession")

    def __repr__(self) -> str:
        return f"<ActualSessionLog(id={self.id}, horse_id={self.horse_id}, date={self.date})>"
