"""Applied plan and workout models.

An applied plan is one instantiation of a published programme version on
one horse at a concrete start date. It owns one workout per scheduled day.
Each workout carries two snapshots of its day entry: ``baseline_data``
(what the programme said, never changed) and ``current_data`` (what the
trainer has since edited it to).
"""

from datetime import datetime
from datetime import date as date_type
from enum import Enum as PyEnum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import Integer, Date, DateTime, Boolean, ForeignKey, Enum
from sqlalchemy.types import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stableplan.models.base import Base
from stableplan.models.planned_session import Slot

if TYPE_CHECKING:
    from stableplan.models.horse import Horse
    from stableplan.models.programme import ProgrammeVersion
    from stableplan.models.planned_session import PlanBlock, PlannedSession
    from stableplan.models.user import User


class AppliedPlanStatus(str, PyEnum):
    """Applied plan lifecycle. Anything but ACTIVE is terminal."""
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class AppliedPlan(Base):
    """A programme version applied to a horse."""

    __tablename__ = "applied_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    horse_id: Mapped[int] = mapped_column(Integer, ForeignKey("horses.id"), index=True)
    programme_version_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("programme_versions.id"), index=True
    )
    assigned_by_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))

    start_date: Mapped[date_type] = mapped_column(Date)
    status: Mapped[AppliedPlanStatus] = mapped_column(
        Enum(AppliedPlanStatus), default=AppliedPlanStatus.ACTIVE
    )

    # Provenance for repeats; cleared (not cascaded) when the source plan is removed
    source_applied_plan_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("applied_plans.id", ondelete="SET NULL"), nullable=True
    )
    is_amended: Mapped[bool] = mapped_column(Boolean, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    horse: Mapped["Horse"] = relationship("Horse")
    programme_version: Mapped["ProgrammeVersion"] = relationship("ProgrammeVersion")
    assigned_by: Mapped["User"] = relationship("User")
    source_applied_plan: Mapped[Optional["AppliedPlan"]] = relationship(
        "AppliedPlan", remote_side="AppliedPlan.id"
    )
    workouts: Mapped[List["Workout"]] = relationship(
        "Workout",
        back_populates="applied_plan",
    )
    plan_blocks: Mapped[List["PlanBlock"]] = relationship(
        "PlanBlock", back_populates="applied_plan"
    )

    def __repr__(self) -> str:
        return (
            f"<AppliedPlan(id={self.id}, horse_id={self.horse_id}, "
            f"start_date={self.start_date}, status={self.status})>"
        )

    @property
    def is_active(self) -> bool:
        return self.status == AppliedPlanStatus.ACTIVE


class Workout(Base):
    """One day of an applied plan."""

    __tablename__ = "workouts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    applied_plan_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applied_plans.id", ondelete="CASCADE"), index=True
    )
    horse_id: Mapped[int] = mapped_column(Integer, ForeignKey("horses.id"), index=True)

    # Position in the programme schedule
    origin_week: Mapped[int] = mapped_column(Integer)
    origin_day: Mapped[int] = mapped_column(Integer)

    # Null means the workout sits in the unscheduled tray
    scheduled_date: Mapped[Optional[date_type]] = mapped_column(Date, nullable=True, index=True)
    slot: Mapped[Slot] = mapped_column(Enum(Slot), default=Slot.AM)

    # Day entry snapshots in their camelCase wire shape
    baseline_data: Mapped[Dict[str, Any]] = mapped_column(JSON)
    current_data: Mapped[Dict[str, Any]] = mapped_column(JSON)
    is_rest: Mapped[bool] = mapped_column(Boolean, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    applied_plan: Mapped["AppliedPlan"] = relationship("AppliedPlan", back_populates="workouts")
    planned_sessions: Mapped[List["PlannedSession"]] = relationship(
        "PlannedSession", back_populates="workout"
    )

    def __repr__(self) -> str:
        return (
            f"<Workout(id={self.id}, week={self.origin_week}, day={self.origin_day}, "
            f"scheduled_date={self.scheduled_date})>"
        )
