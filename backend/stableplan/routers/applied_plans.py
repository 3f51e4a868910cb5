"""Applied plans API router: apply, repeat, status and removal."""

import logging
from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from stableplan.database import get_db
from stableplan.models.applied_plan import AppliedPlan, AppliedPlanStatus
from stableplan.models.user import User
from stableplan.routers.errors import to_http_exception
from stableplan.schemas.applied_plans import (
    AppliedPlanDetail,
    AppliedPlanResponse,
    ApplyPlanRequest,
    ApplyResponse,
    PlanSummary,
    RemoveResponse,
    RepeatMode,
    RepeatPlanRequest,
    StatusUpdateRequest,
)
from stableplan.services import plan_workflow
from stableplan.services.access import require_horse_edit, require_horse_view
from stableplan.services.auth_service import get_current_user
from stableplan.services.errors import SchedulingError

logger = logging.getLogger(__name__)

router = APIRouter()


def _load_plan(db: Session, plan_id: int) -> AppliedPlan:
    try:
        return plan_workflow.get_applied_plan(db, plan_id)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post("", response_model=ApplyResponse, status_code=status.HTTP_201_CREATED)
async def apply_plan(
    request: ApplyPlanRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApplyResponse:
    """
    Apply a published programme version to a horse.

    Returns 409 with ``conflictDates`` when the horse already has sessions
    on any of the projected dates; nothing is created in that case.
    """
    try:
        plan_workflow.get_horse(db, request.horse_id)
    except SchedulingError as e:
        raise to_http_exception(e)
    require_horse_edit(db, current_user, request.horse_id)

    try:
        result = plan_workflow.apply_programme(
            db,
            request.horse_id,
            request.programme_version_id,
            request.start_date,
            current_user.id,
        )
    except SchedulingError as e:
        raise to_http_exception(e)

    return ApplyResponse(**asdict(result))


@router.get("", response_model=List[AppliedPlanResponse])
async def list_plans(
    horse_id: int = Query(..., alias="horseId"),
    plan_status: Optional[AppliedPlanStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[AppliedPlan]:
    """List a horse's applied plans, most recent start date first."""
    require_horse_view(db, current_user, horse_id)

    query = db.query(AppliedPlan).filter(AppliedPlan.horse_id == horse_id)
    if plan_status is not None:
        query = query.filter(AppliedPlan.status == plan_status)

    return query.order_by(AppliedPlan.start_date.desc(), AppliedPlan.id.desc()).all()


@router.get("/{plan_id}", response_model=AppliedPlanDetail)
async def get_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AppliedPlanDetail:
    plan = _load_plan(db, plan_id)
    require_horse_view(db, current_user, plan.horse_id)

    version = plan.programme_version
    base = AppliedPlanResponse.model_validate(plan)
    return AppliedPlanDetail(
        **base.model_dump(),
        programme_id=version.programme_id,
        programme_name=version.programme.name,
        version=version.version,
        summary=PlanSummary(**plan_workflow.plan_summary(db, plan)),
    )


@router.patch("/{plan_id}/status", response_model=AppliedPlanResponse)
async def update_status(
    plan_id: int,
    request: StatusUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AppliedPlan:
    """Mark an ACTIVE plan COMPLETED or CANCELLED."""
    plan = _load_plan(db, plan_id)
    require_horse_edit(db, current_user, plan.horse_id)

    try:
        return plan_workflow.change_status(db, plan_id, request.status)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post("/{plan_id}/repeat", response_model=ApplyResponse, status_code=status.HTTP_201_CREATED)
async def repeat_plan(
    plan_id: int,
    request: RepeatPlanRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApplyResponse:
    """
    Repeat a plan at a new start date.

    ``original`` re-applies the same version; ``amended`` forks the plan's
    edited workouts into a new published version first.
    """
    plan = _load_plan(db, plan_id)
    require_horse_edit(db, current_user, plan.horse_id)

    try:
        if request.mode == RepeatMode.AMENDED:
            result = plan_workflow.repeat_amended(db, plan_id, request.start_date, current_user.id)
        else:
            result = plan_workflow.repeat_original(db, plan_id, request.start_date, current_user.id)
    except SchedulingError as e:
        raise to_http_exception(e)

    return ApplyResponse(**asdict(result))


@router.delete("/{plan_id}", response_model=RemoveResponse)
async def remove_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RemoveResponse:
    """Delete a plan with its workouts and planned sessions. Session logs are kept."""
    plan = db.get(AppliedPlan, plan_id)
    if plan is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Applied plan {plan_id} not found",
        )
    require_horse_edit(db, current_user, plan.horse_id)

    try:
        removed = plan_workflow.remove_applied_plan(db, plan_id)
    except SchedulingError as e:
        raise to_http_exception(e)

    return RemoveResponse(removed_work_items=removed)
