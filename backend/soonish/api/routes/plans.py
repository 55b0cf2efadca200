"""Plan CRUD, bucket listing, and board routes."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from soonish.api.schemas.plan import (
    BoardResponse,
    BucketSummary,
    PlanCreateRequest,
    PlanSummary,
    PlanUpdateRequest,
    TimeModeInput,
)
from soonish.core.clock import get_now
from soonish.core.errors import InvalidPresetReference, PlanNotFoundError, PlanValidationError
from soonish.db.deps import get_db
from soonish.observability.metrics import log_metric
from soonish.observability.tracing import trace
from soonish.services import plan_entity
from soonish.services.classification import (
    Bucket,
    anytime_backlog,
    build_board,
    filter_by_bucket,
    sorted_by_default,
)
from soonish.services.display_text import deadline_display_text, period_display_text, remaining_days_text
from soonish.services.plan_entity import AnytimeMode, DeadlineMode, PeriodMode, Plan, TimeMode
from soonish.services.plan_store import PlanStore
from soonish.services.presets import TimeModeKind

router = APIRouter()


def serialize_plan(plan: Plan, now: datetime) -> PlanSummary:
    return PlanSummary(
        id=plan.id,
        title=plan.title,
        time_type=plan.time_mode_kind,
        period_preset=plan.period_preset,
        period_label=plan.period_label,
        deadline_preset=plan.deadline_preset,
        custom_deadline_date=plan.custom_deadline_date,
        period_start=plan.period_start,
        period_end=plan.period_end,
        deadline=plan.deadline,
        memo=plan.memo,
        is_completed=plan.is_completed,
        is_archived=plan.is_archived,
        created_at=plan.created_at,
        updated_at=plan.updated_at,
        period_text=period_display_text(plan, now),
        remaining_text=remaining_days_text(plan, now),
        deadline_text=deadline_display_text(plan),
        deadline_near=plan_entity.is_deadline_near(plan, now),
    )


def raise_for_engine_error(exc: Exception) -> None:
    if isinstance(exc, PlanNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found") from exc
    if isinstance(exc, (PlanValidationError, InvalidPresetReference)):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    raise exc


def _time_mode_from_input(payload: TimeModeInput) -> TimeMode:
    if payload.time_type is TimeModeKind.PERIOD:
        if payload.period_preset is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="period_preset is required for period plans",
            )
        return PeriodMode.for_preset(payload.period_preset)
    if payload.time_type is TimeModeKind.DEADLINE:
        if payload.deadline_preset is None and payload.custom_deadline_date is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="deadline_preset or custom_deadline_date is required for deadline plans",
            )
        return DeadlineMode.for_preset(payload.deadline_preset, payload.custom_deadline_date)
    return AnytimeMode()


@router.post("/plans", response_model=PlanSummary, status_code=status.HTTP_201_CREATED, tags=["plans"])
def create_plan(
    payload: PlanCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> PlanSummary:
    """Create a plan from manual entry."""
    request_id = getattr(http_request.state, "request_id", None)
    time_mode = _time_mode_from_input(payload)

    with trace("plan.create", metadata={"time_type": payload.time_type.value}, request_id=request_id):
        try:
            if isinstance(time_mode, DeadlineMode):
                plan = plan_entity.build_with_deadline(
                    payload.title, time_mode.preset, now, custom_date=time_mode.custom_date, memo=payload.memo
                )
            else:
                plan = plan_entity.new_plan(payload.title, time_mode, now, memo=payload.memo)
        except (PlanValidationError, InvalidPresetReference) as exc:
            raise_for_engine_error(exc)
        stored = PlanStore(db).insert(plan)

    log_metric("plan.create.success", 1, metadata={"time_type": payload.time_type.value, "source": "manual"})
    return serialize_plan(stored, now)


@router.get("/plans", response_model=List[PlanSummary], tags=["plans"])
def list_plans(
    bucket: Optional[Bucket] = Query(default=None, description="Only plans belonging to this bucket"),
    view: str = Query("active", pattern="^(active|anytime)$"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> List[PlanSummary]:
    """List active plans, a single bucket, or the undated backlog."""
    plans = PlanStore(db).list_active()
    if bucket is not None:
        plans = sorted_by_default(filter_by_bucket(plans, bucket, now), now)
    elif view == "anytime":
        plans = anytime_backlog(plans, now)

    log_metric("plan.list.count", len(plans), metadata={"bucket": bucket.value if bucket else view})
    return [serialize_plan(plan, now) for plan in plans]


@router.get("/board", response_model=BoardResponse, tags=["plans"])
def get_board(
    http_request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> BoardResponse:
    """Return the buckets visible at ``now`` with their sorted plans."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("plan.board", request_id=request_id):
        board = build_board(PlanStore(db).list_active(), now)

    return BoardResponse(
        now=now,
        buckets=[
            BucketSummary(
                bucket=view.bucket,
                display_name=view.bucket.display_name,
                plans=[serialize_plan(plan, now) for plan in view.plans],
            )
            for view in board
        ],
        request_id=request_id or "",
    )


@router.get("/plans/{plan_id}", response_model=PlanSummary, tags=["plans"])
def get_plan(plan_id: UUID, db: Session = Depends(get_db), now: datetime = Depends(get_now)) -> PlanSummary:
    try:
        plan = PlanStore(db).get(plan_id)
    except PlanNotFoundError as exc:
        raise_for_engine_error(exc)
    return serialize_plan(plan, now)


@router.patch("/plans/{plan_id}", response_model=PlanSummary, tags=["plans"])
def update_plan(
    plan_id: UUID,
    payload: PlanUpdateRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> PlanSummary:
    """Edit title, memo, or time mode; a new time mode re-derives the dates."""
    time_mode = _time_mode_from_input(payload.time_mode) if payload.time_mode else None
    fields = payload.model_dump(exclude_unset=True)

    def mutate(plan: Plan) -> Plan:
        if payload.title is not None:
            plan = plan_entity.rename(plan, payload.title, now)
        if "memo" in fields:
            plan = plan_entity.edit_memo(plan, payload.memo, now)
        if time_mode is not None:
            plan = plan_entity.change_time_mode(plan, time_mode, now)
        return plan

    try:
        updated = PlanStore(db).update(plan_id, mutate)
    except (PlanNotFoundError, PlanValidationError, InvalidPresetReference) as exc:
        db.rollback()
        raise_for_engine_error(exc)
    return serialize_plan(updated, now)


def _apply(db: Session, plan_id: UUID, mutate, now: datetime, metric: str) -> PlanSummary:
    try:
        updated = PlanStore(db).update(plan_id, mutate)
    except (PlanNotFoundError, PlanValidationError, InvalidPresetReference) as exc:
        db.rollback()
        raise_for_engine_error(exc)
    log_metric(metric, 1, metadata={"plan_id": str(plan_id)})
    return serialize_plan(updated, now)


@router.post("/plans/{plan_id}/complete", response_model=PlanSummary, tags=["plans"])
def toggle_plan_completed(
    plan_id: UUID, db: Session = Depends(get_db), now: datetime = Depends(get_now)
) -> PlanSummary:
    return _apply(db, plan_id, lambda plan: plan_entity.toggle_completed(plan, now), now, "plan.complete.toggled")


@router.post("/plans/{plan_id}/archive", response_model=PlanSummary, tags=["plans"])
def toggle_plan_archived(
    plan_id: UUID, db: Session = Depends(get_db), now: datetime = Depends(get_now)
) -> PlanSummary:
    return _apply(db, plan_id, lambda plan: plan_entity.toggle_archived(plan, now), now, "plan.archive.toggled")


@router.post("/plans/{plan_id}/refresh", response_model=PlanSummary, tags=["plans"])
def refresh_plan_dates(
    plan_id: UUID, db: Session = Depends(get_db), now: datetime = Depends(get_now)
) -> PlanSummary:
    """Re-derive relative preset dates against the current instant."""
    return _apply(db, plan_id, lambda plan: plan_entity.refresh_dates(plan, now), now, "plan.refresh")


@router.delete("/plans/{plan_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["plans"])
def delete_plan(plan_id: UUID, db: Session = Depends(get_db)) -> Response:
    try:
        PlanStore(db).delete(plan_id)
    except PlanNotFoundError as exc:
        raise_for_engine_error(exc)
    log_metric("plan.delete", 1, metadata={"plan_id": str(plan_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
