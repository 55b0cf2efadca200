"""SQLAlchemy-backed plan store with change notification."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from soonish.core.errors import (
    InvalidDeadlinePresetError,
    InvalidPeriodPresetError,
    InvalidTimeModeError,
    PlanNotFoundError,
)
from soonish.db.models.plan import PlanRecord
from soonish.services.classification import BucketView, build_board
from soonish.services.plan_entity import AnytimeMode, DeadlineMode, PeriodMode, Plan, TimeMode, restore_plan
from soonish.services.presets import DeadlinePreset, PeriodPreset, TimeModeKind

logger = logging.getLogger(__name__)

Listener = Callable[[List[Plan]], None]
Mutator = Callable[[Plan], Plan]


def _time_mode_from_record(record: PlanRecord) -> TimeMode:
    try:
        kind = TimeModeKind(record.time_type)
    except ValueError as exc:
        raise InvalidTimeModeError(record.time_type) from exc

    if kind is TimeModeKind.PERIOD:
        try:
            preset = PeriodPreset(record.period_preset)
        except ValueError as exc:
            raise InvalidPeriodPresetError(str(record.period_preset)) from exc
        return PeriodMode(preset=preset, label=record.period_label)

    if kind is TimeModeKind.DEADLINE:
        deadline_preset: Optional[DeadlinePreset] = None
        if record.deadline_preset is not None:
            try:
                deadline_preset = DeadlinePreset(record.deadline_preset)
            except ValueError as exc:
                raise InvalidDeadlinePresetError(record.deadline_preset) from exc
        return DeadlineMode(preset=deadline_preset, custom_date=record.custom_deadline_date)

    return AnytimeMode()


def plan_from_record(record: PlanRecord) -> Plan:
    """Rebuild the domain plan; stored derived dates are kept as they were written."""
    return restore_plan(
        id=record.id,
        title=record.title,
        time_mode=_time_mode_from_record(record),
        memo=record.memo,
        is_completed=bool(record.is_completed),
        is_archived=bool(record.is_archived),
        created_at=record.created_at,
        updated_at=record.updated_at,
        period_start=record.period_start,
        period_end=record.period_end,
        deadline=record.deadline,
    )


def apply_plan_to_record(plan: Plan, record: PlanRecord) -> PlanRecord:
    record.title = plan.title
    record.time_type = plan.time_mode_kind.value
    record.period_preset = plan.period_preset.value if plan.period_preset else None
    record.period_label = plan.period_label
    record.deadline_preset = plan.deadline_preset.value if plan.deadline_preset else None
    record.custom_deadline_date = plan.custom_deadline_date
    record.period_start = plan.period_start
    record.period_end = plan.period_end
    record.deadline = plan.deadline
    record.memo = plan.memo
    record.is_completed = plan.is_completed
    record.is_archived = plan.is_archived
    record.created_at = plan.created_at
    record.updated_at = plan.updated_at
    return record


class PlanStore:
    """Single-record create/read/update/delete over plans.

    Every successful write commits on its own and then notifies subscribers
    with the fresh list of active plans.
    """

    def __init__(self, db: Session):
        self._db = db
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def insert(self, plan: Plan) -> Plan:
        record = apply_plan_to_record(plan, PlanRecord(id=plan.id))
        self._db.add(record)
        self._commit("insert")
        logger.info("Plan stored id=%s mode=%s", plan.id, plan.time_mode_kind.value)
        return plan_from_record(record)

    def get(self, plan_id: UUID) -> Plan:
        return plan_from_record(self._get_record(plan_id))

    def update(self, plan_id: UUID, mutator: Mutator) -> Plan:
        record = self._get_record(plan_id)
        updated = mutator(plan_from_record(record))
        if updated.id != record.id:
            raise ValueError("a plan's id cannot change")
        apply_plan_to_record(updated, record)
        self._commit("update")
        return plan_from_record(record)

    def delete(self, plan_id: UUID) -> None:
        record = self._get_record(plan_id)
        self._db.delete(record)
        self._commit("delete")
        logger.info("Plan deleted id=%s", plan_id)

    def list_active(self) -> List[Plan]:
        records = (
            self._db.query(PlanRecord)
            .filter(PlanRecord.is_completed.is_(False), PlanRecord.is_archived.is_(False))
            .order_by(desc(PlanRecord.created_at))
            .all()
        )
        return [plan_from_record(record) for record in records]

    def _get_record(self, plan_id: UUID) -> PlanRecord:
        record = self._db.get(PlanRecord, plan_id)
        if record is None:
            raise PlanNotFoundError(plan_id)
        return record

    def _commit(self, operation: str) -> None:
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            logger.exception("Plan %s failed; rolled back", operation)
            raise
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        plans = self.list_active()
        for listener in list(self._listeners):
            listener(plans)


class PlanBoard:
    """Keeps bucketed, sorted views of a store's active plans up to date."""

    def __init__(self, store: PlanStore, now_provider: Callable[[], datetime]):
        self._now_provider = now_provider
        self._plans: List[Plan] = store.list_active()
        self.views: List[BucketView] = build_board(self._plans, now_provider())
        self._unsubscribe = store.subscribe(self._on_plans_changed)

    def _on_plans_changed(self, plans: Sequence[Plan]) -> None:
        self._plans = list(plans)
        self.refresh(self._now_provider())

    def refresh(self, now: datetime) -> List[BucketView]:
        """Re-evaluate membership and order for a new reference instant."""
        self.views = build_board(self._plans, now)
        return self.views

    def close(self) -> None:
        self._unsubscribe()
