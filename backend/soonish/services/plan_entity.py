"""Plan entity, its time modes, and derivation of the computed date fields."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Tuple, Union
from uuid import UUID, uuid4

from soonish.core.errors import EmptyTitleError, MissingCustomDateError
from soonish.services import calendar_math as cal
from soonish.services.presets import (
    DeadlinePreset,
    PeriodPreset,
    TimeModeKind,
    resolve_deadline,
    resolve_period,
    season_label,
)

DEADLINE_NEAR_DAYS = 7


@dataclass(frozen=True)
class PeriodMode:
    preset: PeriodPreset
    label: Optional[str] = None

    kind = TimeModeKind.PERIOD

    @classmethod
    def for_preset(cls, preset: PeriodPreset) -> "PeriodMode":
        return cls(preset=preset, label=season_label(preset))


@dataclass(frozen=True)
class DeadlineMode:
    # None marks a bare custom date entered without choosing a preset.
    preset: Optional[DeadlinePreset]
    custom_date: Optional[datetime] = None

    kind = TimeModeKind.DEADLINE

    @classmethod
    def for_preset(cls, preset: Optional[DeadlinePreset], custom_date: Optional[datetime] = None) -> "DeadlineMode":
        # A custom date is only kept for the custom preset or a bare date.
        if preset not in (DeadlinePreset.CUSTOM, None):
            custom_date = None
        return cls(preset=preset, custom_date=custom_date)


@dataclass(frozen=True)
class AnytimeMode:
    kind = TimeModeKind.ANYTIME


TimeMode = Union[PeriodMode, DeadlineMode, AnytimeMode]


@dataclass(frozen=True)
class Plan:
    """A loosely timed intention.

    ``period_start``, ``period_end`` and ``deadline`` are derived from the time
    mode by :func:`derive_dates` and cannot be passed to the constructor; build
    and change plans through the functions in this module so they never go stale.
    """

    title: str
    time_mode: TimeMode
    created_at: datetime
    updated_at: datetime
    id: UUID = field(default_factory=uuid4)
    memo: Optional[str] = None
    is_completed: bool = False
    is_archived: bool = False
    period_start: Optional[datetime] = field(default=None, init=False)
    period_end: Optional[datetime] = field(default=None, init=False)
    deadline: Optional[datetime] = field(default=None, init=False)

    @property
    def time_mode_kind(self) -> TimeModeKind:
        return self.time_mode.kind

    @property
    def period_preset(self) -> Optional[PeriodPreset]:
        return self.time_mode.preset if isinstance(self.time_mode, PeriodMode) else None

    @property
    def period_label(self) -> Optional[str]:
        return self.time_mode.label if isinstance(self.time_mode, PeriodMode) else None

    @property
    def deadline_preset(self) -> Optional[DeadlinePreset]:
        return self.time_mode.preset if isinstance(self.time_mode, DeadlineMode) else None

    @property
    def custom_deadline_date(self) -> Optional[datetime]:
        if isinstance(self.time_mode, DeadlineMode):
            return self.time_mode.custom_date
        return None

    @property
    def is_active(self) -> bool:
        return not self.is_completed and not self.is_archived


def _clean_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise EmptyTitleError()
    return cleaned


def _clean_memo(memo: Optional[str]) -> Optional[str]:
    if memo is None:
        return None
    return memo if memo.strip() else None


Derived = Tuple[Optional[datetime], Optional[datetime], Optional[datetime]]


def _normalized(time_mode: TimeMode) -> TimeMode:
    if isinstance(time_mode, PeriodMode):
        return PeriodMode.for_preset(time_mode.preset)
    if isinstance(time_mode, DeadlineMode):
        return DeadlineMode.for_preset(time_mode.preset, time_mode.custom_date)
    return time_mode


def _derived_fields(time_mode: TimeMode, now: datetime) -> Derived:
    if isinstance(time_mode, PeriodMode):
        start, end = resolve_period(time_mode.preset, now)
        return start, end, None

    if isinstance(time_mode, DeadlineMode):
        if time_mode.preset in (DeadlinePreset.CUSTOM, None):
            if time_mode.custom_date is None:
                raise MissingCustomDateError()
            due = time_mode.custom_date
        else:
            due = resolve_deadline(time_mode.preset, now)
        return now, due, due

    return None, None, None


def _with_dates(plan: Plan, derived: Derived) -> Plan:
    period_start, period_end, deadline = derived
    object.__setattr__(plan, "period_start", period_start)
    object.__setattr__(plan, "period_end", period_end)
    object.__setattr__(plan, "deadline", deadline)
    return plan


def _edited(plan: Plan, **changes) -> Plan:
    # replace() rebuilds through __init__, which resets the derived dates.
    return _with_dates(replace(plan, **changes), (plan.period_start, plan.period_end, plan.deadline))


def derive_dates(plan: Plan, now: datetime) -> Plan:
    """Recompute the derived date fields from the time mode and stamp ``updated_at``."""
    return _with_dates(replace(plan, updated_at=now), _derived_fields(plan.time_mode, now))


def restore_plan(
    *,
    id: UUID,
    title: str,
    time_mode: TimeMode,
    memo: Optional[str],
    is_completed: bool,
    is_archived: bool,
    created_at: datetime,
    updated_at: datetime,
    period_start: Optional[datetime],
    period_end: Optional[datetime],
    deadline: Optional[datetime],
) -> Plan:
    """Rebuild a stored plan exactly as it was written, derived dates included."""
    plan = Plan(
        id=id,
        title=title,
        time_mode=time_mode,
        memo=memo,
        is_completed=is_completed,
        is_archived=is_archived,
        created_at=created_at,
        updated_at=updated_at,
    )
    return _with_dates(plan, (period_start, period_end, deadline))


def new_plan(
    title: str,
    time_mode: TimeMode,
    now: datetime,
    *,
    memo: Optional[str] = None,
    plan_id: Optional[UUID] = None,
) -> Plan:
    plan = Plan(
        id=plan_id or uuid4(),
        title=_clean_title(title),
        time_mode=_normalized(time_mode),
        memo=_clean_memo(memo),
        created_at=now,
        updated_at=now,
    )
    return derive_dates(plan, now)


def build_with_period(title: str, preset: PeriodPreset, now: datetime, *, memo: Optional[str] = None) -> Plan:
    return new_plan(title, PeriodMode.for_preset(preset), now, memo=memo)


def build_with_deadline(
    title: str,
    preset: Optional[DeadlinePreset],
    now: datetime,
    *,
    custom_date: Optional[datetime] = None,
    memo: Optional[str] = None,
) -> Plan:
    return new_plan(title, DeadlineMode.for_preset(preset, custom_date), now, memo=memo)


def build_anytime(title: str, now: datetime, *, memo: Optional[str] = None) -> Plan:
    return new_plan(title, AnytimeMode(), now, memo=memo)


def change_time_mode(plan: Plan, time_mode: TimeMode, now: datetime) -> Plan:
    return derive_dates(replace(plan, time_mode=_normalized(time_mode)), now)


def refresh_dates(plan: Plan, now: datetime) -> Plan:
    return derive_dates(plan, now)


def rename(plan: Plan, title: str, now: datetime) -> Plan:
    return _edited(plan, title=_clean_title(title), updated_at=now)


def edit_memo(plan: Plan, memo: Optional[str], now: datetime) -> Plan:
    return _edited(plan, memo=_clean_memo(memo), updated_at=now)


def toggle_completed(plan: Plan, now: datetime) -> Plan:
    return _edited(plan, is_completed=not plan.is_completed, updated_at=now)


def toggle_archived(plan: Plan, now: datetime) -> Plan:
    return _edited(plan, is_archived=not plan.is_archived, updated_at=now)


def is_period_expired(plan: Plan, now: datetime) -> bool:
    return plan.period_end is not None and now > plan.period_end


def is_deadline_near(plan: Plan, now: datetime) -> bool:
    if plan.deadline is None:
        return False
    return 0 <= cal.days_until(plan.deadline, now) <= DEADLINE_NEAR_DAYS
