"""Human-readable timing labels, recomputed from plan state on every render."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from soonish.services import calendar_math as cal
from soonish.services.plan_entity import Plan
from soonish.services.presets import TimeModeKind

THIS_WEEK = "今週中"
THIS_MONTH = "今月中"
NEXT_MONTH = "来月中"
THIS_YEAR = "今年中"
NEXT_YEAR_ONWARDS = "来年以降"
OVERDUE = "期限切れ"
ANYTIME = "いつか"


def period_display_text(plan: Plan, now: datetime) -> Optional[str]:
    kind = plan.time_mode_kind
    if kind is TimeModeKind.ANYTIME:
        return ANYTIME
    if kind is TimeModeKind.DEADLINE:
        # Deadline plans show remaining time instead.
        return None

    if plan.period_label:
        return plan.period_label

    start = plan.period_start
    if start is None:
        return None
    if start <= cal.end_of_week(now):
        return THIS_WEEK
    if start <= cal.end_of_month(now):
        return THIS_MONTH
    if start <= cal.next_month_end(now):
        return NEXT_MONTH
    if start <= cal.end_of_year(now):
        return THIS_YEAR
    if start >= cal.next_year_start(now):
        return NEXT_YEAR_ONWARDS
    return None


def remaining_days_text(plan: Plan, now: datetime) -> Optional[str]:
    """Coarse time left for deadline plans that were created from a preset."""
    if plan.time_mode_kind is not TimeModeKind.DEADLINE or plan.deadline_preset is None:
        return None
    end = plan.period_end
    if end is None:
        return None

    if end < now:
        return OVERDUE
    if end <= cal.end_of_week(now):
        return THIS_WEEK
    if end <= cal.end_of_month(now):
        return THIS_MONTH
    if end <= cal.next_month_end(now):
        return NEXT_MONTH
    if end <= cal.end_of_year(now):
        return THIS_YEAR
    return NEXT_YEAR_ONWARDS


def deadline_display_text(plan: Plan) -> Optional[str]:
    if plan.deadline is None:
        return None
    due = plan.deadline
    return f"{due.year}年{due.month}月{due.day}日"
