"""Bucket membership and urgency ordering for plans.

Everything here is a pure function of a plan snapshot and the reference
instant ``now``; callers re-run it whenever the clock or a plan changes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from soonish.services import calendar_math as cal
from soonish.services.plan_entity import Plan
from soonish.services.presets import TimeModeKind

# Dateless plans key on this minus their creation timestamp so they always
# follow dated plans, newest first.
DATELESS_SORT_BASE = 1e12


class Bucket(str, Enum):
    THIS_MONTH = "thisMonth"
    NEXT_MONTH = "nextMonth"
    THIS_YEAR = "thisYear"
    NEXT_YEAR_ONWARDS = "nextYearOnwards"

    @property
    def display_name(self) -> str:
        return _BUCKET_NAMES[self]


_BUCKET_NAMES = {
    Bucket.THIS_MONTH: "今月中",
    Bucket.NEXT_MONTH: "来月中",
    Bucket.THIS_YEAR: "今年中",
    Bucket.NEXT_YEAR_ONWARDS: "来年以降",
}


def ranges_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Closed-interval overlap; ranges that only touch at an endpoint overlap."""
    if end1 < start2:
        return False
    if start1 > end2:
        return False
    return True


def bucket_range(bucket: Bucket, now: datetime) -> Tuple[datetime, Optional[datetime]]:
    """Reference range of a bucket; ``nextYearOnwards`` has no upper bound."""
    if bucket is Bucket.THIS_MONTH:
        return cal.start_of_month(now), cal.end_of_month(now)
    if bucket is Bucket.NEXT_MONTH:
        return cal.next_month_start(now), cal.next_month_end(now)
    if bucket is Bucket.THIS_YEAR:
        return cal.month_after_next_start(now), cal.end_of_year(now)
    return cal.next_year_start(now), None


def belongs_to(plan: Plan, bucket: Bucket, now: datetime) -> bool:
    if plan.is_archived or plan.is_completed or plan.time_mode_kind is TimeModeKind.ANYTIME:
        return False

    start, end = plan.period_start, plan.period_end
    if start is None or end is None:
        return False

    if end < now:
        return False

    range_start, range_end = bucket_range(bucket, now)
    if range_end is None:
        return start >= range_start or end >= range_start
    return ranges_overlap(start, end, range_start, range_end)


def visible_buckets(now: datetime) -> List[Bucket]:
    if cal.is_month_after_next_in_this_year(now):
        return [Bucket.THIS_MONTH, Bucket.NEXT_MONTH, Bucket.THIS_YEAR]
    return [Bucket.THIS_MONTH, Bucket.NEXT_MONTH, Bucket.NEXT_YEAR_ONWARDS]


def sort_priority(plan: Plan, now: datetime) -> float:
    """Default ordering key: days to deadline (overdue first), then newest dateless."""
    if plan.deadline is not None:
        return float(cal.days_until(plan.deadline, now))
    return DATELESS_SORT_BASE - plan.created_at.timestamp()


def sort_priority_oldest_first(plan: Plan, now: datetime) -> float:
    """Backlog ordering key: days to deadline, then oldest dateless first."""
    if plan.deadline is not None:
        return float(cal.days_until(plan.deadline, now))
    return plan.created_at.timestamp()


def active_plans(plans: Iterable[Plan]) -> List[Plan]:
    return [plan for plan in plans if plan.is_active]


def filter_by_bucket(plans: Iterable[Plan], bucket: Bucket, now: datetime) -> List[Plan]:
    return [plan for plan in plans if belongs_to(plan, bucket, now)]


def sorted_by_default(plans: Iterable[Plan], now: datetime) -> List[Plan]:
    return sorted(plans, key=lambda plan: sort_priority(plan, now))


def sorted_by_oldest_first(plans: Iterable[Plan], now: datetime) -> List[Plan]:
    return sorted(plans, key=lambda plan: sort_priority_oldest_first(plan, now))


def sorted_by_newest_first(plans: Iterable[Plan]) -> List[Plan]:
    return sorted(plans, key=lambda plan: plan.created_at, reverse=True)


def anytime_backlog(plans: Iterable[Plan], now: datetime) -> List[Plan]:
    """Active undated drafts, oldest first."""
    drafts = [
        plan for plan in active_plans(plans) if plan.time_mode_kind is TimeModeKind.ANYTIME
    ]
    return sorted_by_oldest_first(drafts, now)


@dataclass
class BucketView:
    bucket: Bucket
    plans: List[Plan] = field(default_factory=list)


def build_board(plans: Iterable[Plan], now: datetime) -> List[BucketView]:
    """Visible buckets for ``now`` with their members in default order.

    A plan may appear in several buckets when its range spans them.
    """
    snapshot = list(plans)
    return [
        BucketView(bucket=bucket, plans=sorted_by_default(filter_by_bucket(snapshot, bucket, now), now))
        for bucket in visible_buckets(now)
    ]
