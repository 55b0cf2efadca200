"""Named coarse time presets and their resolution to concrete dates."""
from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Tuple

from soonish.services import calendar_math as cal


class TimeModeKind(str, Enum):
    PERIOD = "period"
    DEADLINE = "deadline"
    ANYTIME = "anytime"

    @property
    def display_name(self) -> str:
        return _TIME_MODE_NAMES[self]


class PeriodPreset(str, Enum):
    THIS_WEEK = "thisWeek"
    THIS_MONTH = "thisMonth"
    NEXT_MONTH = "nextMonth"
    THIS_YEAR = "thisYear"
    NEXT_YEAR = "nextYear"
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"

    @property
    def display_name(self) -> str:
        return _PERIOD_NAMES[self]

    @property
    def is_season(self) -> bool:
        return self in SEASON_PRESETS


class DeadlinePreset(str, Enum):
    ONE_MONTH = "oneMonth"
    THREE_MONTHS = "threeMonths"
    SIX_MONTHS = "sixMonths"
    ONE_YEAR = "oneYear"
    CUSTOM = "custom"

    @property
    def display_name(self) -> str:
        return _DEADLINE_NAMES[self][0]

    @property
    def description(self) -> str:
        return _DEADLINE_NAMES[self][1]


SEASON_PRESETS = frozenset(
    {PeriodPreset.SPRING, PeriodPreset.SUMMER, PeriodPreset.AUTUMN, PeriodPreset.WINTER}
)

_TIME_MODE_NAMES = {
    TimeModeKind.PERIOD: "だいたいの期間",
    TimeModeKind.DEADLINE: "いつまでに",
    TimeModeKind.ANYTIME: "いつか",
}

_PERIOD_NAMES = {
    PeriodPreset.THIS_WEEK: "今週",
    PeriodPreset.THIS_MONTH: "今月",
    PeriodPreset.NEXT_MONTH: "来月",
    PeriodPreset.THIS_YEAR: "今年",
    PeriodPreset.NEXT_YEAR: "来年",
    PeriodPreset.SPRING: "春",
    PeriodPreset.SUMMER: "夏",
    PeriodPreset.AUTUMN: "秋",
    PeriodPreset.WINTER: "冬",
}

_DEADLINE_NAMES = {
    DeadlinePreset.ONE_MONTH: ("1ヶ月後くらいに", "約30日後"),
    DeadlinePreset.THREE_MONTHS: ("3ヶ月後くらいに", "約3ヶ月後"),
    DeadlinePreset.SIX_MONTHS: ("半年後くらいに", "約半年後"),
    DeadlinePreset.ONE_YEAR: ("1年後くらいに", "約1年後"),
    DeadlinePreset.CUSTOM: ("自分で決める", "好きな日を選ぶ"),
}

_DEADLINE_MONTHS = {
    DeadlinePreset.ONE_MONTH: 1,
    DeadlinePreset.THREE_MONTHS: 3,
    DeadlinePreset.SIX_MONTHS: 6,
    DeadlinePreset.ONE_YEAR: 12,
}


def resolve_period(preset: PeriodPreset, now: datetime) -> Tuple[datetime, datetime]:
    """Return the inclusive ``(start, end)`` range a period preset covers at ``now``."""
    if preset is PeriodPreset.THIS_WEEK:
        start, end = cal.start_of_week(now), cal.end_of_week(now)
    elif preset is PeriodPreset.THIS_MONTH:
        start = cal.start_of_day(cal.end_of_week(now) + timedelta(days=1))
        end = cal.end_of_month(now)
    elif preset is PeriodPreset.NEXT_MONTH:
        start, end = cal.next_month_start(now), cal.next_month_end(now)
    elif preset is PeriodPreset.THIS_YEAR:
        start, end = cal.month_after_next_start(now), cal.end_of_year(now)
    elif preset is PeriodPreset.NEXT_YEAR:
        start, end = cal.next_year_start(now), cal.next_year_end(now)
    else:
        return cal.season_range(preset.value, now)

    # Late in a month (or a year) the remainder can be empty; never invert the range.
    if start > end:
        start = cal.start_of_day(end)
    return start, end


def resolve_deadline(preset: DeadlinePreset, now: datetime) -> Optional[datetime]:
    """Return ``now`` shifted by the preset's offset; ``custom`` has no implicit date."""
    months = _DEADLINE_MONTHS.get(preset)
    if months is None:
        return None
    return cal.add_months(now, months)


def season_label(preset: PeriodPreset) -> Optional[str]:
    """Label cached on a plan: seasons only, relative presets drift with ``now``."""
    return preset.display_name if preset.is_season else None
