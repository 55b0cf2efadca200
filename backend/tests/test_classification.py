from __future__ import annotations

from datetime import datetime, timedelta

from soonish.services import calendar_math as cal
from soonish.services import plan_entity
from soonish.services.classification import (
    DATELESS_SORT_BASE,
    Bucket,
    anytime_backlog,
    belongs_to,
    bucket_range,
    build_board,
    filter_by_bucket,
    ranges_overlap,
    sort_priority,
    sorted_by_default,
    sorted_by_newest_first,
    visible_buckets,
)
from soonish.services.presets import DeadlinePreset, PeriodPreset

NOW = datetime(2025, 10, 15, 10, 0)


def _due_in(title: str, delta: timedelta, created_at: datetime = NOW):
    return plan_entity.build_with_deadline(
        title, DeadlinePreset.CUSTOM, created_at, custom_date=NOW + delta
    )


def test_ranges_overlap_includes_touching_endpoints() -> None:
    a, b, c, d = (datetime(2025, 1, day) for day in (1, 5, 10, 20))
    assert ranges_overlap(a, b, b, c) is True
    assert ranges_overlap(a, c, b, d) is True
    assert ranges_overlap(a, b, c, d) is False
    assert ranges_overlap(c, d, a, b) is False


def test_visible_buckets_switch_when_month_after_next_is_next_year() -> None:
    assert visible_buckets(NOW) == [Bucket.THIS_MONTH, Bucket.NEXT_MONTH, Bucket.THIS_YEAR]
    assert visible_buckets(datetime(2025, 11, 20)) == [
        Bucket.THIS_MONTH,
        Bucket.NEXT_MONTH,
        Bucket.NEXT_YEAR_ONWARDS,
    ]


def test_bucket_display_names() -> None:
    assert [bucket.display_name for bucket in Bucket] == ["今月中", "来月中", "今年中", "来年以降"]


def test_season_plan_spanning_buckets_appears_in_each() -> None:
    autumn = plan_entity.build_with_period("紅葉", PeriodPreset.AUTUMN, NOW)

    assert belongs_to(autumn, Bucket.THIS_MONTH, NOW)
    assert belongs_to(autumn, Bucket.NEXT_MONTH, NOW)
    assert not belongs_to(autumn, Bucket.THIS_YEAR, NOW)
    assert not belongs_to(autumn, Bucket.NEXT_YEAR_ONWARDS, NOW)


def test_winter_reaches_into_next_year_bucket() -> None:
    winter = plan_entity.build_with_period("スキー", PeriodPreset.WINTER, NOW)

    assert belongs_to(winter, Bucket.THIS_YEAR, NOW)
    assert belongs_to(winter, Bucket.NEXT_YEAR_ONWARDS, NOW)
    assert not belongs_to(winter, Bucket.NEXT_MONTH, NOW)


def test_excluded_plans_never_belong() -> None:
    plan = plan_entity.build_with_period("旅行", PeriodPreset.THIS_MONTH, NOW)
    anytime = plan_entity.build_anytime("いつか", NOW)
    expired = plan_entity.build_with_period("今週", PeriodPreset.THIS_WEEK, NOW)
    later = datetime(2025, 10, 25)

    for bucket in Bucket:
        assert not belongs_to(plan_entity.toggle_completed(plan, NOW), bucket, NOW)
        assert not belongs_to(plan_entity.toggle_archived(plan, NOW), bucket, NOW)
        assert not belongs_to(anytime, bucket, NOW)
        assert not belongs_to(expired, bucket, later)


def test_overdue_deadline_drops_out_of_buckets() -> None:
    overdue = _due_in("請求書", timedelta(days=-1), created_at=NOW - timedelta(days=10))
    assert filter_by_bucket([overdue], Bucket.THIS_MONTH, NOW) == []


def test_default_order_puts_overdue_first_and_dateless_last() -> None:
    soon = _due_in("soon", timedelta(days=2, hours=1))
    later = _due_in("later", timedelta(days=5, hours=1))
    overdue = _due_in("overdue", timedelta(days=-1, hours=-1))
    older_season = plan_entity.build_with_period("older", PeriodPreset.AUTUMN, NOW - timedelta(days=3))
    newer_season = plan_entity.build_with_period("newer", PeriodPreset.AUTUMN, NOW - timedelta(days=1))

    ordered = sorted_by_default([newer_season, later, older_season, overdue, soon], NOW)

    assert [plan.title for plan in ordered] == ["overdue", "soon", "later", "newer", "older"]
    assert sort_priority(overdue, NOW) == -1
    assert sort_priority(soon, NOW) == 2


def test_dateless_priority_stays_above_any_day_count() -> None:
    plan = plan_entity.build_anytime("x", NOW)
    assert sort_priority(plan, NOW) == DATELESS_SORT_BASE - NOW.timestamp()
    assert sort_priority(plan, NOW) > 365 * 1000


def test_anytime_backlog_is_oldest_first_and_active_only() -> None:
    first = plan_entity.build_anytime("first", NOW - timedelta(days=5))
    second = plan_entity.build_anytime("second", NOW - timedelta(days=2))
    done = plan_entity.toggle_completed(plan_entity.build_anytime("done", NOW), NOW)
    dated = plan_entity.build_with_period("dated", PeriodPreset.NEXT_MONTH, NOW)

    backlog = anytime_backlog([second, done, dated, first], NOW)

    assert [plan.title for plan in backlog] == ["first", "second"]


def test_newest_first() -> None:
    a = plan_entity.build_anytime("a", NOW - timedelta(days=1))
    b = plan_entity.build_anytime("b", NOW)
    assert [plan.title for plan in sorted_by_newest_first([a, b])] == ["b", "a"]


def test_build_board_lists_visible_buckets_in_order() -> None:
    trip = plan_entity.build_with_period("旅行", PeriodPreset.NEXT_MONTH, NOW)
    tax = plan_entity.build_with_deadline("確定申告", DeadlinePreset.ONE_MONTH, NOW)
    someday = plan_entity.build_anytime("いつか", NOW)

    board = build_board([trip, tax, someday], NOW)

    assert [view.bucket for view in board] == visible_buckets(NOW)
    this_month, next_month, this_year = board
    assert [plan.title for plan in this_month.plans] == ["確定申告"]
    assert [plan.title for plan in next_month.plans] == ["確定申告", "旅行"]
    assert this_year.plans == []


def test_whole_month_plan_sits_only_in_this_month() -> None:
    built = plan_entity.build_with_period("x", PeriodPreset.THIS_MONTH, NOW)
    plan = plan_entity.restore_plan(
        id=built.id,
        title=built.title,
        time_mode=built.time_mode,
        memo=None,
        is_completed=False,
        is_archived=False,
        created_at=NOW,
        updated_at=NOW,
        period_start=cal.start_of_month(NOW),
        period_end=cal.end_of_month(NOW),
        deadline=None,
    )

    assert belongs_to(plan, Bucket.THIS_MONTH, NOW)
    assert not belongs_to(plan, Bucket.NEXT_MONTH, NOW)
    assert not belongs_to(plan, Bucket.NEXT_YEAR_ONWARDS, NOW)


def test_bucket_ranges() -> None:
    assert bucket_range(Bucket.THIS_MONTH, NOW) == (cal.start_of_month(NOW), cal.end_of_month(NOW))
    assert bucket_range(Bucket.NEXT_MONTH, NOW) == (datetime(2025, 11, 1), cal.next_month_end(NOW))
    assert bucket_range(Bucket.THIS_YEAR, NOW) == (datetime(2025, 12, 1), cal.end_of_year(NOW))
    assert bucket_range(Bucket.NEXT_YEAR_ONWARDS, NOW) == (datetime(2026, 1, 1), None)
