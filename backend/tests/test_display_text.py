from __future__ import annotations

from datetime import datetime

from soonish.services import display_text, plan_entity
from soonish.services.presets import DeadlinePreset, PeriodPreset

NOW = datetime(2025, 10, 15, 10, 0)


def test_period_text_prefers_the_season_label() -> None:
    plan = plan_entity.build_with_period("花見", PeriodPreset.SPRING, NOW)
    assert display_text.period_display_text(plan, NOW) == "春"


def test_period_text_follows_the_start_date() -> None:
    expected = {
        PeriodPreset.THIS_WEEK: "今週中",
        PeriodPreset.THIS_MONTH: "今月中",
        PeriodPreset.NEXT_MONTH: "来月中",
        PeriodPreset.THIS_YEAR: "今年中",
        PeriodPreset.NEXT_YEAR: "来年以降",
    }
    for preset, text in expected.items():
        plan = plan_entity.build_with_period("x", preset, NOW)
        assert display_text.period_display_text(plan, NOW) == text, preset


def test_period_text_for_other_modes() -> None:
    assert display_text.period_display_text(plan_entity.build_anytime("x", NOW), NOW) == "いつか"
    deadline = plan_entity.build_with_deadline("x", DeadlinePreset.ONE_MONTH, NOW)
    assert display_text.period_display_text(deadline, NOW) is None


def test_remaining_text_tracks_the_due_date() -> None:
    plan = plan_entity.build_with_deadline("x", DeadlinePreset.ONE_MONTH, NOW)

    assert display_text.remaining_days_text(plan, NOW) == "来月中"
    assert display_text.remaining_days_text(plan, datetime(2025, 11, 3)) == "今月中"
    assert display_text.remaining_days_text(plan, datetime(2025, 11, 12)) == "今週中"
    assert display_text.remaining_days_text(plan, datetime(2025, 11, 16)) == "期限切れ"


def test_remaining_text_for_longer_deadlines() -> None:
    three = plan_entity.build_with_deadline("x", DeadlinePreset.THREE_MONTHS, NOW)
    year = plan_entity.build_with_deadline("x", DeadlinePreset.ONE_YEAR, NOW)

    assert display_text.remaining_days_text(three, NOW) == "来年以降"
    assert display_text.remaining_days_text(three, datetime(2025, 12, 20)) == "来月中"
    assert display_text.remaining_days_text(year, datetime(2026, 3, 1)) == "今年中"


def test_remaining_text_hidden_without_a_preset() -> None:
    bare = plan_entity.build_with_deadline("x", None, NOW, custom_date=datetime(2025, 10, 30))
    custom = plan_entity.build_with_deadline(
        "x", DeadlinePreset.CUSTOM, NOW, custom_date=datetime(2025, 10, 30)
    )

    assert display_text.remaining_days_text(bare, NOW) is None
    assert display_text.remaining_days_text(custom, NOW) == "今月中"
    assert display_text.remaining_days_text(plan_entity.build_anytime("x", NOW), NOW) is None


def test_deadline_text_is_a_japanese_date() -> None:
    plan = plan_entity.build_with_deadline("x", DeadlinePreset.THREE_MONTHS, NOW)
    assert display_text.deadline_display_text(plan) == "2026年1月15日"
    assert display_text.deadline_display_text(plan_entity.build_anytime("x", NOW)) is None
