"""Turn an accepted plan suggestion into a plan entity."""
from __future__ import annotations

from datetime import datetime

from soonish.core.errors import InvalidDeadlinePresetError, InvalidPeriodPresetError
from soonish.services.chat_models import PlanSuggestion, SuggestedDeadline, SuggestedPeriod
from soonish.services.plan_entity import Plan, build_anytime, build_with_deadline, build_with_period
from soonish.services.presets import DeadlinePreset, PeriodPreset


def to_plan(suggestion: PlanSuggestion, now: datetime) -> Plan:
    """Validate the suggestion's preset names and build the matching plan.

    Unknown names raise instead of falling back to a default preset.
    """
    time_mode = suggestion.time_mode

    if isinstance(time_mode, SuggestedPeriod):
        try:
            period_preset = PeriodPreset(time_mode.preset)
        except ValueError as exc:
            raise InvalidPeriodPresetError(time_mode.preset) from exc
        return build_with_period(suggestion.title, period_preset, now, memo=suggestion.memo)

    if isinstance(time_mode, SuggestedDeadline):
        try:
            deadline_preset = DeadlinePreset(time_mode.preset)
        except ValueError as exc:
            raise InvalidDeadlinePresetError(time_mode.preset) from exc
        return build_with_deadline(suggestion.title, deadline_preset, now, memo=suggestion.memo)

    return build_anytime(suggestion.title, now, memo=suggestion.memo)
