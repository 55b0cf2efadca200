from __future__ import annotations

from datetime import datetime

from soonish.services.chat_models import (
    ChatMessage,
    ChatRole,
    ConfirmationReply,
    QuestionReply,
    SuggestedAnytime,
    SuggestedDeadline,
    SuggestedPeriod,
    SuggestionReply,
)
from soonish.services.plan_chat import GREETING, SYSTEM_INSTRUCTION
from soonish.services.plan_extractor import ASK_TIMING, ASK_TITLE, KeywordPlanExtractor

NOW = datetime(2025, 10, 15, 10, 0)


def _transcript(*user_texts: str):
    messages = [ChatMessage(role=ChatRole.ASSISTANT, content=GREETING, timestamp=NOW)]
    for text in user_texts:
        messages.append(ChatMessage(role=ChatRole.USER, content=text, timestamp=NOW))
    return messages


def _extract(*user_texts: str):
    return KeywordPlanExtractor().extract(_transcript(*user_texts), SYSTEM_INSTRUCTION)


def test_time_reference_in_first_message_goes_straight_to_a_suggestion() -> None:
    reply = _extract("春に旅行したい")

    assert isinstance(reply, SuggestionReply)
    assert reply.plan.title == "旅行"
    assert reply.plan.time_mode == SuggestedPeriod(preset="spring")


def test_missing_timing_is_asked_for_then_filled_in() -> None:
    first = _extract("確定申告しないと")
    assert isinstance(first, QuestionReply)
    assert first.text == ASK_TIMING

    second = _extract("確定申告しないと", "3ヶ月以内")
    assert isinstance(second, SuggestionReply)
    assert second.plan.title == "確定申告"
    assert second.plan.time_mode == SuggestedDeadline(preset="threeMonths")


def test_english_someday_is_an_anytime_plan() -> None:
    reply = _extract("I want to visit Kyoto someday")

    assert isinstance(reply, SuggestionReply)
    assert reply.plan.title == "visit Kyoto"
    assert isinstance(reply.plan.time_mode, SuggestedAnytime)


def test_anytime_wins_over_other_time_words() -> None:
    reply = _extract("いつか来年あたりにオーロラを見る")
    assert isinstance(reply.plan.time_mode, SuggestedAnytime)


def test_unclear_follow_up_asks_again_with_a_confirmation() -> None:
    reply = _extract("歯医者に行く", "うーん")
    assert isinstance(reply, ConfirmationReply)
    assert ASK_TIMING in reply.text


def test_no_user_message_asks_for_a_title() -> None:
    reply = KeywordPlanExtractor().extract(_transcript(), SYSTEM_INSTRUCTION)
    assert isinstance(reply, QuestionReply)
    assert reply.text == ASK_TITLE


def test_timing_answer_does_not_replace_the_title() -> None:
    reply = _extract("旅行したい", "春かな")

    assert isinstance(reply, SuggestionReply)
    assert reply.plan.title == "旅行"
    assert reply.plan.time_mode == SuggestedPeriod(preset="spring")


def test_timing_answer_with_extra_words_keeps_the_first_title() -> None:
    reply = _extract("確定申告しないと", "半年以内にやる")

    assert reply.plan.title == "確定申告"
    assert reply.plan.time_mode == SuggestedDeadline(preset="sixMonths")


def test_hedged_timing_alone_still_asks_for_a_title() -> None:
    reply = _extract("来月かな")
    assert isinstance(reply, QuestionReply)
    assert reply.text == ASK_TITLE
