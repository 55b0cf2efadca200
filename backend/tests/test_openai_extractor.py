from __future__ import annotations

import json
from datetime import datetime
from types import SimpleNamespace

import pytest

from soonish.core.errors import ExtractionFailure
from soonish.services import plan_extractor
from soonish.services.chat_models import ChatMessage, ChatRole, QuestionReply, SuggestionReply
from soonish.services.plan_chat import SYSTEM_INSTRUCTION
from soonish.services.plan_extractor import (
    KeywordPlanExtractor,
    OpenAIPlanExtractor,
    build_turn_prompt,
    get_plan_extractor,
)

NOW = datetime(2025, 10, 15, 10, 0)


class _FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions: _FakeCompletions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def _transcript():
    return [
        ChatMessage(role=ChatRole.ASSISTANT, content="こんにちは", timestamp=NOW),
        ChatMessage(role=ChatRole.USER, content="冬に北陸でカニ食べたい", timestamp=NOW),
    ]


def test_turn_prompt_carries_history_and_schema() -> None:
    prompt = build_turn_prompt(_transcript())

    assert "User: 冬に北陸でカニ食べたい" in prompt
    assert "ChatBot (you): こんにちは" in prompt
    assert "New user message: 冬に北陸でカニ食べたい" in prompt
    assert '"reply"' in prompt


def test_openai_reply_is_validated_into_a_typed_reply() -> None:
    payload = {
        "reply": {
            "kind": "suggestion",
            "text": "冬の予定に追加しますか？",
            "plan": {
                "title": "北陸でカニ食べたい",
                "time_mode": {"type": "period", "preset": "winter"},
                "memo": None,
            },
        }
    }
    completions = _FakeCompletions(content=json.dumps(payload, ensure_ascii=False))
    extractor = OpenAIPlanExtractor(_client(completions), "gpt-4o")

    reply = extractor.extract(_transcript(), SYSTEM_INSTRUCTION)

    assert isinstance(reply, SuggestionReply)
    assert reply.plan.time_mode.preset == "winter"
    call = completions.calls[0]
    assert call["model"] == "gpt-4o"
    assert call["response_format"] == {"type": "json_object"}
    assert call["messages"][0] == {"role": "system", "content": SYSTEM_INSTRUCTION}


def test_openai_question_reply() -> None:
    completions = _FakeCompletions(content='{"reply": {"kind": "question", "text": "いつ頃ですか？"}}')
    reply = OpenAIPlanExtractor(_client(completions), "gpt-4o").extract(_transcript(), SYSTEM_INSTRUCTION)
    assert reply == QuestionReply(text="いつ頃ですか？")


@pytest.mark.parametrize(
    "completions",
    [
        _FakeCompletions(error=RuntimeError("rate limited")),
        _FakeCompletions(content="not json"),
        _FakeCompletions(content='{"reply": {"kind": "shrug", "text": "?"}}'),
    ],
)
def test_openai_failures_surface_as_extraction_failure(completions) -> None:
    extractor = OpenAIPlanExtractor(_client(completions), "gpt-4o")

    with pytest.raises(ExtractionFailure):
        extractor.extract(_transcript(), SYSTEM_INSTRUCTION)


def test_keyword_extractor_is_used_without_an_api_key(monkeypatch) -> None:
    monkeypatch.setattr(plan_extractor.settings, "plan_extractor", "auto")
    monkeypatch.setattr(plan_extractor.settings, "openai_api_key", None)
    get_plan_extractor.cache_clear()

    try:
        assert isinstance(get_plan_extractor(), KeywordPlanExtractor)
    finally:
        get_plan_extractor.cache_clear()


def test_openai_extractor_is_used_with_an_api_key(monkeypatch) -> None:
    monkeypatch.setattr(plan_extractor.settings, "plan_extractor", "auto")
    monkeypatch.setattr(plan_extractor.settings, "openai_api_key", "sk-test")
    get_plan_extractor.cache_clear()

    try:
        extractor = get_plan_extractor()
        assert isinstance(extractor, OpenAIPlanExtractor)
        assert extractor.name == "openai"
    finally:
        get_plan_extractor.cache_clear()


def test_keyword_provider_can_be_forced(monkeypatch) -> None:
    monkeypatch.setattr(plan_extractor.settings, "plan_extractor", "keyword")
    monkeypatch.setattr(plan_extractor.settings, "openai_api_key", "sk-test")
    get_plan_extractor.cache_clear()

    try:
        assert isinstance(get_plan_extractor(), KeywordPlanExtractor)
    finally:
        get_plan_extractor.cache_clear()
