"""Structured extraction collaborators used by the plan conversation."""
from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

import openai

from soonish.core.config import settings
from soonish.core.errors import ExtractionFailure
from soonish.observability.metrics import log_metric
from soonish.observability.tracing import trace
from soonish.services.chat_models import (
    ChatBotEnvelope,
    ChatBotReply,
    ChatMessage,
    ChatRole,
    ConfirmationReply,
    PlanSuggestion,
    QuestionReply,
    SuggestedAnytime,
    SuggestedDeadline,
    SuggestedPeriod,
    SuggestionReply,
)

logger = logging.getLogger(__name__)


class PlanExtractor:
    """Base interface for extraction providers."""

    name = "base"

    def extract(self, transcript: Sequence[ChatMessage], system_instruction: str) -> ChatBotReply:
        raise NotImplementedError

    def prewarm(self) -> None:
        """Optional speculative warm-up before the first turn."""
        return None


def render_transcript(transcript: Sequence[ChatMessage]) -> str:
    lines = []
    for message in transcript:
        speaker = "User:" if message.role is ChatRole.USER else "ChatBot (you):"
        lines.append(f"{speaker} {message.content}")
    return "\n".join(lines)


def build_turn_prompt(transcript: Sequence[ChatMessage]) -> str:
    latest = next((m for m in reversed(transcript) if m.role is ChatRole.USER), None)
    schema_json = json.dumps(ChatBotEnvelope.model_json_schema(), ensure_ascii=False, indent=2)
    return (
        f"Previous messages:\n{render_transcript(transcript)}\n\n"
        "Respond to the new user message. Use the previous messages as context when the new "
        "message is ambiguous on its own.\n\n"
        f"New user message: {latest.content if latest else ''}\n\n"
        "### OUTPUT REQUIREMENT\n"
        "Return strictly valid JSON matching this schema:\n"
        f"{schema_json}"
    )


class OpenAIPlanExtractor(PlanExtractor):
    name = "openai"

    def __init__(self, client, model: str):
        self._client = client
        self._model = model

    def extract(self, transcript: Sequence[ChatMessage], system_instruction: str) -> ChatBotReply:
        prompt = build_turn_prompt(transcript)
        metadata = {"model": self._model, "transcript_length": len(transcript)}
        try:
            with trace("chat.extract", metadata=metadata):
                completion = self._client.chat.completions.create(
                    model=self._model,
                    response_format={"type": "json_object"},
                    messages=[
                        {"role": "system", "content": system_instruction},
                        {"role": "user", "content": prompt},
                    ],
                )
            content = completion.choices[0].message.content or "{}"
            reply = ChatBotEnvelope.model_validate_json(content).reply
        except Exception as exc:
            log_metric("chat.extract.failure", 1, metadata={"provider": self.name})
            raise ExtractionFailure(f"plan extraction failed: {exc}") from exc

        log_metric("chat.extract.success", 1, metadata={"provider": self.name, "kind": reply.kind})
        return reply


PERIOD_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("thisWeek", ("今週", "this week")),
    ("thisMonth", ("今月", "this month")),
    ("nextMonth", ("来月", "next month")),
    ("thisYear", ("今年", "this year")),
    ("nextYear", ("来年", "next year")),
    ("spring", ("春", "spring")),
    ("summer", ("夏", "summer")),
    ("autumn", ("秋", "autumn", "fall")),
    ("winter", ("冬", "winter")),
]
DEADLINE_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("oneMonth", ("1ヶ月", "一ヶ月", "1か月", "one month", "a month")),
    ("threeMonths", ("3ヶ月", "三ヶ月", "3か月", "three months")),
    ("sixMonths", ("半年", "6ヶ月", "6か月", "six months", "half a year")),
    ("oneYear", ("1年", "一年", "one year", "a year")),
]
ANYTIME_KEYWORDS = ("いつか", "そのうち", "someday", "some day", "eventually")

# Connective phrases left over once a time reference is cut out of the title.
_TIME_PARTICLES = re.compile(
    r"^(以内に|以内|中に|中|までに|まで|後くらいに|後に|後|くらいに|くらい|頃に|頃|ごろに|ごろ|に|は|の)"
)
_SENTENCE_ENDINGS = ("かな", "かも", "よね", "だね")
_INTENT_SUFFIXES = ("したいな", "したい", "しないと", "行きたい", "に行く", "たい")
_ENGLISH_LEADS = re.compile(r"^(i want to|i'd like to|i need to|i should|want to)\s+", re.IGNORECASE)

ASK_TITLE = "どんなことをしたいですか？"
ASK_TIMING = "いつ頃やりたいですか？（例: 春、来月、3ヶ月以内、いつか）"
CONFIRM_TEXT = "なるほど、わかりました！"


def _find_keyword(lowered: str, table: List[Tuple[str, Tuple[str, ...]]]) -> Optional[Tuple[str, str]]:
    for preset, keywords in table:
        for keyword in keywords:
            if keyword in lowered:
                return preset, keyword
    return None


def _strip_keyword(text: str, keyword: str) -> str:
    index = text.lower().find(keyword)
    if index < 0:
        return text.strip()
    before = text[:index].strip()
    after = _TIME_PARTICLES.sub("", text[index + len(keyword):].strip()).strip()
    return f"{before} {after}".strip() if before and after else (before or after)


def _normalize_title(text: str) -> str:
    title = _ENGLISH_LEADS.sub("", text.strip().rstrip("。.!！?？"))
    for ending in _SENTENCE_ENDINGS:
        if title.endswith(ending):
            title = title[: -len(ending)]
            break
    for suffix in _INTENT_SUFFIXES:
        if title.endswith(suffix) and len(title) > len(suffix):
            title = title[: -len(suffix)]
            break
    return title.strip(" 、,")


class KeywordPlanExtractor(PlanExtractor):
    """Offline heuristics: reuse the time reference already present in the text."""

    name = "keyword"

    def extract(self, transcript: Sequence[ChatMessage], system_instruction: str) -> ChatBotReply:
        user_messages = [m.content for m in transcript if m.role is ChatRole.USER]
        if not user_messages:
            return QuestionReply(text=ASK_TITLE)

        title: Optional[str] = None
        time_mode = None
        for text in user_messages:
            candidate, found = self._parse(text)
            if found is not None:
                time_mode = found
            # A timing answer only supplies the title when none is known yet.
            if candidate and (title is None or found is None):
                title = candidate

        if not title:
            return QuestionReply(text=ASK_TITLE)
        if time_mode is None:
            if len(user_messages) == 1:
                return QuestionReply(text=ASK_TIMING)
            return ConfirmationReply(text=f"{CONFIRM_TEXT} {ASK_TIMING}")

        suggestion = PlanSuggestion(title=title, time_mode=time_mode)
        return SuggestionReply(text=f"「{title}」を予定に追加しますか？", plan=suggestion)

    def _parse(self, text: str):
        lowered = text.lower()
        if any(keyword in lowered for keyword in ANYTIME_KEYWORDS):
            keyword = next(k for k in ANYTIME_KEYWORDS if k in lowered)
            return _normalize_title(_strip_keyword(text, keyword)), SuggestedAnytime()

        match = _find_keyword(lowered, DEADLINE_KEYWORDS)
        if match:
            preset, keyword = match
            return _normalize_title(_strip_keyword(text, keyword)), SuggestedDeadline(preset=preset)

        match = _find_keyword(lowered, PERIOD_KEYWORDS)
        if match:
            preset, keyword = match
            return _normalize_title(_strip_keyword(text, keyword)), SuggestedPeriod(preset=preset)

        return _normalize_title(text), None


@lru_cache
def get_plan_extractor() -> PlanExtractor:
    provider = settings.plan_extractor.lower()
    api_key = settings.openai_api_key
    if provider in {"openai", "auto"} and api_key:
        return OpenAIPlanExtractor(openai.OpenAI(api_key=api_key), settings.openai_model)
    if provider == "openai":
        logger.warning("PLAN_EXTRACTOR=openai but OPENAI_API_KEY is missing; using keyword extractor.")
    return KeywordPlanExtractor()
