"""Transcript messages and the structured replies the extractor returns."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    role: ChatRole
    content: str
    timestamp: datetime
    id: UUID = field(default_factory=uuid4)


class SuggestedPeriod(BaseModel):
    type: Literal["period"] = "period"
    preset: str = Field(
        ...,
        description="One of: thisWeek, thisMonth, nextMonth, thisYear, nextYear, spring, summer, autumn, winter.",
    )


class SuggestedDeadline(BaseModel):
    type: Literal["deadline"] = "deadline"
    preset: str = Field(..., description="One of: oneMonth, threeMonths, sixMonths, oneYear.")


class SuggestedAnytime(BaseModel):
    type: Literal["anytime"] = "anytime"


SuggestedTimeMode = Annotated[
    Union[SuggestedPeriod, SuggestedDeadline, SuggestedAnytime],
    Field(discriminator="type"),
]


class PlanSuggestion(BaseModel):
    """Plan proposed by the assistant, not yet persisted."""

    title: str = Field(..., min_length=1, description="Short plan title, e.g. 春の旅行, 確定申告, 歯医者に行く.")
    time_mode: SuggestedTimeMode
    memo: Optional[str] = Field(default=None, description="Extra detail not already in the title, else null.")


class QuestionReply(BaseModel):
    kind: Literal["question"] = "question"
    text: str = Field(..., description="Question asking only for the missing title or timing.")


class ConfirmationReply(BaseModel):
    kind: Literal["confirmation"] = "confirmation"
    text: str = Field(..., description="Short acknowledgement of the user's answer.")


class SuggestionReply(BaseModel):
    kind: Literal["suggestion"] = "suggestion"
    text: str = Field(..., description="Message presenting the proposed plan.")
    plan: PlanSuggestion


ChatBotReply = Annotated[
    Union[QuestionReply, ConfirmationReply, SuggestionReply],
    Field(discriminator="kind"),
]


class ChatBotEnvelope(BaseModel):
    """Top-level JSON object requested from the language model."""

    reply: ChatBotReply
