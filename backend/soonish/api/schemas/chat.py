"""Pydantic schemas for the plan chat endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from soonish.api.schemas.plan import PlanSummary
from soonish.services.chat_models import ChatRole, PlanSuggestion


class ChatMessageOut(BaseModel):
    id: UUID
    role: ChatRole
    content: str
    timestamp: datetime


class ConversationState(BaseModel):
    id: UUID
    messages: List[ChatMessageOut]
    pending_suggestion: Optional[PlanSuggestion]
    in_flight: bool
    last_error: Optional[str]


class ChatMessageRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)


class ChatTurnResponse(BaseModel):
    reply_kind: str
    reply_text: str
    conversation: ConversationState


class ConfirmResponse(BaseModel):
    plan: PlanSummary
    conversation: ConversationState
