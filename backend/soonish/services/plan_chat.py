"""Turn-based conversation that extracts a plan from free-form chat.

A ``PlanConversation`` owns an append-only transcript, at most one pending
suggestion, and an in-flight flag. Each turn appends the user's message, asks
the extraction collaborator for a typed reply, and records the assistant's
text. A suggestion stays pending until it is confirmed (converted and
persisted) or rejected. A failed turn keeps the user message so it can be
retried without sending it twice.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from threading import Lock
from typing import Callable, Dict, List, Optional
from uuid import UUID, uuid4

from soonish.core.config import settings
from soonish.core.context import conversation_id_ctx_var
from soonish.core.errors import (
    ConversationBusyError,
    ConversationNotFoundError,
    ExtractionFailure,
    NoPendingSuggestionError,
    NothingToRetryError,
    PlanValidationError,
)
from soonish.observability.metrics import log_metric
from soonish.services.chat_models import ChatBotReply, ChatMessage, ChatRole, PlanSuggestion, SuggestionReply
from soonish.services.plan_entity import Plan
from soonish.services.plan_extractor import PlanExtractor
from soonish.services.suggestion_converter import to_plan

logger = logging.getLogger(__name__)

GREETING = "こんにちは！どんな予定を作りたいですか？😊"
REJECT_ACK = "わかりました。他に変更したいことはありますか？"

SYSTEM_INSTRUCTION = (
    "You are the assistant of Soonish, an app for loosely timed plans such as "
    "'sometime this spring' or 'within three months'. Extract what is needed to create a "
    "plan from the user's messages and ask only for what is missing.\n\n"
    "## Required information\n"
    "1. title (required): a short summary that keeps the user's own wording, "
    "e.g. '冬に北陸でカニ食べたい' -> '北陸でカニ食べたい', '確定申告しないと' -> '確定申告'.\n"
    "2. time_mode (required): one of\n"
    "   - period with preset spring, summer, autumn, winter, thisWeek, thisMonth, nextMonth, thisYear, nextYear\n"
    "   - deadline with preset oneMonth, threeMonths, sixMonths, oneYear\n"
    "   - anytime when no timing is decided\n"
    "3. memo (optional): extra details not already in the title (place, things to bring); "
    "otherwise null.\n\n"
    "## Rules\n"
    "- Never ask for exact dates; the app manages rough plans on purpose.\n"
    "- If the user's message already contains a time reference ('in winter', 'around spring'), "
    "use it and do not ask again.\n"
    "- As soon as title and timing are known, reply with a suggestion. No needless confirmations.\n"
    "- Use question only when the title or timing is unknown; use confirmation to acknowledge "
    "an answer before the next question.\n"
    "- Reply in the user's language with a friendly tone."
)

Persist = Callable[[Plan], Plan]


class PlanConversation:
    def __init__(
        self,
        extractor: PlanExtractor,
        now: datetime,
        *,
        conversation_id: Optional[UUID] = None,
        system_instruction: str = SYSTEM_INSTRUCTION,
    ):
        self.id = conversation_id or uuid4()
        self._extractor = extractor
        self._system_instruction = system_instruction
        self._messages: List[ChatMessage] = [ChatMessage(role=ChatRole.ASSISTANT, content=GREETING, timestamp=now)]
        self._pending: Optional[PlanSuggestion] = None
        self._turn_lock = Lock()
        self._in_flight = False
        self.last_error: Optional[str] = None
        self.last_activity = now

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    @property
    def pending_suggestion(self) -> Optional[PlanSuggestion]:
        return self._pending

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def awaiting_reply(self) -> bool:
        """True when the last user message never got an assistant answer."""
        return self._messages[-1].role is ChatRole.USER

    def prewarm(self) -> None:
        self._extractor.prewarm()

    def send_message(self, text: str, now: datetime) -> ChatBotReply:
        """Run one turn; raises ``ExtractionFailure`` with the user message kept."""
        content = (text or "").strip()
        if not content:
            raise PlanValidationError("message must not be empty")

        self._begin_turn(now)
        try:
            self._messages.append(ChatMessage(role=ChatRole.USER, content=content, timestamp=now))
            return self._answer(now)
        finally:
            self._end_turn()

    def retry(self, now: datetime) -> ChatBotReply:
        """Ask again for the unanswered user message left by a failed turn."""
        self._begin_turn(now)
        try:
            if not self.awaiting_reply:
                raise NothingToRetryError()
            log_metric("chat.turn.retry", 1)
            return self._answer(now)
        finally:
            self._end_turn()

    def confirm(self, now: datetime, persist: Persist) -> Plan:
        """Convert the pending suggestion and hand it to ``persist``.

        On any failure the suggestion stays pending so the user can retry.
        """
        self._begin_turn(now)
        try:
            if self._pending is None:
                raise NoPendingSuggestionError()
            plan = to_plan(self._pending, now)
            stored = persist(plan)
            self._pending = None
            log_metric("chat.suggestion.accepted", 1, metadata={"time_mode": stored.time_mode_kind.value})
            return stored
        finally:
            self._end_turn()

    def reject(self, now: datetime) -> ChatMessage:
        self._begin_turn(now)
        try:
            if self._pending is None:
                raise NoPendingSuggestionError()
            self._pending = None
            message = ChatMessage(role=ChatRole.ASSISTANT, content=REJECT_ACK, timestamp=now)
            self._messages.append(message)
            log_metric("chat.suggestion.rejected", 1)
            return message
        finally:
            self._end_turn()

    def _answer(self, now: datetime) -> ChatBotReply:
        token = conversation_id_ctx_var.set(str(self.id))
        try:
            self.last_error = None
            try:
                reply = self._extractor.extract(self.messages, self._system_instruction)
            except ExtractionFailure as exc:
                self._record_failure(exc)
                raise
            except Exception as exc:
                self._record_failure(exc)
                raise ExtractionFailure(f"plan extraction failed: {exc}") from exc

            self._messages.append(ChatMessage(role=ChatRole.ASSISTANT, content=reply.text, timestamp=now))
            if isinstance(reply, SuggestionReply):
                self._pending = reply.plan
                logger.info("Plan suggested: %s (%s)", reply.plan.title, reply.plan.time_mode.type)
            log_metric("chat.turn.reply", 1, metadata={"kind": reply.kind})
            return reply
        finally:
            conversation_id_ctx_var.reset(token)

    def _begin_turn(self, now: datetime) -> None:
        if not self._turn_lock.acquire(blocking=False):
            raise ConversationBusyError()
        self._in_flight = True
        self.last_activity = now

    def _end_turn(self) -> None:
        self._in_flight = False
        self._turn_lock.release()

    def _record_failure(self, exc: Exception) -> None:
        self.last_error = str(exc)
        logger.warning("Plan extraction failed for conversation %s: %s", self.id, exc)
        log_metric("chat.turn.failure", 1)


class ConversationRegistry:
    """In-process map of live conversations.

    Starting a conversation first drops every other one that has been idle for
    longer than ``idle_timeout``; conversations with a turn in flight are kept.
    """

    def __init__(self, idle_timeout: Optional[timedelta] = None) -> None:
        self._conversations: Dict[UUID, PlanConversation] = {}
        self._lock = Lock()
        self._idle_timeout = idle_timeout

    def __len__(self) -> int:
        with self._lock:
            return len(self._conversations)

    def start(self, extractor: PlanExtractor, now: datetime) -> PlanConversation:
        self.evict_idle(now)
        conversation = PlanConversation(extractor, now)
        with self._lock:
            self._conversations[conversation.id] = conversation
        return conversation

    def get(self, conversation_id: UUID) -> PlanConversation:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def discard(self, conversation_id: UUID) -> None:
        with self._lock:
            if self._conversations.pop(conversation_id, None) is None:
                raise ConversationNotFoundError(conversation_id)

    def evict_idle(self, now: datetime) -> int:
        if self._idle_timeout is None:
            return 0
        cutoff = now - self._idle_timeout
        with self._lock:
            stale = [
                conversation_id
                for conversation_id, conversation in self._conversations.items()
                if not conversation.in_flight and conversation.last_activity < cutoff
            ]
            for conversation_id in stale:
                del self._conversations[conversation_id]
        if stale:
            logger.info("Evicted %d idle conversations.", len(stale))
        return len(stale)


_registry = ConversationRegistry(idle_timeout=timedelta(minutes=settings.conversation_idle_minutes))


def get_conversation_registry() -> ConversationRegistry:
    return _registry
