"""Conversation routes that turn chat into plans."""
from __future__ import annotations

from datetime import datetime
from time import perf_counter
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from soonish.api.routes.plans import raise_for_engine_error, serialize_plan
from soonish.api.schemas.chat import (
    ChatMessageOut,
    ChatMessageRequest,
    ChatTurnResponse,
    ConfirmResponse,
    ConversationState,
)
from soonish.core.clock import get_now
from soonish.core.errors import (
    ConversationBusyError,
    ConversationNotFoundError,
    ExtractionFailure,
    InvalidPresetReference,
    NoPendingSuggestionError,
    NothingToRetryError,
    PlanValidationError,
)
from soonish.db.deps import get_db
from soonish.observability.metrics import log_metric
from soonish.observability.tracing import trace
from soonish.services.plan_chat import ConversationRegistry, PlanConversation, get_conversation_registry
from soonish.services.plan_extractor import PlanExtractor, get_plan_extractor
from soonish.services.plan_store import PlanStore

router = APIRouter(prefix="/chat")


def _conversation_state(conversation: PlanConversation) -> ConversationState:
    return ConversationState(
        id=conversation.id,
        messages=[
            ChatMessageOut(id=m.id, role=m.role, content=m.content, timestamp=m.timestamp)
            for m in conversation.messages
        ],
        pending_suggestion=conversation.pending_suggestion,
        in_flight=conversation.in_flight,
        last_error=conversation.last_error,
    )


def _get_conversation(registry: ConversationRegistry, conversation_id: UUID) -> PlanConversation:
    try:
        return registry.get(conversation_id)
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found") from exc


@router.post(
    "/conversations",
    response_model=ConversationState,
    status_code=status.HTTP_201_CREATED,
    tags=["chat"],
)
def start_conversation(
    registry: ConversationRegistry = Depends(get_conversation_registry),
    extractor: PlanExtractor = Depends(get_plan_extractor),
    now: datetime = Depends(get_now),
) -> ConversationState:
    conversation = registry.start(extractor, now)
    log_metric("chat.conversation.started", 1, metadata={"provider": extractor.name})
    return _conversation_state(conversation)


@router.get("/conversations/{conversation_id}", response_model=ConversationState, tags=["chat"])
def get_conversation(
    conversation_id: UUID,
    registry: ConversationRegistry = Depends(get_conversation_registry),
) -> ConversationState:
    return _conversation_state(_get_conversation(registry, conversation_id))


@router.delete("/conversations/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["chat"])
def end_conversation(
    conversation_id: UUID,
    registry: ConversationRegistry = Depends(get_conversation_registry),
) -> Response:
    try:
        registry.discard(conversation_id)
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found") from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/conversations/{conversation_id}/prewarm", response_model=ConversationState, tags=["chat"])
def prewarm_conversation(
    conversation_id: UUID,
    registry: ConversationRegistry = Depends(get_conversation_registry),
) -> ConversationState:
    conversation = _get_conversation(registry, conversation_id)
    conversation.prewarm()
    return _conversation_state(conversation)


@router.post("/conversations/{conversation_id}/messages", response_model=ChatTurnResponse, tags=["chat"])
def send_message(
    conversation_id: UUID,
    payload: ChatMessageRequest,
    http_request: Request,
    registry: ConversationRegistry = Depends(get_conversation_registry),
    now: datetime = Depends(get_now),
) -> ChatTurnResponse:
    """Run one conversation turn."""
    conversation = _get_conversation(registry, conversation_id)
    request_id = getattr(http_request.state, "request_id", None)
    start = perf_counter()

    with trace(
        "chat.turn",
        metadata={"conversation_id": str(conversation_id), "text_length": len(payload.text)},
        request_id=request_id,
    ):
        try:
            reply = conversation.send_message(payload.text, now)
        except ConversationBusyError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        except PlanValidationError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
        except ExtractionFailure as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="The assistant could not answer. Please try again.",
            ) from exc

    log_metric("chat.turn.latency_ms", (perf_counter() - start) * 1000, metadata={"kind": reply.kind})
    return ChatTurnResponse(
        reply_kind=reply.kind,
        reply_text=reply.text,
        conversation=_conversation_state(conversation),
    )


@router.post("/conversations/{conversation_id}/retry", response_model=ChatTurnResponse, tags=["chat"])
def retry_turn(
    conversation_id: UUID,
    http_request: Request,
    registry: ConversationRegistry = Depends(get_conversation_registry),
    now: datetime = Depends(get_now),
) -> ChatTurnResponse:
    """Re-run a failed turn for the message that is still unanswered."""
    conversation = _get_conversation(registry, conversation_id)
    request_id = getattr(http_request.state, "request_id", None)

    with trace("chat.retry", metadata={"conversation_id": str(conversation_id)}, request_id=request_id):
        try:
            reply = conversation.retry(now)
        except (NothingToRetryError, ConversationBusyError) as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        except ExtractionFailure as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="The assistant could not answer. Please try again.",
            ) from exc

    return ChatTurnResponse(
        reply_kind=reply.kind,
        reply_text=reply.text,
        conversation=_conversation_state(conversation),
    )


@router.post("/conversations/{conversation_id}/confirm", response_model=ConfirmResponse, tags=["chat"])
def confirm_suggestion(
    conversation_id: UUID,
    http_request: Request,
    registry: ConversationRegistry = Depends(get_conversation_registry),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ConfirmResponse:
    """Accept the pending suggestion and store it as a plan."""
    conversation = _get_conversation(registry, conversation_id)
    request_id = getattr(http_request.state, "request_id", None)
    store = PlanStore(db)

    with trace("chat.confirm", metadata={"conversation_id": str(conversation_id)}, request_id=request_id):
        try:
            plan = conversation.confirm(now, store.insert)
        except (NoPendingSuggestionError, ConversationBusyError) as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        except (PlanValidationError, InvalidPresetReference) as exc:
            raise_for_engine_error(exc)

    log_metric("plan.create.success", 1, metadata={"time_type": plan.time_mode_kind.value, "source": "chat"})
    return ConfirmResponse(plan=serialize_plan(plan, now), conversation=_conversation_state(conversation))


@router.post("/conversations/{conversation_id}/reject", response_model=ConversationState, tags=["chat"])
def reject_suggestion(
    conversation_id: UUID,
    registry: ConversationRegistry = Depends(get_conversation_registry),
    now: datetime = Depends(get_now),
) -> ConversationState:
    conversation = _get_conversation(registry, conversation_id)
    try:
        conversation.reject(now)
    except (NoPendingSuggestionError, ConversationBusyError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _conversation_state(conversation)
