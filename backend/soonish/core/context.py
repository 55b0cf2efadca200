"""Context variables shared by middleware, logging, and the chat engine."""
from __future__ import annotations

from contextvars import ContextVar

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
conversation_id_ctx_var: ContextVar[str | None] = ContextVar("conversation_id", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


def get_conversation_id() -> str | None:
    """Return the id of the conversation whose turn is being handled, if any."""
    return conversation_id_ctx_var.get()
