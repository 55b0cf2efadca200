"""Opik client lifecycle.

The client is created lazily on first use and cached for the process. When
``OPIK_ENABLED`` is false, the key is missing, or the SDK cannot connect, every
caller gets ``None`` and tracing degrades to a no-op.
"""
from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from soonish.core.config import settings

try:
    from opik import Opik
except ImportError:  # pragma: no cover
    Opik = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_client: Optional["Opik"] = None
_client_lock = Lock()
_init_attempted = False


def _build_client() -> Optional["Opik"]:
    if not settings.opik_enabled:
        logger.debug("Opik disabled; plan and chat traces are not exported.")
        return None
    if not settings.opik_api_key:
        logger.warning("OPIK_ENABLED is true but OPIK_API_KEY is missing; plan traces are disabled.")
        return None

    try:
        client = Opik(project_name=settings.opik_project, api_key=settings.opik_api_key)
    except Exception as exc:  # pragma: no cover - depends on remote service
        logger.warning("Failed to initialize Opik, plan and chat traces are disabled: %s", exc)
        return None

    logger.info("Opik enabled (project=%s).", settings.opik_project)
    return client


def init_opik() -> Optional["Opik"]:
    """Create the client on the first call; later calls return the cached result."""
    global _client, _init_attempted

    if Opik is None:
        return None

    with _client_lock:
        if not _init_attempted:
            _init_attempted = True
            _client = _build_client()
        return _client


def get_opik_client() -> Optional["Opik"]:
    if _client is not None:
        return _client
    return init_opik()


def reset_opik() -> None:
    """Forget the cached client so the next call re-reads the settings."""
    global _client, _init_attempted

    with _client_lock:
        _client = None
        _init_attempted = False
