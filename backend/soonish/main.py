"""Main FastAPI application for the Soonish backend."""
from fastapi import FastAPI, Request

from soonish.api.routes.chat import router as chat_router
from soonish.api.routes.plans import router as plans_router
from soonish.core.config import settings
from soonish.core.logging import configure_logging
from soonish.core.middleware import RequestIDMiddleware
from soonish.observability.client import init_opik
from soonish.observability.tracing import trace

configure_logging(log_level=settings.log_level, debug=settings.debug)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(plans_router)
app.include_router(chat_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness check")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can check the API is up."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
