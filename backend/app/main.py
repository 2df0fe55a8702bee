"""Main FastAPI application for the DeepFlow backend."""
from fastapi import FastAPI, Request

from app.api.routes.achievements import router as achievements_router
from app.api.routes.activity import router as activity_router
from app.api.routes.ai import router as ai_router
from app.api.routes.focus_sessions import router as focus_sessions_router
from app.api.routes.goals import router as goals_router
from app.api.routes.habits import router as habits_router
from app.api.routes.jobs import router as jobs_router
from app.api.routes.journal import router as journal_router
from app.api.routes.notifications import router as notifications_router
from app.api.routes.powerups import router as powerups_router
from app.api.routes.profile import router as profile_router
from app.api.routes.quests import router as quests_router
from app.api.routes.task import router as task_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.core.middleware import RequestIDMiddleware
from app.observability.client import init_opik
from app.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(profile_router)
app.include_router(task_router)
app.include_router(habits_router)
app.include_router(goals_router)
app.include_router(journal_router)
app.include_router(focus_sessions_router)
app.include_router(quests_router)
app.include_router(powerups_router)
app.include_router(achievements_router)
app.include_router(ai_router)
app.include_router(activity_router)
app.include_router(jobs_router)
app.include_router(notifications_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
