"""FastAPI application with lifespan, health and scheduler endpoints."""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request

from feedback_bot.config import get_settings
from feedback_bot.digest import run_digest
from feedback_bot.health import run_health_check
from feedback_bot.logging_config import configure_logging
from feedback_bot.services import Services, build_services, get_services
from feedback_bot.slack.router import router as slack_router
from feedback_bot.storage.database import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging, build the service graph and create tables on startup."""
    settings = get_settings()
    configure_logging(settings.log_level)
    if getattr(app.state, "services", None) is None:
        app.state.services = build_services(settings)
    services: Services = app.state.services
    if services.engine is not None:
        await init_db(services.engine)
    yield
    if services.engine is not None:
        await services.engine.dispose()


app = FastAPI(
    title="Feedback Bot",
    lifespan=lifespan,
)
app.include_router(slack_router)


async def verify_scheduler(request: Request, services: Services = Depends(get_services)) -> None:
    """Verify the scheduler secret header for protected endpoints.

    Raises HTTPException 403 if the header is missing, empty, or mismatched.
    """
    secret = request.headers.get("X-Scheduler-Secret", "")
    if not services.settings.scheduler_secret or secret != services.settings.scheduler_secret:
        raise HTTPException(status_code=403, detail="Invalid scheduler secret")


@app.get("/health")
async def health():
    """Liveness endpoint for Cloud Run and local development."""
    return {
        "status": "ok",
        "service": "feedback-bot",
        "version": "0.1.0",
    }


@app.post("/jobs/health-check")
async def health_check_endpoint(
    _: None = Depends(verify_scheduler),
    services: Services = Depends(get_services),
):
    """Check every active workspace token and invalidate the rejected ones."""
    return await run_health_check(services)


@app.post("/jobs/digest")
async def digest_endpoint(
    channel_id: str = "",
    _: None = Depends(verify_scheduler),
    services: Services = Depends(get_services),
):
    """Summarize a channel's recent messages (defaults to the configured channel)."""
    settings = services.settings
    return await run_digest(
        services, channel_id or settings.digest_channel_id, settings.digest_days
    )
