"""Slack webhook routes. Every POST is signature-verified before it is parsed."""

import json
import logging
from urllib.parse import parse_qs

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse, RedirectResponse, Response

from feedback_bot.errors import InstallError, StorageError
from feedback_bot.services import Services, get_services
from feedback_bot.slack.commands import handle_board_command, handle_summary_command
from feedback_bot.slack.handlers import handle_slack_event
from feedback_bot.slack.interactions import handle_interaction
from feedback_bot.slack.oauth import complete_install
from feedback_bot.slack.verification import verify_slack_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/slack", tags=["slack"])


def _parse_form(body: bytes) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(body.decode("utf-8")).items()}


@router.post("/events")
async def slack_events(
    background_tasks: BackgroundTasks,
    body: bytes = Depends(verify_slack_request),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Receive Slack Events API callbacks."""
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        logger.warning("Ignoring event body that is not JSON")
        return JSONResponse({"ok": True})
    if not isinstance(payload, dict):
        return JSONResponse({"ok": True})
    return await handle_slack_event(payload, services, background_tasks)


@router.post("/interactions")
async def slack_interactions(
    body: bytes = Depends(verify_slack_request),
    services: Services = Depends(get_services),
) -> Response:
    """Receive button clicks and modal submissions.

    An empty 200 closes a submitted modal; a ``response_action`` body keeps it
    open with field errors.
    """
    raw = _parse_form(body).get("payload", "")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring interaction without a JSON payload")
        return Response(status_code=200)

    result = await handle_interaction(payload, services)
    if result.response is not None:
        return JSONResponse(result.response)
    return Response(status_code=200)


@router.post("/commands/summary")
async def slack_summary_command(
    background_tasks: BackgroundTasks,
    body: bytes = Depends(verify_slack_request),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Slash command returning the latest feedback digest."""
    return handle_summary_command(_parse_form(body), services, background_tasks)


@router.post("/commands/board")
async def slack_board_command(
    body: bytes = Depends(verify_slack_request),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Slash command linking the team's Notion feedback board."""
    return await handle_board_command(_parse_form(body), services)


@router.get("/oauth/callback")
async def slack_oauth_callback(
    code: str = "",
    error: str = "",
    services: Services = Depends(get_services),
) -> Response:
    """Finish the OAuth v2 install and redirect to the success page."""
    if error or not code:
        logger.warning("OAuth install cancelled or missing code: %s", error or "no code")
        return JSONResponse({"ok": False, "error": error or "missing_code"}, status_code=400)

    try:
        await complete_install(code, services)
    except (InstallError, StorageError) as exc:
        logger.error("OAuth install failed: %s", exc)
        return JSONResponse({"ok": False, "error": "install_failed"}, status_code=400)

    return RedirectResponse(services.settings.install_success_url, status_code=302)
