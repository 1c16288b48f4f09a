"""Slash commands: the latest stored digest, and a link to the team's feedback board."""

import logging

import httpx
from fastapi import BackgroundTasks
from fastapi.responses import JSONResponse

from feedback_bot.errors import StorageError
from feedback_bot.notion.schema import database_url
from feedback_bot.services import Services
from feedback_bot.slack.formatter import format_board_empty, format_board_link

logger = logging.getLogger(__name__)

NO_SUMMARY_TEXT = "No summary available yet."


async def post_to_response_url(response_url: str, text: str) -> None:
    """POST a message to a slash command's response_url. Never raises."""
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                response_url, json={"response_type": "in_channel", "text": text}
            )
            response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("Failed to post to response_url: %s", exc)


async def send_latest_summary(
    team_id: str, channel_id: str, response_url: str, services: Services
) -> None:
    """Post the caller's channel digest, else the newest digest of the caller's team."""
    if not team_id:
        await post_to_response_url(response_url, NO_SUMMARY_TEXT)
        return

    try:
        digest = await services.digests.latest(team_id, channel_id or None)
        if digest is None and channel_id:
            digest = await services.digests.latest(team_id)
    except StorageError:
        logger.error("Failed to load latest digest", exc_info=True)
        await post_to_response_url(response_url, "Could not load the summary. Please try again later.")
        return

    if digest is None:
        await post_to_response_url(response_url, NO_SUMMARY_TEXT)
        return

    created = f"{digest.created_at:%b} {digest.created_at.day}, {digest.created_at:%Y}"
    await post_to_response_url(
        response_url,
        f"*Feedback summary* ({digest.message_count} messages, {created})\n\n{digest.summary}",
    )


def handle_summary_command(
    form: dict[str, str], services: Services, background_tasks: BackgroundTasks
) -> JSONResponse:
    """Ack within Slack's three-second window; the summary follows via response_url."""
    response_url = form.get("response_url", "")
    if not response_url:
        return JSONResponse({"response_type": "ephemeral", "text": "Missing response_url."})

    logger.info(
        "Summary requested",
        extra={
            "team_id": form.get("team_id"),
            "user_id": form.get("user_id"),
            "channel_id": form.get("channel_id"),
        },
    )
    background_tasks.add_task(
        send_latest_summary,
        form.get("team_id", ""),
        form.get("channel_id", ""),
        response_url,
        services,
    )
    return JSONResponse({"response_type": "ephemeral", "text": "Generating summary..."})


async def handle_board_command(form: dict[str, str], services: Services) -> JSONResponse:
    """Reply with a button opening the caller's team database.

    A single indexed read, so the answer goes back inline rather than through
    response_url.
    """
    team_id = form.get("team_id", "")
    logger.info("Board requested", extra={"team_id": team_id, "user_id": form.get("user_id")})

    try:
        link = await services.links.get(team_id) if team_id else None
    except StorageError:
        logger.error("Failed to load Notion link for team %s", team_id, exc_info=True)
        return JSONResponse(
            {
                "response_type": "ephemeral",
                "text": "Could not load the feedback board. Please try again later.",
            }
        )

    message = format_board_link(database_url(link.database_id)) if link else format_board_empty()
    return JSONResponse({"response_type": "ephemeral", **message.model_dump()})
