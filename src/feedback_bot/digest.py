"""Channel digest job: summarize the last N days of stored messages.

Runs from the scheduler endpoint. Never raises; the returned dict carries the
outcome so the scheduler log shows what happened.
"""

import logging
from datetime import UTC, datetime

from feedback_bot.errors import ExtractionError, StorageError
from feedback_bot.services import Services
from feedback_bot.storage.tables import SlackMessage

logger = logging.getLogger(__name__)


def format_timestamp(message_ts: str) -> str:
    """Render a Slack ts as ``Mon D, h:mm AM`` in UTC."""
    moment = datetime.fromtimestamp(float(message_ts), tz=UTC)
    hour = moment.hour % 12 or 12
    return f"{moment:%b} {moment.day}, {hour}:{moment:%M} {moment:%p}"


def format_messages(messages: list[SlackMessage]) -> str:
    """One ``[time] (user): text`` line per message, oldest first."""
    lines = []
    for message in messages:
        try:
            stamp = format_timestamp(message.message_ts)
        except ValueError:
            stamp = message.message_ts
        lines.append(f"[{stamp}] ({message.slack_user_id}): {message.text}")
    return "\n".join(lines)


async def run_digest(services: Services, channel_id: str, days: int = 7) -> dict:
    """Summarize a channel's recent messages and store the digest."""
    if not channel_id:
        logger.warning("Digest requested without a channel")
        return {"status": "error", "reason": "no_channel"}

    try:
        messages = await services.messages.recent(channel_id, days)
    except StorageError as exc:
        logger.error("Digest failed reading messages: %s", exc, exc_info=True)
        return {"status": "error", "reason": "storage"}

    if not messages:
        logger.info("No messages to summarize", extra={"channel_id": channel_id, "days": days})
        return {"status": "empty", "channel_id": channel_id}

    # Digests belong to one workspace; a channel shared across workspaces is
    # summarized for the team that posted most recently
    team_id = messages[-1].team_id
    messages = [message for message in messages if message.team_id == team_id]
    raw_text = format_messages(messages)

    try:
        summary = await services.extraction.summarize(raw_text)
    except ExtractionError as exc:
        logger.error("Digest summarization failed: %s", exc, exc_info=True)
        return {"status": "error", "reason": "extraction"}

    try:
        digest = await services.digests.save(
            team_id, channel_id, summary, raw_text, len(messages)
        )
    except StorageError as exc:
        logger.error("Digest failed storing summary: %s", exc, exc_info=True)
        return {"status": "error", "reason": "storage"}

    logger.info(
        "Digest stored",
        extra={
            "team_id": team_id,
            "channel_id": channel_id,
            "message_count": len(messages),
            "digest_id": digest.id,
        },
    )
    return {
        "status": "ok",
        "team_id": team_id,
        "channel_id": channel_id,
        "message_count": len(messages),
        "digest_id": digest.id,
    }
