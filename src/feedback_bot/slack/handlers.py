"""Slack event dispatch: dedup gate on the request path, pipeline in the background."""

import logging

from fastapi import BackgroundTasks
from fastapi.responses import JSONResponse

from feedback_bot.classifier import classify
from feedback_bot.errors import (
    ClassificationMiss,
    DuplicateEventError,
    FeedbackBotError,
    MissingCredentialError,
    StorageError,
)
from feedback_bot.models.events import InboundEvent
from feedback_bot.models.intent import IntentKind
from feedback_bot.services import Services
from feedback_bot.slack.formatter import format_processing_ack

logger = logging.getLogger(__name__)


async def handle_slack_event(
    payload: dict, services: Services, background_tasks: BackgroundTasks
) -> JSONResponse:
    """Dispatch a Slack event based on its type.

    - url_verification: return the challenge token
    - event_callback: filter, claim the event id, queue the pipeline
    - anything else: acknowledge with 200

    The event id is claimed before the pipeline is queued, so a redelivery
    that arrives while the first delivery is still running is dropped.
    """
    if payload.get("type") == "url_verification":
        return JSONResponse({"challenge": payload.get("challenge", "")})

    if payload.get("type") != "event_callback":
        return JSONResponse({"ok": True})

    event = InboundEvent.from_payload(payload)
    if event is None or event.is_bot_message:
        return JSONResponse({"ok": True})

    try:
        await services.dedup.claim(event.event_id, event.team_id)
    except DuplicateEventError:
        logger.info("Duplicate delivery dropped", extra={"event_id": event.event_id})
        return JSONResponse({"ok": True})
    except StorageError:
        logger.error("Dedup gate failed for event %s", event.event_id, exc_info=True)
        return JSONResponse({"ok": True})

    background_tasks.add_task(process_event, event, services)
    return JSONResponse({"ok": True})


async def process_event(event: InboundEvent, services: Services) -> None:
    """Run the pipeline for one claimed event. Domain errors end here."""
    try:
        await run_pipeline(event, services)
    except ClassificationMiss:
        logger.debug("No command in event %s", event.event_id)
    except MissingCredentialError:
        logger.info("No credential for team %s; event %s dropped", event.team_id, event.event_id)
    except FeedbackBotError as exc:
        logger.error("Pipeline failed for event %s: %s", event.event_id, exc, exc_info=True)


async def run_pipeline(event: InboundEvent, services: Services) -> None:
    """Store, look up credentials, classify, acknowledge, dispatch, reply.

    Raises:
        MissingCredentialError: The team has no active credential.
        ClassificationMiss: The message is not a command.
        StorageError: Credential lookup or decryption failed.
    """
    try:
        await services.messages.store(event)
    except StorageError:
        logger.warning("Raw message for event %s not stored", event.event_id, exc_info=True)

    credential = await services.credentials.get(event.team_id)
    if credential is None:
        raise MissingCredentialError(event.team_id)

    hub_channel_id = credential.hub_channel_id or services.settings.slack_default_hub_channel_id
    intent = classify(event.text, credential.bot_user_id, hub_channel_id, event.channel_id)
    if intent.kind is IntentKind.NONE:
        raise ClassificationMiss(f"Event {event.event_id} carries no command")

    logger.info(
        "Command classified",
        extra={
            "event_id": event.event_id,
            "team_id": event.team_id,
            "kind": intent.kind.value,
            "target": intent.target.value if intent.target else None,
        },
    )

    token = services.credentials.access_token(credential)
    ack_ts = await services.messenger.post(
        token, event.channel_id, format_processing_ack(intent.kind)
    )
    reply = await services.dispatcher.dispatch(event, intent, credential.team_name)
    await services.messenger.post(token, event.channel_id, reply, replace_ts=ack_ts)
