"""Interactive follow-up on posted feedback: confirm, edit, flag.

Each request is one stateless transition of this machine::

    Posted --confirm--> Confirmed
    Posted --edit-->    ModalOpen       --submit--> Updated
    Posted --flag-->    ReasonModalOpen --submit--> Flagged

Correlation travels in the metadata token (button value, then modal
private_metadata). Signatures are verified by the router before any handler here runs.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from pydantic import ValidationError

from feedback_bot.errors import StorageError
from feedback_bot.models.feedback import ParsedFeedback, RecordReference
from feedback_bot.models.intent import RoutingTarget
from feedback_bot.services import Services
from feedback_bot.slack.formatter import (
    ACTION_CONFIRM,
    ACTION_EDIT,
    ACTION_FLAG,
    ACTION_OPEN_BOARD,
    format_feedback,
    format_flag_notice,
)
from feedback_bot.slack.metadata import FeedbackMetadata, decode_metadata
from feedback_bot.slack.modals import (
    EDIT_CALLBACK_ID,
    FLAG_CALLBACK_ID,
    REASON_BLOCK,
    SUMMARY_BLOCK,
    block_for_field,
    build_edit_modal,
    build_flag_modal,
    feedback_from_submission,
    read_edit_submission,
    read_flag_reason,
)

logger = logging.getLogger(__name__)


class FollowUpState(str, Enum):
    POSTED = "posted"
    CONFIRMED = "confirmed"
    MODAL_OPEN = "modal_open"
    UPDATED = "updated"
    REASON_MODAL_OPEN = "reason_modal_open"
    FLAGGED = "flagged"


@dataclass
class InteractionResult:
    """Resulting state plus an optional body for Slack (modal validation errors)."""

    state: FollowUpState
    response: dict | None = None


def _errors(block_id: str, message: str) -> dict:
    return {"response_action": "errors", "errors": {block_id: message}}


def _team_id(payload: dict) -> str:
    return (payload.get("team") or {}).get("id") or (payload.get("user") or {}).get("team_id", "")


def _load_metadata(token: str, team_id: str) -> FeedbackMetadata | None:
    try:
        metadata = decode_metadata(token)
    except ValueError:
        logger.warning("Ignoring interaction with malformed metadata")
        return None
    # The token is only trusted for the workspace that signed the request
    if metadata.reference.team_id != team_id:
        logger.warning(
            "Ignoring interaction: token team %s does not match request team %s",
            metadata.reference.team_id,
            team_id,
        )
        return None
    return metadata


async def _team_token(services: Services, team_id: str) -> str | None:
    try:
        credential = await services.credentials.get(team_id)
        if credential is None:
            logger.info("No credential for team %s; interaction dropped", team_id)
            return None
        return services.credentials.access_token(credential)
    except StorageError:
        logger.error("Credential lookup failed for team %s", team_id, exc_info=True)
        return None


async def handle_block_action(payload: dict, services: Services) -> InteractionResult:
    """Handle a button click on a posted feedback message."""
    actions = payload.get("actions") or []
    if not actions:
        return InteractionResult(FollowUpState.POSTED)
    action = actions[0]
    action_id = action.get("action_id")
    if action_id == ACTION_OPEN_BOARD:
        # URL button; Slack opens the link itself
        return InteractionResult(FollowUpState.POSTED)
    team_id = _team_id(payload)

    metadata = _load_metadata(action.get("value", ""), team_id)
    if metadata is None:
        return InteractionResult(FollowUpState.POSTED)

    container = payload.get("container") or {}
    metadata = metadata.model_copy(
        update={
            "channel_id": container.get("channel_id")
            or (payload.get("channel") or {}).get("id")
            or metadata.channel_id,
            "message_ts": container.get("message_ts") or (payload.get("message") or {}).get("ts"),
        }
    )
    user_id = (payload.get("user") or {}).get("id", "")

    if action_id == ACTION_CONFIRM:
        logger.info(
            "Feedback confirmed",
            extra={"record_id": metadata.reference.record_id, "user_id": user_id},
        )
        return InteractionResult(FollowUpState.CONFIRMED)

    if action_id not in (ACTION_EDIT, ACTION_FLAG):
        logger.info("Unknown action %s ignored", action_id)
        return InteractionResult(FollowUpState.POSTED)

    token = await _team_token(services, team_id)
    trigger_id = payload.get("trigger_id", "")
    if token is None or not trigger_id:
        return InteractionResult(FollowUpState.POSTED)

    if action_id == ACTION_EDIT:
        opened = await services.messenger.open_view(token, trigger_id, build_edit_modal(metadata))
        return InteractionResult(FollowUpState.MODAL_OPEN if opened else FollowUpState.POSTED)

    opened = await services.messenger.open_view(token, trigger_id, build_flag_modal(metadata))
    return InteractionResult(FollowUpState.REASON_MODAL_OPEN if opened else FollowUpState.POSTED)


async def _update_record(
    services: Services, reference: RecordReference, feedback: ParsedFeedback
) -> None:
    if reference.target is RoutingTarget.INTERNAL_BUCKET:
        await services.internal_feedback.update(int(reference.record_id), feedback)
    else:
        await services.notion.update_record(reference.record_id, feedback)


async def handle_edit_submission(payload: dict, services: Services) -> InteractionResult:
    """Validate edited fields, update the record in place, refresh the message."""
    view = payload.get("view") or {}
    team_id = _team_id(payload)
    metadata = _load_metadata(view.get("private_metadata", ""), team_id)
    if metadata is None:
        return InteractionResult(FollowUpState.MODAL_OPEN)

    try:
        feedback = feedback_from_submission(read_edit_submission(view))
    except ValidationError as exc:
        first = exc.errors()[0]
        field = str(first["loc"][0]) if first["loc"] else "summary"
        return InteractionResult(
            FollowUpState.MODAL_OPEN, _errors(block_for_field(field), "Please provide a valid value.")
        )

    reference = metadata.reference
    try:
        await _update_record(services, reference, feedback)
    except (StorageError, ValueError):
        logger.error("Failed to update record %s", reference.record_id, exc_info=True)
        return InteractionResult(
            FollowUpState.MODAL_OPEN,
            _errors(SUMMARY_BLOCK, "Could not save changes. Please try again later."),
        )

    logger.info("Feedback updated", extra={"record_id": reference.record_id})

    if metadata.channel_id and metadata.message_ts:
        token = await _team_token(services, team_id)
        if token is not None:
            await services.messenger.post(
                token,
                metadata.channel_id,
                format_feedback(feedback, reference, metadata.channel_id),
                replace_ts=metadata.message_ts,
            )
    return InteractionResult(FollowUpState.UPDATED)


async def handle_flag_submission(payload: dict, services: Services) -> InteractionResult:
    """Record the flag reason and notify the admin channel."""
    view = payload.get("view") or {}
    team_id = _team_id(payload)
    metadata = _load_metadata(view.get("private_metadata", ""), team_id)
    if metadata is None:
        return InteractionResult(FollowUpState.REASON_MODAL_OPEN)

    reason = read_flag_reason(view)
    if not reason:
        return InteractionResult(
            FollowUpState.REASON_MODAL_OPEN, _errors(REASON_BLOCK, "Please give a reason.")
        )

    reference = metadata.reference
    user_id = (payload.get("user") or {}).get("id", "")
    try:
        await services.flags.record(reference, reason, user_id)
    except StorageError:
        logger.error("Failed to record flag on %s", reference.record_id, exc_info=True)
        return InteractionResult(
            FollowUpState.REASON_MODAL_OPEN,
            _errors(REASON_BLOCK, "Could not save the flag. Please try again later."),
        )

    if reference.target is RoutingTarget.EXTERNAL_TEAM_STORE:
        try:
            await services.notion.flag_record(reference.record_id)
        except StorageError:
            logger.warning("Could not mark Notion record %s flagged", reference.record_id, exc_info=True)

    settings = services.settings
    if settings.slack_admin_bot_token and settings.slack_admin_channel_id:
        await services.messenger.post(
            settings.slack_admin_bot_token,
            settings.slack_admin_channel_id,
            format_flag_notice(reference, reason, user_id, metadata.feedback),
        )
    else:
        logger.warning("Admin channel not configured; flag on %s not announced", reference.record_id)

    logger.info("Feedback flagged", extra={"record_id": reference.record_id, "user_id": user_id})
    return InteractionResult(FollowUpState.FLAGGED)


async def handle_interaction(payload: dict, services: Services) -> InteractionResult:
    """Route an interactive payload by type and callback id."""
    payload_type = payload.get("type")

    if payload_type == "block_actions":
        return await handle_block_action(payload, services)

    if payload_type == "view_submission":
        callback_id = (payload.get("view") or {}).get("callback_id")
        if callback_id == EDIT_CALLBACK_ID:
            return await handle_edit_submission(payload, services)
        if callback_id == FLAG_CALLBACK_ID:
            return await handle_flag_submission(payload, services)

    logger.info("Ignoring interaction type %s", payload_type)
    return InteractionResult(FollowUpState.POSTED)
