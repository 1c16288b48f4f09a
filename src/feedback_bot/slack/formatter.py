"""Pure functions building Slack Block Kit messages for pipeline outcomes."""

from enum import Enum

from feedback_bot.models.feedback import FeedbackRecord, ParsedFeedback, QueryFilter, RecordReference
from feedback_bot.models.intent import IntentKind
from feedback_bot.models.slack import OutboundMessage
from feedback_bot.slack.metadata import FeedbackMetadata, encode_metadata

ACTION_CONFIRM = "confirm_feedback"
ACTION_EDIT = "edit_feedback"
ACTION_FLAG = "flag_feedback"
ACTION_OPEN_BOARD = "open_feedback_board"


class FailureKind(str, Enum):
    EXTRACTION = "extraction"
    STORAGE = "storage"


_FAILURE_TEXT = {
    FailureKind.EXTRACTION: ":warning: Sorry, I couldn't process that right now. Please try again later.",
    FailureKind.STORAGE: ":warning: Sorry, I couldn't save that right now. Please try again later.",
}


def _section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _context(text: str) -> dict:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": text}]}


def _divider() -> dict:
    return {"type": "divider"}


def format_processing_ack(kind: IntentKind) -> OutboundMessage:
    label = "query" if kind is IntentKind.QUERY else kind.value
    text = f":hourglass_flowing_sand: Processing your {label}..."
    return OutboundMessage(text=text, blocks=[_section(text)])


def format_feedback(
    feedback: ParsedFeedback,
    reference: RecordReference,
    channel_id: str | None = None,
) -> OutboundMessage:
    """Parsed feedback with record link and Confirm / Edit / Flag buttons."""
    token = encode_metadata(
        FeedbackMetadata(reference=reference, feedback=feedback, channel_id=channel_id)
    )
    blocks = [
        _section(f"*Summary:* {feedback.summary}"),
        _context(
            f"*Tag:* {feedback.tag.value} | *Urgency:* {feedback.urgency.value}"
            f" | *Next Step:* {feedback.next_step}"
        ),
    ]
    if reference.url:
        blocks.append(_context(f":link: <{reference.url}|View in Notion>"))
    blocks.append(
        {
            "type": "actions",
            "block_id": "feedback_actions",
            "elements": [
                {
                    "type": "button",
                    "action_id": ACTION_CONFIRM,
                    "text": {"type": "plain_text", "text": "Confirm"},
                    "style": "primary",
                    "value": token,
                },
                {
                    "type": "button",
                    "action_id": ACTION_EDIT,
                    "text": {"type": "plain_text", "text": "Edit"},
                    "value": token,
                },
                {
                    "type": "button",
                    "action_id": ACTION_FLAG,
                    "text": {"type": "plain_text", "text": "Flag"},
                    "style": "danger",
                    "value": token,
                },
            ],
        }
    )
    blocks.append(_divider())
    return OutboundMessage(text=f"Feedback saved: {feedback.summary}", blocks=blocks)


def describe_filters(filters: QueryFilter) -> str:
    parts: list[str] = []
    if filters.tag is not None:
        parts.append(f"*Tag:* {filters.tag.value}")
    if filters.urgency is not None:
        parts.append(f"*Urgency:* {filters.urgency.value}")
    if filters.flagged is not None:
        parts.append(f"*Flagged:* {'yes' if filters.flagged else 'no'}")
    if filters.date_range is not None:
        parts.append(
            f"*Date:* {filters.date_range.start.isoformat()} → {filters.date_range.end.isoformat()}"
        )
    return " | ".join(parts)


def format_empty_results(filters: QueryFilter | None = None) -> OutboundMessage:
    text = ":mag: No results found for the given filters."
    return OutboundMessage(text=text, blocks=[_section(text)])


def format_query_results(records: list[FeedbackRecord], filters: QueryFilter) -> OutboundMessage:
    """Matched records under a header naming the active filters."""
    if not records:
        return format_empty_results(filters)

    described = describe_filters(filters)
    header = f"Results for: {described}" if described else f"Showing {len(records)} result(s)"

    blocks: list[dict] = [_section(f":clipboard: {header}"), _divider()]
    for record in records:
        title = f"<{record.url}|{record.summary}>" if record.url else record.summary
        lines = [
            f"*{title}*",
            f"• *Tag:* {record.tag or 'Unknown'}",
            f"• *Urgency:* {record.urgency or 'Unknown'}",
        ]
        if record.flagged:
            lines.append("• :triangular_flag_on_post: Flagged")
        blocks.append(_section("\n".join(lines)))
        blocks.append(_divider())

    return OutboundMessage(text=f"{len(records)} feedback record(s) found", blocks=blocks)


def format_failure(kind: FailureKind) -> OutboundMessage:
    text = _FAILURE_TEXT[kind]
    return OutboundMessage(text=text, blocks=[_section(text)])


def format_flag_notice(
    reference: RecordReference,
    reason: str,
    flagged_by: str,
    feedback: ParsedFeedback | None = None,
) -> OutboundMessage:
    """Admin-channel notice that a user flagged a feedback record."""
    summary = feedback.summary if feedback else reference.record_id
    lines = [
        f":triangular_flag_on_post: <@{flagged_by}> flagged feedback in team `{reference.team_id}`",
        f"*Summary:* {summary}",
        f"*Reason:* {reason}",
    ]
    if reference.url:
        lines.append(f"<{reference.url}|View in Notion>")
    text = "\n".join(lines)
    return OutboundMessage(text=f"Feedback flagged: {summary}", blocks=[_section(text)])


def format_reinstall_notice(install_url: str) -> OutboundMessage:
    text = (
        "We noticed an issue with this workspace's bot token. To restore full "
        f"functionality, please reinstall the app: <{install_url}|Reinstall>"
    )
    return OutboundMessage(text=text, blocks=[_section(text)])


def format_board_link(board_url: str) -> OutboundMessage:
    """Ephemeral pointer to the team's feedback database."""
    text = ":clipboard: Here is your full feedback board in Notion:"
    button = {
        "type": "button",
        "text": {"type": "plain_text", "text": "Open Feedback Board"},
        "url": board_url,
        "action_id": ACTION_OPEN_BOARD,
    }
    return OutboundMessage(
        text=f"{text} {board_url}",
        blocks=[_section(text), {"type": "actions", "elements": [button]}],
    )


def format_board_empty() -> OutboundMessage:
    text = (
        ":clipboard: Your feedback board does not exist yet. It is created with the "
        "first feedback sent to the bot."
    )
    return OutboundMessage(text=text, blocks=[_section(text)])
