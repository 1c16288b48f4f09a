"""Pure functions mapping between ParsedFeedback and Notion page properties."""

from feedback_bot.models.feedback import FeedbackRecord, ParsedFeedback
from feedback_bot.notion import schema

_TEXT_LIMIT = 2000  # Notion rich_text content limit


def _text(content: str) -> list[dict]:
    return [{"type": "text", "text": {"content": content[:_TEXT_LIMIT]}}]


def message_link(channel_id: str, timestamp_token: str) -> str:
    """Build a Slack archive link to a message from its channel and ts."""
    return f"https://slack.com/archives/{channel_id}/p{timestamp_token.replace('.', '')}"


def build_feedback_properties(feedback: ParsedFeedback) -> dict:
    """Properties carrying the parsed fields (used on create and on edit)."""
    return {
        schema.NAME: {"title": _text(feedback.summary)},
        schema.TAG: {"select": {"name": feedback.tag.value}},
        schema.URGENCY: {"select": {"name": feedback.urgency.value}},
        schema.NEXT_STEP: {"rich_text": _text(feedback.next_step)},
    }


def build_record_properties(
    feedback: ParsedFeedback,
    user_id: str,
    channel_id: str,
    timestamp_token: str,
) -> dict:
    """Full property set for a new record, including Slack provenance."""
    properties = build_feedback_properties(feedback)
    properties[schema.SLACK_USER] = {"rich_text": _text(user_id)}
    properties[schema.SLACK_CHANNEL] = {"rich_text": _text(channel_id)}
    properties[schema.SLACK_MESSAGE_LINK] = {"url": message_link(channel_id, timestamp_token)}
    return properties


def _plain_text(items: list[dict]) -> str:
    return "".join(item.get("plain_text") or item.get("text", {}).get("content", "") for item in items)


def _select_name(prop: dict) -> str | None:
    select = prop.get("select")
    return select.get("name") if select else None


def parse_record(page: dict) -> FeedbackRecord:
    """Extract a FeedbackRecord from a Notion page object.

    Tolerates missing properties: rows edited by hand in Notion may not
    match the provisioned schema.
    """
    props = page.get("properties", {})

    title_prop = next(
        (p for p in props.values() if isinstance(p, dict) and p.get("type") == "title"),
        props.get(schema.NAME, {}),
    )
    summary = _plain_text(title_prop.get("title", [])).strip() or "No summary"
    next_step = _plain_text(props.get(schema.NEXT_STEP, {}).get("rich_text", [])).strip()

    return FeedbackRecord(
        page_id=page.get("id", ""),
        url=page.get("url"),
        summary=summary,
        tag=_select_name(props.get(schema.TAG, {})),
        urgency=_select_name(props.get(schema.URGENCY, {})),
        next_step=next_step or None,
        flagged=bool(props.get(schema.FLAGGED, {}).get("checkbox", False)),
    )
