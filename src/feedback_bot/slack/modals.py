"""Modal views for editing and flagging posted feedback."""

from feedback_bot.models.feedback import FeedbackTag, ParsedFeedback, Urgency
from feedback_bot.slack.metadata import FeedbackMetadata, encode_metadata

EDIT_CALLBACK_ID = "edit_feedback_modal"
FLAG_CALLBACK_ID = "flag_feedback_modal"

SUMMARY_BLOCK = "summary_block"
TAG_BLOCK = "tag_block"
URGENCY_BLOCK = "urgency_block"
NEXT_STEP_BLOCK = "next_step_block"
REASON_BLOCK = "reason_block"

_PRIVATE_METADATA_LIMIT = 3000


def _option(value: str) -> dict:
    return {"text": {"type": "plain_text", "text": value}, "value": value}


def _text_input(block_id: str, label: str, initial: str | None, multiline: bool = False) -> dict:
    element: dict = {"type": "plain_text_input", "action_id": "value", "multiline": multiline}
    if initial:
        element["initial_value"] = initial
    return {
        "type": "input",
        "block_id": block_id,
        "label": {"type": "plain_text", "text": label},
        "element": element,
    }


def _select(block_id: str, label: str, values: list[str], initial: str | None) -> dict:
    element: dict = {
        "type": "static_select",
        "action_id": "value",
        "options": [_option(v) for v in values],
    }
    if initial:
        element["initial_option"] = _option(initial)
    return {
        "type": "input",
        "block_id": block_id,
        "label": {"type": "plain_text", "text": label},
        "element": element,
    }


def build_edit_modal(metadata: FeedbackMetadata) -> dict:
    """Edit form prefilled from the token's feedback copy when present."""
    feedback = metadata.feedback
    return {
        "type": "modal",
        "callback_id": EDIT_CALLBACK_ID,
        "private_metadata": encode_metadata(metadata, limit=_PRIVATE_METADATA_LIMIT),
        "title": {"type": "plain_text", "text": "Edit feedback"},
        "submit": {"type": "plain_text", "text": "Save"},
        "close": {"type": "plain_text", "text": "Cancel"},
        "blocks": [
            _text_input(SUMMARY_BLOCK, "Summary", feedback.summary if feedback else None),
            _select(
                TAG_BLOCK,
                "Tag",
                [t.value for t in FeedbackTag],
                feedback.tag.value if feedback else None,
            ),
            _select(
                URGENCY_BLOCK,
                "Urgency",
                [u.value for u in Urgency],
                feedback.urgency.value if feedback else None,
            ),
            _text_input(
                NEXT_STEP_BLOCK, "Next step", feedback.next_step if feedback else None, multiline=True
            ),
        ],
    }


def build_flag_modal(metadata: FeedbackMetadata) -> dict:
    return {
        "type": "modal",
        "callback_id": FLAG_CALLBACK_ID,
        "private_metadata": encode_metadata(metadata, limit=_PRIVATE_METADATA_LIMIT),
        "title": {"type": "plain_text", "text": "Flag feedback"},
        "submit": {"type": "plain_text", "text": "Flag"},
        "close": {"type": "plain_text", "text": "Cancel"},
        "blocks": [
            _text_input(REASON_BLOCK, "Why is this feedback wrong?", None, multiline=True),
        ],
    }


def _state_value(view: dict, block_id: str) -> str | None:
    element = view.get("state", {}).get("values", {}).get(block_id, {}).get("value", {})
    if element.get("type") == "static_select":
        option = element.get("selected_option") or {}
        return option.get("value")
    return element.get("value")


def read_edit_submission(view: dict) -> dict:
    """Raw field values from a submitted edit modal, keyed like ParsedFeedback."""
    return {
        "summary": _state_value(view, SUMMARY_BLOCK),
        "tag": _state_value(view, TAG_BLOCK),
        "urgency": _state_value(view, URGENCY_BLOCK),
        "next_step": _state_value(view, NEXT_STEP_BLOCK),
    }


def read_flag_reason(view: dict) -> str:
    return (_state_value(view, REASON_BLOCK) or "").strip()


_FIELD_BLOCKS = {
    "summary": SUMMARY_BLOCK,
    "tag": TAG_BLOCK,
    "urgency": URGENCY_BLOCK,
    "next_step": NEXT_STEP_BLOCK,
    "nextStep": NEXT_STEP_BLOCK,
}


def block_for_field(field: str) -> str:
    return _FIELD_BLOCKS.get(field, SUMMARY_BLOCK)


def feedback_from_submission(values: dict) -> ParsedFeedback:
    """Validate edited values. Raises pydantic ValidationError."""
    return ParsedFeedback.model_validate(values)
