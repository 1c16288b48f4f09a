"""Opaque correlation token carried in button values and modal metadata.

Interactive requests are stateless: everything needed to act on a posted
feedback message travels inside this token.
"""

from pydantic import BaseModel, ValidationError

from feedback_bot.models.feedback import ParsedFeedback, RecordReference

BUTTON_VALUE_LIMIT = 2000  # Slack button value max length


class FeedbackMetadata(BaseModel):
    reference: RecordReference
    feedback: ParsedFeedback | None = None
    channel_id: str | None = None
    message_ts: str | None = None


def encode_metadata(metadata: FeedbackMetadata, limit: int = BUTTON_VALUE_LIMIT) -> str:
    """Serialize to compact JSON, dropping the prefill copy if it will not fit."""
    token = metadata.model_dump_json(by_alias=True, exclude_none=True)
    if len(token) > limit and metadata.feedback is not None:
        token = metadata.model_copy(update={"feedback": None}).model_dump_json(
            by_alias=True, exclude_none=True
        )
    return token


def decode_metadata(token: str) -> FeedbackMetadata:
    """Parse a token. Raises ValueError if it is missing or malformed."""
    if not token:
        raise ValueError("Empty metadata token")
    try:
        return FeedbackMetadata.model_validate_json(token)
    except ValidationError as exc:
        raise ValueError("Malformed metadata token") from exc
