"""Parsing and validation of raw model output.

Feedback parsing is strict: any missing field or out-of-enum value is an
ExtractionError. Query-filter parsing is lenient: bad individual keys are
dropped with a warning so a query degrades to fewer filters rather than failing.
"""

import json
import logging
import re
from datetime import date, datetime
from enum import Enum

from pydantic import ValidationError

from feedback_bot.errors import ExtractionError
from feedback_bot.models.feedback import (
    DateRange,
    FeedbackTag,
    ParsedFeedback,
    QueryFilter,
    Urgency,
)

logger = logging.getLogger(__name__)

BUG_MARKER = "[BUG]"

# Models occasionally wrap JSON in a markdown fence despite instructions
_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def _strip_code_fence(raw: str) -> str:
    text = raw.strip()
    match = _FENCE_PATTERN.match(text)
    return match.group(1) if match else text


def parse_feedback(raw: str) -> ParsedFeedback:
    """Validate model output into ParsedFeedback.

    Raises:
        ExtractionError: On invalid JSON, missing fields, wrong types,
            empty strings, or tag/urgency outside their enums.
    """
    if not raw or not raw.strip():
        raise ExtractionError("Model returned an empty response")
    try:
        return ParsedFeedback.model_validate_json(_strip_code_fence(raw))
    except ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
        raise ExtractionError(
            f"Model output failed feedback validation ({', '.join(fields) or 'body'})"
        ) from exc


def apply_bug_override(feedback: ParsedFeedback) -> ParsedFeedback:
    """Force bug classification: tag Bug, urgency High, marked summary.

    Idempotent: an already-marked summary is not prefixed twice.
    """
    summary = feedback.summary
    if not summary.startswith(BUG_MARKER):
        summary = f"{BUG_MARKER} {summary}"
    return feedback.model_copy(
        update={"tag": FeedbackTag.BUG, "urgency": Urgency.HIGH, "summary": summary}
    )


def _match_enum(enum_cls: type[Enum], value: object, key: str) -> Enum | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        lookup = {member.value.lower(): member for member in enum_cls}
        member = lookup.get(value.strip().lower())
        if member is not None:
            return member
    logger.warning("Dropping unrecognized %s filter: %r", key, value)
    return None


def _parse_date(value: object) -> date | None:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def _parse_date_range(value: object) -> DateRange | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        logger.warning("Dropping malformed date filter: %r", value)
        return None
    start = _parse_date(value.get("from"))
    end = _parse_date(value.get("to"))
    if start is None or end is None:
        logger.warning("Dropping date filter with invalid bound(s): %r", value)
        return None
    if start > end:
        logger.warning("Dropping date filter with reversed bounds: %r", value)
        return None
    return DateRange(start=start, end=end)


def parse_query_filter(raw: str) -> QueryFilter:
    """Parse model output into a QueryFilter.

    Raises:
        ExtractionError: Only when the output is not a JSON object at all.
    """
    if not raw or not raw.strip():
        raise ExtractionError("Model returned an empty response")
    try:
        data = json.loads(_strip_code_fence(raw))
    except json.JSONDecodeError as exc:
        raise ExtractionError("Model output for query filters is not valid JSON") from exc
    if not isinstance(data, dict):
        raise ExtractionError("Model output for query filters is not a JSON object")

    flagged = data.get("flagged")
    if flagged is not None and not isinstance(flagged, bool):
        logger.warning("Dropping non-boolean flagged filter: %r", flagged)
        flagged = None

    return QueryFilter(
        tag=_match_enum(FeedbackTag, data.get("tag"), "tag"),
        urgency=_match_enum(Urgency, data.get("urgency"), "urgency"),
        flagged=flagged,
        date_range=_parse_date_range(data.get("date_range", data.get("dateRange"))),
    )
