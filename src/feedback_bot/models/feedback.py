"""Structured feedback, query filter, and persisted record models."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from feedback_bot.models.intent import RoutingTarget


class FeedbackTag(str, Enum):
    """Feedback category (4 values)."""

    BUG = "Bug"
    FEATURE = "Feature"
    UX = "UX"
    OTHER = "Other"


class Urgency(str, Enum):
    """Urgency levels for feedback."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ParsedFeedback(BaseModel):
    """Validated language-model output for a feedback or bug message.

    Every field is required and enums are matched exactly; there are no
    defaults to fall back on.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    summary: str = Field(min_length=1)
    tag: FeedbackTag
    urgency: Urgency
    next_step: str = Field(min_length=1, alias="nextStep")


class DateRange(BaseModel):
    """Inclusive calendar date range."""

    model_config = ConfigDict(populate_by_name=True)

    start: date = Field(alias="from")
    end: date = Field(alias="to")


class QueryFilter(BaseModel):
    """Structured filters for reading feedback records. All keys optional."""

    tag: FeedbackTag | None = None
    urgency: Urgency | None = None
    flagged: bool | None = None
    date_range: DateRange | None = None

    def is_empty(self) -> bool:
        return (
            self.tag is None
            and self.urgency is None
            and self.flagged is None
            and self.date_range is None
        )


class FeedbackRecord(BaseModel):
    """A feedback record read back from a team's Notion database."""

    page_id: str
    url: str | None = None
    summary: str
    tag: str | None = None
    urgency: str | None = None
    next_step: str | None = None
    flagged: bool = False


class RecordReference(BaseModel):
    """Back-reference to a persisted feedback record for update-in-place."""

    target: RoutingTarget
    record_id: str  # Notion page id, or internal row id as a string
    team_id: str
    url: str | None = None
