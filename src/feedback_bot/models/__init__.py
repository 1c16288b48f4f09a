"""Data models and enums for the feedback pipeline."""

from feedback_bot.models.events import InboundEvent
from feedback_bot.models.feedback import (
    DateRange,
    FeedbackRecord,
    FeedbackTag,
    ParsedFeedback,
    QueryFilter,
    RecordReference,
    Urgency,
)
from feedback_bot.models.intent import Intent, IntentKind, RoutingTarget
from feedback_bot.models.slack import OutboundMessage

__all__ = [
    "InboundEvent",
    "DateRange",
    "FeedbackRecord",
    "FeedbackTag",
    "ParsedFeedback",
    "QueryFilter",
    "RecordReference",
    "Urgency",
    "Intent",
    "IntentKind",
    "RoutingTarget",
    "OutboundMessage",
]
