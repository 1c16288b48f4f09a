"""Routing & persistence dispatcher.

Per-event state machine (terminal states in brackets)::

    Classified ─┬─ target=internal  → persist to internal bucket       [Done]
                ├─ target=external  → get/provision team DB → record   [Done]
                ├─ query            → filters → read team DB           [Done]
                ├─ ExtractionError  → log, "try again later"           [Done]
                └─ StorageError     → log, storage failure notice      [Done]

Every completed dispatch yields exactly one OutboundMessage.
"""

import logging

from feedback_bot.errors import ClassificationMiss, ExtractionError, StorageError
from feedback_bot.llm.parsing import apply_bug_override
from feedback_bot.llm.service import ExtractionService
from feedback_bot.models.events import InboundEvent
from feedback_bot.models.feedback import RecordReference
from feedback_bot.models.intent import Intent, IntentKind, RoutingTarget
from feedback_bot.models.slack import OutboundMessage
from feedback_bot.notion.provisioning import ensure_team_database
from feedback_bot.notion.service import NotionFeedbackStore
from feedback_bot.slack.formatter import (
    FailureKind,
    format_empty_results,
    format_failure,
    format_feedback,
    format_query_results,
)
from feedback_bot.storage.feedback import InternalFeedbackStore
from feedback_bot.storage.links import NotionLinkStore

logger = logging.getLogger(__name__)


class FeedbackDispatcher:
    def __init__(
        self,
        extraction: ExtractionService,
        internal_feedback: InternalFeedbackStore,
        notion: NotionFeedbackStore,
        links: NotionLinkStore,
    ) -> None:
        self._extraction = extraction
        self._internal_feedback = internal_feedback
        self._notion = notion
        self._links = links

    async def dispatch(
        self, event: InboundEvent, intent: Intent, team_name: str | None = None
    ) -> OutboundMessage:
        """Run the pipeline for a classified command and return the reply.

        Raises:
            ClassificationMiss: If called with a non-command intent.
        """
        try:
            if intent.kind in (IntentKind.FEEDBACK, IntentKind.BUG):
                return await self._handle_feedback(event, intent, team_name)
            if intent.kind is IntentKind.QUERY:
                return await self._handle_query(event, intent)
            if intent.kind is IntentKind.NONE:
                raise ClassificationMiss(f"Event {event.event_id} carries no command")
        except ExtractionError as exc:
            logger.error(
                "Extraction failed for event %s: %s", event.event_id, exc, exc_info=True
            )
            return format_failure(FailureKind.EXTRACTION)
        except StorageError as exc:
            logger.error("Storage failed for event %s: %s", event.event_id, exc, exc_info=True)
            return format_failure(FailureKind.STORAGE)
        raise AssertionError(f"Unhandled intent kind: {intent.kind}")

    async def _handle_feedback(
        self, event: InboundEvent, intent: Intent, team_name: str | None
    ) -> OutboundMessage:
        feedback = await self._extraction.extract(intent.body)
        if intent.kind is IntentKind.BUG:
            feedback = apply_bug_override(feedback)

        if intent.target is RoutingTarget.INTERNAL_BUCKET:
            row = await self._internal_feedback.save(intent.kind, feedback, event, intent.body)
            reference = RecordReference(
                target=RoutingTarget.INTERNAL_BUCKET,
                record_id=str(row.id),
                team_id=event.team_id,
            )
        else:
            database_id = await ensure_team_database(
                event.team_id, team_name, self._links, self._notion
            )
            record = await self._notion.create_record(
                database_id,
                feedback,
                event.user_id,
                event.channel_id,
                event.timestamp_token,
            )
            reference = RecordReference(
                target=RoutingTarget.EXTERNAL_TEAM_STORE,
                record_id=record.page_id,
                team_id=event.team_id,
                url=record.url,
            )

        logger.info(
            "Feedback persisted",
            extra={
                "event_id": event.event_id,
                "kind": intent.kind.value,
                "target": reference.target.value,
                "record_id": reference.record_id,
            },
        )
        return format_feedback(feedback, reference, event.channel_id)

    async def _handle_query(self, event: InboundEvent, intent: Intent) -> OutboundMessage:
        filters = await self._extraction.to_filters(intent.body)
        link = await self._links.get(event.team_id)
        if link is None:
            logger.info("Query for team %s with no feedback database yet", event.team_id)
            return format_empty_results(filters)

        records = await self._notion.query_records(link.database_id, filters)
        return format_query_results(records, filters)
