"""Internal feedback bucket and flag records."""

import logging
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError

from feedback_bot.errors import StorageError
from feedback_bot.models.events import InboundEvent
from feedback_bot.models.feedback import ParsedFeedback, RecordReference
from feedback_bot.models.intent import IntentKind
from feedback_bot.storage.tables import FeedbackFlag, InternalFeedback

logger = logging.getLogger(__name__)


class InternalFeedbackStore:
    """The single shared table for feedback about the bot itself."""

    def __init__(self, session_maker) -> None:
        self._session_maker = session_maker

    async def save(
        self,
        kind: IntentKind,
        feedback: ParsedFeedback,
        event: InboundEvent,
        details: str,
    ) -> InternalFeedback:
        row = InternalFeedback(
            kind=kind.value,
            summary=feedback.summary,
            tag=feedback.tag.value,
            urgency=feedback.urgency.value,
            next_step=feedback.next_step,
            details=details,
            slack_user_id=event.user_id,
            channel_id=event.channel_id,
            team_id=event.team_id,
        )
        try:
            async with self._session_maker() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as exc:
            raise StorageError("Failed to save internal feedback") from exc

        logger.info("Internal feedback saved", extra={"record_id": row.id, "kind": kind.value})
        return row

    async def get(self, record_id: int) -> InternalFeedback | None:
        try:
            async with self._session_maker() as session:
                return await session.get(InternalFeedback, record_id)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read internal feedback {record_id}") from exc

    async def update(self, record_id: int, feedback: ParsedFeedback) -> InternalFeedback:
        """Overwrite the parsed fields of an existing row in place."""
        try:
            async with self._session_maker() as session:
                row = await session.get(InternalFeedback, record_id)
                if row is None:
                    raise StorageError(f"Internal feedback {record_id} not found")
                row.summary = feedback.summary
                row.tag = feedback.tag.value
                row.urgency = feedback.urgency.value
                row.next_step = feedback.next_step
                row.updated_at = datetime.now(UTC)
                await session.commit()
                await session.refresh(row)
                return row
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to update internal feedback {record_id}") from exc


class FlagStore:
    """Flag reasons attached to posted feedback records."""

    def __init__(self, session_maker) -> None:
        self._session_maker = session_maker

    async def record(self, reference: RecordReference, reason: str, flagged_by: str) -> FeedbackFlag:
        flag = FeedbackFlag(
            team_id=reference.team_id,
            target=reference.target.value,
            record_id=reference.record_id,
            reason=reason,
            flagged_by=flagged_by,
        )
        try:
            async with self._session_maker() as session:
                session.add(flag)
                await session.commit()
                await session.refresh(flag)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to record flag on {reference.record_id}") from exc
        return flag
