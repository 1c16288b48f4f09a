"""At-most-once event gate backed by the processed_events primary key."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from feedback_bot.errors import DuplicateEventError, StorageError
from feedback_bot.storage.tables import ProcessedEvent

logger = logging.getLogger(__name__)


class EventDeduplicator:
    """Records processed Slack event ids.

    The insert relies on the primary-key constraint, so two near-simultaneous
    deliveries of one event resolve to a single row: the first writer wins and
    the loser sees DuplicateEventError.
    """

    def __init__(self, session_maker) -> None:
        self._session_maker = session_maker

    async def is_duplicate(self, event_id: str) -> bool:
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(ProcessedEvent.event_id).where(ProcessedEvent.event_id == event_id)
                )
                return result.scalar_one_or_none() is not None
        except SQLAlchemyError as exc:
            raise StorageError(f"Dedup lookup failed for event {event_id}") from exc

    async def mark_processed(self, event_id: str, team_id: str) -> None:
        """Insert the processed marker for an event.

        Raises:
            DuplicateEventError: Another delivery already inserted the marker.
            StorageError: The write failed for any other reason.
        """
        try:
            async with self._session_maker() as session:
                session.add(ProcessedEvent(event_id=event_id, team_id=team_id))
                await session.commit()
        except IntegrityError as exc:
            raise DuplicateEventError(event_id) from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to mark event {event_id} processed") from exc

    async def claim(self, event_id: str, team_id: str) -> None:
        """Check-then-mark in one call. Raises like mark_processed."""
        if await self.is_duplicate(event_id):
            raise DuplicateEventError(event_id)
        await self.mark_processed(event_id, team_id)
        logger.info("Event claimed", extra={"event_id": event_id, "team_id": team_id})
