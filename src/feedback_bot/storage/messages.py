"""Raw Slack message log and stored digests."""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from feedback_bot.errors import StorageError
from feedback_bot.models.events import InboundEvent
from feedback_bot.storage.tables import FeedbackDigest, SlackMessage

logger = logging.getLogger(__name__)


class MessageStore:
    """Stores every accepted user message for later digests."""

    def __init__(self, session_maker) -> None:
        self._session_maker = session_maker

    async def store(self, event: InboundEvent) -> None:
        try:
            async with self._session_maker() as session:
                session.add(
                    SlackMessage(
                        team_id=event.team_id,
                        slack_user_id=event.user_id,
                        slack_channel_id=event.channel_id,
                        text=event.text,
                        message_ts=event.timestamp_token,
                    )
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to store message {event.timestamp_token}") from exc

    async def recent(self, channel_id: str, days: int = 7) -> list[SlackMessage]:
        """Messages of a channel from the last N days, oldest first."""
        cutoff = datetime.now(UTC) - timedelta(days=days)
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(SlackMessage)
                    .where(
                        SlackMessage.slack_channel_id == channel_id,
                        SlackMessage.created_at >= cutoff,  # type: ignore[operator]
                    )
                    .order_by(SlackMessage.message_ts)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read messages for channel {channel_id}") from exc


class DigestStore:
    """Persisted channel digests, scoped to the workspace that owns the channel."""

    def __init__(self, session_maker) -> None:
        self._session_maker = session_maker

    async def save(
        self, team_id: str, channel_id: str, summary: str, raw_text: str, message_count: int
    ) -> FeedbackDigest:
        digest = FeedbackDigest(
            team_id=team_id,
            channel_id=channel_id,
            summary=summary,
            raw_text=raw_text,
            message_count=message_count,
        )
        try:
            async with self._session_maker() as session:
                session.add(digest)
                await session.commit()
                await session.refresh(digest)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to store digest for channel {channel_id}") from exc
        return digest

    async def latest(self, team_id: str, channel_id: str | None = None) -> FeedbackDigest | None:
        """Most recent digest of a team, optionally for one channel."""
        statement = select(FeedbackDigest).where(FeedbackDigest.team_id == team_id)
        if channel_id:
            statement = statement.where(FeedbackDigest.channel_id == channel_id)
        statement = statement.order_by(
            FeedbackDigest.created_at.desc(),  # type: ignore[attr-defined]
            FeedbackDigest.id.desc(),  # type: ignore[union-attr]
        ).limit(1)
        try:
            async with self._session_maker() as session:
                result = await session.execute(statement)
                return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read latest digest for team {team_id}") from exc
