"""SQLModel table definitions."""

from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ProcessedEvent(SQLModel, table=True):
    """Marker for a Slack event whose side effects have started. Append-only."""

    __tablename__ = "processed_events"

    event_id: str = Field(primary_key=True, max_length=255)
    team_id: str = Field(max_length=64, index=True)
    processed_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )


class TeamCredential(SQLModel, table=True):
    """Per-workspace bot credential. The token column only ever holds ciphertext."""

    __tablename__ = "slack_teams"

    team_id: str = Field(primary_key=True, max_length=64)
    team_name: str | None = Field(default=None, max_length=255)
    encrypted_access_token: str | None = Field(default=None)
    bot_user_id: str = Field(max_length=64)
    hub_channel_id: str | None = Field(default=None, max_length=64)
    is_active: bool = Field(default=True)
    installed_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )


class NotionDatabaseLink(SQLModel, table=True):
    """The Notion database provisioned for a team."""

    __tablename__ = "notion_database_links"

    team_id: str = Field(primary_key=True, max_length=64)
    database_id: str = Field(max_length=64)
    created_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )


class SlackMessage(SQLModel, table=True):
    """Raw user message log, the input for digests."""

    __tablename__ = "slack_messages"

    id: int | None = Field(default=None, primary_key=True)
    team_id: str = Field(max_length=64)
    slack_user_id: str = Field(max_length=64)
    slack_channel_id: str = Field(max_length=64, index=True)
    text: str
    message_ts: str = Field(max_length=32)
    created_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_utcnow,
        nullable=False,
        index=True,
        sa_type=DateTime(timezone=True),
    )


class InternalFeedback(SQLModel, table=True):
    """Feedback about the bot itself, collected from the hub channel."""

    __tablename__ = "internal_feedback"

    id: int | None = Field(default=None, primary_key=True)
    kind: str = Field(max_length=20)  # "feedback" or "bug"
    summary: str
    tag: str = Field(max_length=20)
    urgency: str = Field(max_length=20)
    next_step: str
    details: str  # Command body as typed by the user
    slack_user_id: str = Field(max_length=64)
    channel_id: str = Field(max_length=64)
    team_id: str = Field(max_length=64, index=True)
    created_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )


class FeedbackFlag(SQLModel, table=True):
    """A user's flag on a posted feedback record, with free-text reason."""

    __tablename__ = "feedback_flags"

    id: int | None = Field(default=None, primary_key=True)
    team_id: str = Field(max_length=64, index=True)
    target: str = Field(max_length=20)
    record_id: str = Field(max_length=64)
    reason: str
    flagged_by: str = Field(max_length=64)
    created_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )


class FeedbackDigest(SQLModel, table=True):
    """A summarized digest of a channel's recent messages."""

    __tablename__ = "feedback_digests"

    id: int | None = Field(default=None, primary_key=True)
    team_id: str = Field(max_length=64, index=True)
    channel_id: str = Field(max_length=64, index=True)
    summary: str
    raw_text: str
    message_count: int
    created_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
