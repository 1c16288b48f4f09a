"""Inbound Slack message event model."""

from pydantic import BaseModel, ConfigDict


class InboundEvent(BaseModel):
    """A Slack message event with extracted fields (no raw payload)."""

    model_config = ConfigDict(frozen=True)

    event_id: str
    team_id: str
    channel_id: str
    user_id: str
    text: str
    timestamp_token: str  # Slack message ts, e.g., "1234567890.123456"
    is_bot_message: bool = False

    @classmethod
    def from_payload(cls, payload: dict) -> "InboundEvent | None":
        """Build an InboundEvent from an ``event_callback`` body.

        Returns None when the body does not carry a message event with the
        fields needed to route it (user, channel, ts, text). Slack omits
        ``event_id`` on some delivery paths; the team/channel/ts triple is
        then used as the dedup key.
        """
        event = payload.get("event") or {}
        if event.get("type") != "message":
            return None

        team_id = payload.get("team_id") or event.get("team") or ""
        channel_id = event.get("channel") or ""
        user_id = event.get("user") or ""
        ts = event.get("ts") or ""
        text = event.get("text") or ""
        if not (team_id and channel_id and ts and text):
            return None

        event_id = payload.get("event_id") or f"{team_id}:{channel_id}:{ts}"
        is_bot = bool(event.get("bot_id")) or event.get("subtype") == "bot_message"

        return cls(
            event_id=event_id,
            team_id=team_id,
            channel_id=channel_id,
            user_id=user_id,
            text=text,
            timestamp_token=ts,
            is_bot_message=is_bot,
        )
