"""Destination-agnostic outbound message model."""

from pydantic import BaseModel


class OutboundMessage(BaseModel):
    """A Slack message: fallback text plus Block Kit blocks."""

    text: str
    blocks: list[dict] = []
