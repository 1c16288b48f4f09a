"""Outbound Slack calls made with a team's own bot token.

Message posts are fire-and-forget: Slack API rejections and transport failures
are logged, never raised, so a failed notification cannot crash the pipeline.
Token strings are never logged.
"""

import logging
from collections.abc import Callable

import aiohttp
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from feedback_bot.models.slack import OutboundMessage

logger = logging.getLogger(__name__)

# AsyncWebClient runs on aiohttp; these surface when Slack is unreachable
TRANSPORT_ERRORS = (aiohttp.ClientError, TimeoutError)


def _error_code(exc: Exception) -> str:
    if isinstance(exc, SlackApiError):
        return exc.response.get("error", "") if exc.response else ""
    return type(exc).__name__


class SlackMessenger:
    """Thin wrapper over AsyncWebClient keyed by per-team token."""

    def __init__(self, client_factory: Callable[..., AsyncWebClient] = AsyncWebClient) -> None:
        self._client_factory = client_factory

    def _client(self, token: str) -> AsyncWebClient:
        return self._client_factory(token=token)

    async def post(
        self,
        token: str,
        channel_id: str,
        message: OutboundMessage,
        *,
        replace_ts: str | None = None,
    ) -> str | None:
        """Post a message, or replace an existing one when replace_ts is given.

        Falls back to a fresh post if the update fails. Returns the message ts,
        or None when the post did not go through.
        """
        client = self._client(token)
        if replace_ts:
            try:
                await client.chat_update(
                    channel=channel_id,
                    ts=replace_ts,
                    text=message.text,
                    blocks=message.blocks,
                )
                return replace_ts
            except (SlackApiError, *TRANSPORT_ERRORS) as exc:
                logger.warning(
                    "chat.update failed (%s) in %s; posting instead",
                    _error_code(exc),
                    channel_id,
                )
        try:
            response = await client.chat_postMessage(
                channel=channel_id,
                text=message.text,
                blocks=message.blocks,
            )
            return response.get("ts")
        except (SlackApiError, *TRANSPORT_ERRORS) as exc:
            logger.error(
                "chat.postMessage failed (%s) in %s", _error_code(exc), channel_id, exc_info=True
            )
            return None

    async def open_view(self, token: str, trigger_id: str, view: dict) -> bool:
        try:
            await self._client(token).views_open(trigger_id=trigger_id, view=view)
            return True
        except (SlackApiError, *TRANSPORT_ERRORS) as exc:
            logger.error("views.open failed (%s)", _error_code(exc), exc_info=True)
            return False

    async def auth_test(self, token: str) -> bool:
        """Return True if Slack accepts the token.

        Only an explicit API rejection returns False; transport errors propagate
        so a network blip is not mistaken for a revoked token.
        """
        try:
            response = await self._client(token).auth_test()
        except SlackApiError as exc:
            logger.warning("auth.test rejected token (%s)", _error_code(exc))
            return False
        return bool(response.get("ok"))
