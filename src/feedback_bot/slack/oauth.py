"""OAuth v2 install callback: exchange the code and store the bot token."""

import logging

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from feedback_bot.errors import InstallError
from feedback_bot.services import Services
from feedback_bot.storage.tables import TeamCredential

logger = logging.getLogger(__name__)


async def complete_install(
    code: str, services: Services, client: AsyncWebClient | None = None
) -> TeamCredential:
    """Exchange an OAuth code for a bot token and upsert the team credential.

    The hub channel is the channel picked for the incoming webhook, falling
    back to the configured default.

    Raises:
        InstallError: Slack rejected the exchange or omitted required fields.
        StorageError: The credential could not be stored.
    """
    settings = services.settings
    client = client or AsyncWebClient()
    try:
        response = await client.oauth_v2_access(
            client_id=settings.slack_client_id,
            client_secret=settings.slack_client_secret,
            code=code,
            redirect_uri=settings.slack_redirect_uri or None,
        )
    except SlackApiError as exc:
        error = exc.response.get("error", "") if exc.response else ""
        raise InstallError(f"oauth.v2.access failed: {error}") from exc

    team = response.get("team") or {}
    team_id = team.get("id")
    access_token = response.get("access_token")
    bot_user_id = response.get("bot_user_id")
    if not team_id or not access_token or not bot_user_id:
        raise InstallError("oauth.v2.access response is missing team, token or bot user")

    webhook = response.get("incoming_webhook") or {}
    hub_channel_id = webhook.get("channel_id") or settings.slack_default_hub_channel_id or None

    credential = await services.credentials.upsert(
        team_id=team_id,
        access_token=access_token,
        bot_user_id=bot_user_id,
        team_name=team.get("name"),
        hub_channel_id=hub_channel_id,
    )
    logger.info("Workspace installed", extra={"team_id": team_id, "team_name": team.get("name")})
    return credential
