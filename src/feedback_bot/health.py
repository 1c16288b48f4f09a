"""Credential health check: invalidate tokens Slack no longer accepts."""

import logging

from feedback_bot.errors import StorageError
from feedback_bot.services import Services
from feedback_bot.slack.formatter import format_reinstall_notice

logger = logging.getLogger(__name__)


async def run_health_check(services: Services) -> dict:
    """Call auth.test for every active workspace.

    A rejected token is invalidated and the hub channel gets a best-effort
    reinstall notice. A failure on one team does not stop the others.
    """
    try:
        credentials = await services.credentials.list_active()
    except StorageError as exc:
        logger.error("Health check could not list credentials: %s", exc, exc_info=True)
        return {"status": "error", "checked": 0, "invalidated": []}

    checked = 0
    invalidated: list[str] = []
    for credential in credentials:
        team_id = credential.team_id
        try:
            token = services.credentials.access_token(credential)
            checked += 1
            if await services.messenger.auth_test(token):
                continue

            await services.credentials.invalidate(team_id)
            invalidated.append(team_id)

            hub_channel_id = (
                credential.hub_channel_id or services.settings.slack_default_hub_channel_id
            )
            install_url = services.settings.slack_install_url
            if hub_channel_id and install_url:
                # The bad token usually cannot post either; a failed post is only logged
                await services.messenger.post(
                    token, hub_channel_id, format_reinstall_notice(install_url)
                )
        except Exception as exc:
            logger.error("Health check failed for team %s: %s", team_id, exc, exc_info=True)

    logger.info(
        "Health check complete",
        extra={"checked": checked, "invalidated": len(invalidated)},
    )
    return {"status": "ok", "checked": checked, "invalidated": invalidated}
