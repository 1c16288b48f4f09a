"""Lazy, idempotent provisioning of a team's Notion database."""

import logging

from feedback_bot.errors import StorageError
from feedback_bot.notion.service import NotionFeedbackStore
from feedback_bot.storage.links import NotionLinkStore

logger = logging.getLogger(__name__)


async def ensure_team_database(
    team_id: str,
    team_name: str | None,
    links: NotionLinkStore,
    store: NotionFeedbackStore,
) -> str:
    """Return the team's database id, creating and seeding it on first use.

    Two first events racing for a new team may both create a database. The
    link insert decides the winner; the loser deletes its own database and
    uses the winner's. A database that fails seeding is deleted before the
    error propagates, so the next event starts over from a clean slate.
    """
    link = await links.get(team_id)
    if link is not None:
        return link.database_id

    database_id = await store.create_database(team_name)
    try:
        await store.seed_examples(database_id)
    except StorageError:
        await _discard(store, database_id)
        raise

    winner = await links.claim(team_id, database_id)
    if winner.database_id != database_id:
        logger.warning(
            "Lost Notion provisioning race for team %s; discarding %s",
            team_id,
            database_id,
        )
        await _discard(store, database_id)
    return winner.database_id


async def _discard(store: NotionFeedbackStore, database_id: str) -> None:
    try:
        await store.archive_database(database_id)
    except StorageError:
        logger.error("Failed to discard orphan Notion database %s", database_id, exc_info=True)
