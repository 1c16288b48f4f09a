"""Notion feedback store: database provisioning, record writes, and queries.

All Notion transport and API failures are translated to StorageError here, so
callers never see notion-client exception types.
"""

import logging

import httpx
from notion_client import AsyncClient
from notion_client import errors as notion_errors

from feedback_bot.errors import StorageError
from feedback_bot.models.feedback import FeedbackRecord, ParsedFeedback, QueryFilter
from feedback_bot.notion import schema
from feedback_bot.notion.filters import build_filter
from feedback_bot.notion.properties import (
    build_feedback_properties,
    build_record_properties,
    parse_record,
)

logger = logging.getLogger(__name__)

_NOTION_ERRORS = (
    notion_errors.HTTPResponseError,
    notion_errors.RequestTimeoutError,
    httpx.HTTPError,
)

# Query results are rendered as Slack blocks (50-block message limit)
MAX_QUERY_RESULTS = 20


class NotionFeedbackStore:
    """Reads and writes feedback records in per-team Notion databases."""

    def __init__(self, client: AsyncClient, parent_page_id: str) -> None:
        self._client = client
        self._parent_page_id = parent_page_id

    async def create_database(self, team_name: str | None) -> str:
        """Create a team feedback database under the parent page. Returns its id."""
        try:
            response = await self._client.databases.create(
                parent={"type": "page_id", "page_id": self._parent_page_id},
                title=schema.database_title(team_name),
                properties=schema.DATABASE_PROPERTIES,
            )
        except _NOTION_ERRORS as exc:
            raise StorageError(f"Failed to create Notion database for {team_name}") from exc

        logger.info("Created Notion database %s for %s", response["id"], team_name)
        return response["id"]

    async def seed_examples(self, database_id: str) -> None:
        """Write the example rows into a freshly created database."""
        try:
            for task in schema.SEED_TASKS:
                await self._client.pages.create(
                    parent={"database_id": database_id},
                    properties=build_feedback_properties(task),
                )
        except _NOTION_ERRORS as exc:
            raise StorageError(f"Failed to seed Notion database {database_id}") from exc

    async def archive_database(self, database_id: str) -> None:
        """Delete (move to trash) a database that lost the provisioning race."""
        try:
            await self._client.blocks.delete(block_id=database_id)
        except _NOTION_ERRORS as exc:
            raise StorageError(f"Failed to archive Notion database {database_id}") from exc

    async def create_record(
        self,
        database_id: str,
        feedback: ParsedFeedback,
        user_id: str,
        channel_id: str,
        timestamp_token: str,
    ) -> FeedbackRecord:
        try:
            page = await self._client.pages.create(
                parent={"database_id": database_id},
                properties=build_record_properties(feedback, user_id, channel_id, timestamp_token),
            )
        except _NOTION_ERRORS as exc:
            raise StorageError(f"Failed to create Notion record in {database_id}") from exc

        logger.info("Created Notion record %s in %s", page["id"], database_id)
        return FeedbackRecord(
            page_id=page["id"],
            url=page.get("url"),
            summary=feedback.summary,
            tag=feedback.tag.value,
            urgency=feedback.urgency.value,
            next_step=feedback.next_step,
        )

    async def update_record(self, page_id: str, feedback: ParsedFeedback) -> None:
        """Overwrite a record's parsed fields in place."""
        try:
            await self._client.pages.update(
                page_id=page_id,
                properties=build_feedback_properties(feedback),
            )
        except _NOTION_ERRORS as exc:
            raise StorageError(f"Failed to update Notion record {page_id}") from exc

    async def flag_record(self, page_id: str) -> None:
        try:
            await self._client.pages.update(
                page_id=page_id,
                properties={schema.FLAGGED: {"checkbox": True}},
            )
        except _NOTION_ERRORS as exc:
            raise StorageError(f"Failed to flag Notion record {page_id}") from exc

    async def query_records(self, database_id: str, query: QueryFilter) -> list[FeedbackRecord]:
        """Return the newest records matching the filter (at most MAX_QUERY_RESULTS)."""
        kwargs: dict = {
            "database_id": database_id,
            "sorts": [{"timestamp": "created_time", "direction": "descending"}],
            "page_size": MAX_QUERY_RESULTS,
        }
        notion_filter = build_filter(query)
        if notion_filter is not None:
            kwargs["filter"] = notion_filter

        try:
            response = await self._client.databases.query(**kwargs)
        except _NOTION_ERRORS as exc:
            raise StorageError(f"Failed to query Notion database {database_id}") from exc

        pages = response.get("results", [])
        logger.info("Notion query returned %d record(s)", len(pages))
        return [parse_record(page) for page in pages if "properties" in page]
