"""Per-team Notion feedback databases: provisioning, record writes, and queries."""

from feedback_bot.notion.client import create_notion_client
from feedback_bot.notion.provisioning import ensure_team_database
from feedback_bot.notion.service import NotionFeedbackStore

__all__ = [
    "NotionFeedbackStore",
    "create_notion_client",
    "ensure_team_database",
]
