"""Async Notion client construction."""

from notion_client import AsyncClient


def create_notion_client(api_key: str) -> AsyncClient:
    """Return an async Notion client authenticated with the integration key."""
    return AsyncClient(auth=api_key)
