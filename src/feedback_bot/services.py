"""Explicitly constructed service graph, injected into request handlers.

Built once in the FastAPI lifespan and stored on ``app.state``; handlers reach
it through the ``get_services`` dependency, which tests override with doubles.
"""

from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from feedback_bot.config import Settings
from feedback_bot.dispatcher import FeedbackDispatcher
from feedback_bot.llm.client import create_gemini_client
from feedback_bot.llm.service import ExtractionService
from feedback_bot.notion.client import create_notion_client
from feedback_bot.notion.service import NotionFeedbackStore
from feedback_bot.slack.messenger import SlackMessenger
from feedback_bot.storage.credentials import CredentialStore
from feedback_bot.storage.database import create_engine, create_session_maker
from feedback_bot.storage.dedup import EventDeduplicator
from feedback_bot.storage.encryption import TokenCipher
from feedback_bot.storage.feedback import FlagStore, InternalFeedbackStore
from feedback_bot.storage.links import NotionLinkStore
from feedback_bot.storage.messages import DigestStore, MessageStore


@dataclass
class Services:
    settings: Settings
    dedup: EventDeduplicator
    credentials: CredentialStore
    links: NotionLinkStore
    internal_feedback: InternalFeedbackStore
    flags: FlagStore
    messages: MessageStore
    digests: DigestStore
    notion: NotionFeedbackStore
    extraction: ExtractionService
    messenger: SlackMessenger
    engine: AsyncEngine | None = None

    @property
    def dispatcher(self) -> FeedbackDispatcher:
        return FeedbackDispatcher(
            extraction=self.extraction,
            internal_feedback=self.internal_feedback,
            notion=self.notion,
            links=self.links,
        )


def build_services(settings: Settings) -> Services:
    """Construct every collaborator from settings.

    Raises ValueError if the token encryption key is missing or malformed.
    """
    engine = create_engine(settings.database_url)
    session_maker = create_session_maker(engine)
    cipher = TokenCipher(settings.token_encryption_key)

    return Services(
        settings=settings,
        dedup=EventDeduplicator(session_maker),
        credentials=CredentialStore(session_maker, cipher),
        links=NotionLinkStore(session_maker),
        internal_feedback=InternalFeedbackStore(session_maker),
        flags=FlagStore(session_maker),
        messages=MessageStore(session_maker),
        digests=DigestStore(session_maker),
        notion=NotionFeedbackStore(
            create_notion_client(settings.notion_api_key), settings.notion_parent_page_id
        ),
        extraction=ExtractionService(
            create_gemini_client(settings.gemini_api_key), settings.gemini_model
        ),
        messenger=SlackMessenger(),
        engine=engine,
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the application's service graph."""
    return request.app.state.services
