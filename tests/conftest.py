"""Shared test fixtures."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from cryptography.fernet import Fernet
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from feedback_bot.app import app
from feedback_bot.config import Settings
from feedback_bot.models.feedback import FeedbackRecord, FeedbackTag, ParsedFeedback, Urgency
from feedback_bot.services import Services, get_services
from feedback_bot.storage import (
    CredentialStore,
    DigestStore,
    EventDeduplicator,
    FlagStore,
    InternalFeedbackStore,
    MessageStore,
    NotionLinkStore,
    TokenCipher,
    create_session_maker,
    init_db,
)

TEST_SIGNING_SECRET = "test_signing_secret_1234"
TEST_SCHEDULER_SECRET = "test_scheduler_secret"
TEST_HUB_CHANNEL = "C_HUB"
TEST_ADMIN_CHANNEL = "C_ADMIN"


def make_settings(**overrides) -> Settings:
    """Settings with test values, ignoring any local .env file."""
    values = {
        "slack_signing_secret": TEST_SIGNING_SECRET,
        "slack_install_url": "https://example.com/install",
        "slack_default_hub_channel_id": "",
        "slack_admin_bot_token": "xoxb-admin",
        "slack_admin_channel_id": TEST_ADMIN_CHANNEL,
        "scheduler_secret": TEST_SCHEDULER_SECRET,
        "digest_channel_id": "C_DIGEST",
        "digest_days": 7,
        "install_success_url": "https://example.com/installed",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_feedback(**overrides) -> ParsedFeedback:
    """A valid ParsedFeedback with sensible defaults."""
    values = {
        "summary": "Export button is hard to find",
        "tag": FeedbackTag.UX,
        "urgency": Urgency.MEDIUM,
        "next_step": "Move export into the toolbar",
    }
    values.update(overrides)
    return ParsedFeedback(**values)


def _sqlite_engine(tmp_path):
    # NullPool: no connection outlives the event loop that opened it
    return create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def feedback() -> ParsedFeedback:
    return make_feedback()


@pytest.fixture
def cipher() -> TokenCipher:
    return TokenCipher(Fernet.generate_key().decode())


@pytest.fixture
async def session_maker(tmp_path):
    """Session maker over a fresh file-backed SQLite database (async tests)."""
    engine = _sqlite_engine(tmp_path)
    await init_db(engine)
    yield create_session_maker(engine)
    await engine.dispose()


@pytest.fixture
def sync_session_maker(tmp_path):
    """Session maker for sync tests that drive the app through TestClient."""
    engine = _sqlite_engine(tmp_path)
    asyncio.run(init_db(engine))
    yield create_session_maker(engine)
    asyncio.run(engine.dispose())


def build_test_services(session_maker, settings: Settings, cipher: TokenCipher) -> Services:
    """Real SQLite-backed stores; Notion, Gemini and Slack replaced by mocks."""
    notion = MagicMock()
    notion.create_database = AsyncMock(return_value="db-new")
    notion.seed_examples = AsyncMock()
    notion.archive_database = AsyncMock()
    notion.create_record = AsyncMock(
        return_value=FeedbackRecord(
            page_id="page-1", url="https://notion.so/page-1", summary="Export button is hard to find"
        )
    )
    notion.update_record = AsyncMock()
    notion.flag_record = AsyncMock()
    notion.query_records = AsyncMock(return_value=[])

    extraction = MagicMock()
    extraction.extract = AsyncMock(return_value=make_feedback())
    extraction.to_filters = AsyncMock()
    extraction.summarize = AsyncMock(return_value="Users want a clearer export flow.")

    messenger = MagicMock()
    messenger.post = AsyncMock(return_value="1700000001.000100")
    messenger.open_view = AsyncMock(return_value=True)
    messenger.auth_test = AsyncMock(return_value=True)

    return Services(
        settings=settings,
        dedup=EventDeduplicator(session_maker),
        credentials=CredentialStore(session_maker, cipher),
        links=NotionLinkStore(session_maker),
        internal_feedback=InternalFeedbackStore(session_maker),
        flags=FlagStore(session_maker),
        messages=MessageStore(session_maker),
        digests=DigestStore(session_maker),
        notion=notion,
        extraction=extraction,
        messenger=messenger,
    )


@pytest.fixture
async def services(session_maker, settings, cipher) -> Services:
    return build_test_services(session_maker, settings, cipher)


@pytest.fixture
def sync_services(sync_session_maker, settings, cipher) -> Services:
    return build_test_services(sync_session_maker, settings, cipher)


@pytest.fixture
def client(sync_services: Services):
    """TestClient with the service graph overridden (lifespan not run)."""
    app.dependency_overrides[get_services] = lambda: sync_services
    yield TestClient(app)
    app.dependency_overrides.clear()
