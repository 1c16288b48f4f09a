"""Relational persistence: dedup markers, credentials, links, internal feedback, messages."""

from feedback_bot.storage.credentials import CredentialStore
from feedback_bot.storage.database import create_engine, create_session_maker, init_db
from feedback_bot.storage.dedup import EventDeduplicator
from feedback_bot.storage.encryption import TokenCipher
from feedback_bot.storage.feedback import FlagStore, InternalFeedbackStore
from feedback_bot.storage.links import NotionLinkStore
from feedback_bot.storage.messages import DigestStore, MessageStore

__all__ = [
    "CredentialStore",
    "DigestStore",
    "EventDeduplicator",
    "FlagStore",
    "InternalFeedbackStore",
    "MessageStore",
    "NotionLinkStore",
    "TokenCipher",
    "create_engine",
    "create_session_maker",
    "init_db",
]
