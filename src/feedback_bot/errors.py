"""Error taxonomy for the event pipeline.

Everything except SignatureError is benign at the HTTP edge: the webhook still
answers ``{"ok": true}`` so Slack does not redeliver. SignatureError becomes a 401.
Messages must never carry token or key material.
"""


class FeedbackBotError(Exception):
    """Base class for all pipeline errors."""


class DuplicateEventError(FeedbackBotError):
    """The event id was already recorded; another delivery owns the side effects."""

    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} already processed")
        self.event_id = event_id


class MissingCredentialError(FeedbackBotError):
    """No active credential exists for the workspace."""

    def __init__(self, team_id: str):
        super().__init__(f"No active credential for team {team_id}")
        self.team_id = team_id


class ClassificationMiss(FeedbackBotError):
    """The message is not a command addressed to the bot."""


class ExtractionError(FeedbackBotError):
    """The language model call failed or returned malformed/incomplete output."""


class StorageError(FeedbackBotError):
    """A database or document-store read/write failed."""


class SignatureError(FeedbackBotError):
    """The request signature did not verify."""


class InstallError(FeedbackBotError):
    """The OAuth code exchange failed or returned an unusable response."""
