"""Classified intent of an inbound message and its routing target."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class IntentKind(str, Enum):
    """Closed set of message intents."""

    FEEDBACK = "feedback"
    BUG = "bug"
    QUERY = "query"
    NONE = "none"


class RoutingTarget(str, Enum):
    """Where the results of a command are persisted."""

    INTERNAL_BUCKET = "internal"
    EXTERNAL_TEAM_STORE = "external"


class Intent(BaseModel):
    """A classified command: kind, stripped body, and destination."""

    model_config = ConfigDict(frozen=True)

    kind: IntentKind
    body: str = ""
    target: RoutingTarget | None = None

    @classmethod
    def none(cls) -> "Intent":
        return cls(kind=IntentKind.NONE)

    @property
    def is_command(self) -> bool:
        return self.kind is not IntentKind.NONE
