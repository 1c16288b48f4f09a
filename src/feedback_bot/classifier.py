"""Command grammar: turn a message into a typed intent and routing target.

Two forms are accepted, matched as literal prefixes after whitespace collapse
and lower-casing:

- hub channel:      ``bug: ...`` or ``feedback: ...`` (no mention needed)
- other channels:   ``<@BOT> feedback: ...``, ``<@BOT> query: ...``, ``<@BOT> bug: ...``

Anything else is not a command. There is no fuzzy matching: a false positive
costs a model call and a junk record.
"""

from feedback_bot.models.intent import Intent, IntentKind, RoutingTarget

HUB_COMMANDS = (IntentKind.BUG, IntentKind.FEEDBACK)
MENTION_COMMANDS = (IntentKind.FEEDBACK, IntentKind.QUERY, IntentKind.BUG)


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace (including newlines) to single spaces and trim."""
    return " ".join(text.split())


def strip_command(text: str) -> str:
    """Return the text after the first ':' delimiter, trimmed."""
    _, _, body = text.partition(":")
    return body.strip()


def classify(
    text: str,
    bot_user_id: str,
    hub_channel_id: str | None,
    channel_id: str,
) -> Intent:
    """Classify a message. Pure function of its four inputs."""
    normalized = normalize_whitespace(text)
    matchable = normalized.lower()

    if hub_channel_id and channel_id == hub_channel_id:
        for kind in HUB_COMMANDS:
            if matchable.startswith(f"{kind.value}:"):
                return _command(kind, normalized, RoutingTarget.INTERNAL_BUCKET)
        return Intent.none()

    if not bot_user_id:
        return Intent.none()

    mention = f"<@{bot_user_id}>".lower()
    for kind in MENTION_COMMANDS:
        if matchable.startswith(f"{mention} {kind.value}:"):
            return _command(kind, normalized, RoutingTarget.EXTERNAL_TEAM_STORE)
    return Intent.none()


def _command(kind: IntentKind, normalized: str, target: RoutingTarget) -> Intent:
    # A bare prefix with nothing after it is not worth a model call
    body = strip_command(normalized)
    if not body:
        return Intent.none()
    return Intent(kind=kind, body=body, target=target)
