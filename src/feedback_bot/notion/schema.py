"""Property schema and seed records for a team's feedback database."""

from feedback_bot.models.feedback import FeedbackTag, ParsedFeedback, Urgency

NAME = "Name"
TAG = "Tag"
URGENCY = "Urgency"
NEXT_STEP = "NextStep"
SLACK_USER = "SlackUser"
SLACK_CHANNEL = "SlackChannel"
SLACK_MESSAGE_LINK = "SlackMessageLink"
FLAGGED = "Flagged"
CREATED = "Created"

_TAG_COLORS = {
    FeedbackTag.BUG: "red",
    FeedbackTag.FEATURE: "blue",
    FeedbackTag.UX: "yellow",
    FeedbackTag.OTHER: "gray",
}

_URGENCY_COLORS = {
    Urgency.LOW: "green",
    Urgency.MEDIUM: "orange",
    Urgency.HIGH: "red",
}

DATABASE_PROPERTIES: dict = {
    NAME: {"title": {}},
    TAG: {
        "select": {
            "options": [{"name": tag.value, "color": color} for tag, color in _TAG_COLORS.items()]
        }
    },
    URGENCY: {
        "select": {
            "options": [
                {"name": urgency.value, "color": color}
                for urgency, color in _URGENCY_COLORS.items()
            ]
        }
    },
    NEXT_STEP: {"rich_text": {}},
    SLACK_USER: {"rich_text": {}},
    SLACK_CHANNEL: {"rich_text": {}},
    SLACK_MESSAGE_LINK: {"url": {}},
    FLAGGED: {"checkbox": {}},
    CREATED: {"created_time": {}},
}

# Example rows so a new board is not empty on first open
SEED_TASKS: list[ParsedFeedback] = [
    ParsedFeedback(
        summary="Enable /summary command",
        tag=FeedbackTag.FEATURE,
        urgency=Urgency.MEDIUM,
        next_step="Add LLM logic for summarizing feedback",
    ),
    ParsedFeedback(
        summary="Fix feedback formatting bug",
        tag=FeedbackTag.BUG,
        urgency=Urgency.HIGH,
        next_step="Escape markdown properly in Slack message blocks",
    ),
    ParsedFeedback(
        summary="Improve onboarding message",
        tag=FeedbackTag.UX,
        urgency=Urgency.LOW,
        next_step="Clarify instructions with screenshots or GIF",
    ),
]


def database_title(team_name: str | None) -> list[dict]:
    name = team_name or "Team"
    return [{"type": "text", "text": {"content": f"{name} Feedback Board"}}]


def database_url(database_id: str) -> str:
    """Browser URL of a database; Notion accepts the id without dashes."""
    return f"https://www.notion.so/{database_id.replace('-', '')}"
