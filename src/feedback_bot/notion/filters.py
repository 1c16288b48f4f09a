"""Pure function converting a QueryFilter into a Notion database filter."""

from feedback_bot.models.feedback import QueryFilter
from feedback_bot.notion import schema


def build_filter(query: QueryFilter) -> dict | None:
    """Return a Notion ``filter`` object, or None when nothing is filtered."""
    conditions: list[dict] = []

    if query.tag is not None:
        conditions.append({"property": schema.TAG, "select": {"equals": query.tag.value}})

    if query.urgency is not None:
        conditions.append({"property": schema.URGENCY, "select": {"equals": query.urgency.value}})

    if query.flagged is not None:
        conditions.append({"property": schema.FLAGGED, "checkbox": {"equals": query.flagged}})

    if query.date_range is not None:
        conditions.append(
            {
                "timestamp": "created_time",
                "created_time": {"on_or_after": query.date_range.start.isoformat()},
            }
        )
        conditions.append(
            {
                "timestamp": "created_time",
                "created_time": {"on_or_before": query.date_range.end.isoformat()},
            }
        )

    if not conditions:
        return None
    if len(conditions) == 1:
        return conditions[0]
    return {"and": conditions}
