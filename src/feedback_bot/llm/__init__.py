"""Language-model extraction: feedback parsing, query filters, and summaries.

Public API:
    ExtractionService(client, model).extract(text) -> ParsedFeedback
    ExtractionService(client, model).to_filters(text) -> QueryFilter
    ExtractionService(client, model).summarize(text) -> str
"""

from feedback_bot.llm.client import create_gemini_client
from feedback_bot.llm.parsing import apply_bug_override, parse_feedback, parse_query_filter
from feedback_bot.llm.service import ExtractionService

__all__ = [
    "ExtractionService",
    "apply_bug_override",
    "create_gemini_client",
    "parse_feedback",
    "parse_query_filter",
]
