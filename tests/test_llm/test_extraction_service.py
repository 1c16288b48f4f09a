"""ExtractionService tests with a mocked Gemini client."""

import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from google.genai.errors import ServerError

from feedback_bot.errors import ExtractionError
from feedback_bot.llm.prompts import FEEDBACK_PROMPT, SUMMARIZE_PROMPT
from feedback_bot.llm.service import ExtractionService
from feedback_bot.models.feedback import FeedbackTag, Urgency

MODEL = "gemini-2.5-flash"


def _client(text: str | None = None, side_effect: Exception | None = None) -> MagicMock:
    """Return a mock genai.Client whose aio generate_content yields ``text``."""
    response = MagicMock()
    response.text = text
    response.usage_metadata = MagicMock(total_token_count=42)
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=side_effect)
    return client


async def test_extract_sends_one_request_with_feedback_prompt():
    client = _client(
        json.dumps({"summary": "s", "tag": "Bug", "urgency": "High", "nextStep": "fix"})
    )
    service = ExtractionService(client, MODEL)

    feedback = await service.extract("the app crashes")

    assert feedback.tag is FeedbackTag.BUG
    client.aio.models.generate_content.assert_awaited_once()
    kwargs = client.aio.models.generate_content.call_args.kwargs
    assert kwargs["model"] == MODEL
    assert kwargs["contents"] == "the app crashes"
    assert kwargs["config"].system_instruction == FEEDBACK_PROMPT
    assert kwargs["config"].response_mime_type == "application/json"


async def test_extract_invalid_output_raises():
    service = ExtractionService(_client('{"summary": "only"}'), MODEL)
    with pytest.raises(ExtractionError):
        await service.extract("text")


async def test_extract_empty_response_raises():
    service = ExtractionService(_client(None), MODEL)
    with pytest.raises(ExtractionError):
        await service.extract("text")


async def test_extract_api_error_is_not_retried():
    error = ServerError(500, {"error": {"code": 500, "message": "boom", "status": "INTERNAL"}})
    client = _client(side_effect=error)
    service = ExtractionService(client, MODEL)

    with pytest.raises(ExtractionError):
        await service.extract("text")
    assert client.aio.models.generate_content.await_count == 1


async def test_extract_transport_error_raises_extraction_error():
    client = _client(side_effect=httpx.ConnectTimeout("timed out"))
    with pytest.raises(ExtractionError):
        await ExtractionService(client, MODEL).extract("text")


async def test_blank_input_makes_no_request():
    client = _client("{}")
    with pytest.raises(ExtractionError):
        await ExtractionService(client, MODEL).extract("   ")
    client.aio.models.generate_content.assert_not_awaited()


async def test_to_filters_anchors_prompt_to_today():
    client = _client(json.dumps({"urgency": "high"}))
    service = ExtractionService(client, MODEL)

    query = await service.to_filters("urgent stuff", today=date(2026, 10, 19))

    assert query.urgency is Urgency.HIGH
    config = client.aio.models.generate_content.call_args.kwargs["config"]
    assert "2026-10-19" in config.system_instruction


async def test_summarize_returns_plain_text():
    client = _client("  - Users want exports\n")
    service = ExtractionService(client, MODEL)

    summary = await service.summarize("[Oct 1, 9:00 AM] (U1): exports please")

    assert summary == "- Users want exports"
    config = client.aio.models.generate_content.call_args.kwargs["config"]
    assert config.system_instruction == SUMMARIZE_PROMPT
    assert config.response_mime_type is None
