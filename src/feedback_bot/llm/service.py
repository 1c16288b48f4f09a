"""Extraction service: one Gemini request per call, strict output handling.

Wraps the Gemini client behind the three modes the pipeline needs. Transport
and API failures surface as ExtractionError; nothing is retried here.
"""

import logging
from datetime import UTC, date, datetime

import httpx
from google import genai
from google.genai import types
from google.genai.errors import APIError

from feedback_bot.errors import ExtractionError
from feedback_bot.llm.parsing import parse_feedback, parse_query_filter
from feedback_bot.llm.prompts import FEEDBACK_PROMPT, SUMMARIZE_PROMPT, build_query_prompt
from feedback_bot.models.feedback import ParsedFeedback, QueryFilter

logger = logging.getLogger(__name__)


class ExtractionService:
    """Language-model backed extraction of feedback, filters, and summaries."""

    def __init__(self, client: genai.Client, model: str) -> None:
        self._client = client
        self._model = model

    async def _generate(
        self,
        mode: str,
        system_prompt: str,
        text: str,
        *,
        json_output: bool,
        temperature: float,
    ) -> str:
        if not text.strip():
            raise ExtractionError(f"Nothing to send for {mode}")
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=text,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    response_mime_type="application/json" if json_output else None,
                    temperature=temperature,
                ),
            )
        except APIError as exc:
            raise ExtractionError(f"Gemini {mode} request failed with status {exc.code}") from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(f"Gemini {mode} request failed: {type(exc).__name__}") from exc

        usage = getattr(response, "usage_metadata", None)
        logger.info(
            "Gemini %s call complete",
            mode,
            extra={
                "mode": mode,
                "input_chars": len(text),
                "total_tokens": getattr(usage, "total_token_count", None),
            },
        )

        output = response.text
        if not output:
            raise ExtractionError(f"Gemini returned an empty {mode} response")
        return output

    async def extract(self, raw_text: str) -> ParsedFeedback:
        """Turn free-text feedback into ParsedFeedback. Raises ExtractionError."""
        output = await self._generate(
            "parse", FEEDBACK_PROMPT, raw_text, json_output=True, temperature=0.2
        )
        return parse_feedback(output)

    async def to_filters(self, raw_text: str, today: date | None = None) -> QueryFilter:
        """Turn a natural-language query into a QueryFilter. Raises ExtractionError."""
        today = today or datetime.now(UTC).date()
        output = await self._generate(
            "query", build_query_prompt(today), raw_text, json_output=True, temperature=0.0
        )
        return parse_query_filter(output)

    async def summarize(self, raw_text: str) -> str:
        """Summarize a block of conversation text. Raises ExtractionError."""
        output = await self._generate(
            "summarize", SUMMARIZE_PROMPT, raw_text, json_output=False, temperature=0.4
        )
        return output.strip()
