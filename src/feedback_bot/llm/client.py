"""Gemini client construction.

Uses a 60-second HTTP timeout and no HttpRetryOptions: each extraction is a
single request, and Slack redelivery is the only retry path.
"""

from google import genai
from google.genai import types


def create_gemini_client(api_key: str) -> genai.Client:
    """Return a Gemini client configured with the given API key."""
    return genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=60_000),
    )
