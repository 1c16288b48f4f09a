"""Slack request signature verification as a FastAPI dependency."""

import logging

from fastapi import Depends, HTTPException, Request
from slack_sdk.signature import SignatureVerifier

from feedback_bot.errors import SignatureError
from feedback_bot.services import Services, get_services

logger = logging.getLogger(__name__)


def verify_signature(body: bytes, timestamp: str, signature: str, signing_secret: str) -> None:
    """Check the ``v0`` HMAC-SHA256 signature over ``v0:{timestamp}:{body}``.

    SignatureVerifier compares in constant time and rejects timestamps older
    than five minutes.

    Raises:
        SignatureError: If the secret is unset or the request is not validly signed.
    """
    if not signing_secret:
        raise SignatureError("Slack signing secret is not configured")
    # SignatureVerifier calls int() on the timestamp
    if not timestamp.isdigit():
        raise SignatureError("Missing or malformed Slack request timestamp")
    verifier = SignatureVerifier(signing_secret=signing_secret)
    if not verifier.is_valid(body=body.decode("utf-8"), timestamp=timestamp, signature=signature):
        raise SignatureError("Invalid Slack signature")


async def verify_slack_request(
    request: Request, services: Services = Depends(get_services)
) -> bytes:
    """Verify the request signature and return the raw body.

    Reads the raw body FIRST (before any JSON or form parsing) so the
    signature is computed over the exact bytes Slack signed.

    Raises HTTPException(401) if the signature is invalid.
    """
    body = await request.body()
    try:
        verify_signature(
            body,
            request.headers.get("X-Slack-Request-Timestamp", ""),
            request.headers.get("X-Slack-Signature", ""),
            services.settings.slack_signing_secret,
        )
    except SignatureError as exc:
        logger.warning("Rejected Slack request on %s: %s", request.url.path, exc)
        raise HTTPException(status_code=401, detail="Invalid Slack signature") from exc
    return body
