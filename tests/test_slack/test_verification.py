"""Tests for Slack request signature verification."""

import hashlib
import hmac
import time

import pytest

from feedback_bot.errors import SignatureError
from feedback_bot.slack.verification import verify_signature

SECRET = "test_signing_secret_1234"
BODY = b'{"type": "event_callback"}'


def _sign(body: bytes, secret: str, timestamp: str) -> str:
    basestring = f"v0:{timestamp}:{body.decode()}"
    return "v0=" + hmac.new(secret.encode(), basestring.encode(), hashlib.sha256).hexdigest()


def test_valid_signature_passes():
    timestamp = str(int(time.time()))
    verify_signature(BODY, timestamp, _sign(BODY, SECRET, timestamp), SECRET)


def test_tampered_body_fails():
    timestamp = str(int(time.time()))
    signature = _sign(BODY, SECRET, timestamp)
    with pytest.raises(SignatureError):
        verify_signature(b'{"type": "tampered"}', timestamp, signature, SECRET)


def test_wrong_secret_fails():
    timestamp = str(int(time.time()))
    with pytest.raises(SignatureError):
        verify_signature(BODY, timestamp, _sign(BODY, "other", timestamp), SECRET)


def test_stale_timestamp_fails():
    timestamp = str(int(time.time()) - 600)
    with pytest.raises(SignatureError):
        verify_signature(BODY, timestamp, _sign(BODY, SECRET, timestamp), SECRET)


def test_missing_secret_fails():
    timestamp = str(int(time.time()))
    with pytest.raises(SignatureError, match="not configured"):
        verify_signature(BODY, timestamp, _sign(BODY, "", timestamp), "")


@pytest.mark.parametrize("timestamp", ["", "not-a-number", "17e8"])
def test_missing_or_malformed_timestamp_fails(timestamp):
    with pytest.raises(SignatureError, match="timestamp"):
        verify_signature(BODY, timestamp, _sign(BODY, SECRET, timestamp), SECRET)
