"""Tests for event dispatch and the background pipeline."""

import json
from unittest.mock import AsyncMock, MagicMock

import aiohttp
from fastapi import BackgroundTasks

from feedback_bot.models.events import InboundEvent
from feedback_bot.models.feedback import FeedbackRecord
from feedback_bot.models.intent import IntentKind, RoutingTarget
from feedback_bot.slack.formatter import format_processing_ack
from feedback_bot.slack.handlers import handle_slack_event, process_event, run_pipeline
from feedback_bot.slack.messenger import SlackMessenger

TEAM = "T1"
BOT = "U_BOT"


def _payload(text: str, channel: str = "C1", event_id: str = "Ev1", **event_extra) -> dict:
    event = {
        "type": "message",
        "user": "U1",
        "channel": channel,
        "ts": "1700000000.000100",
        "text": text,
    }
    event.update(event_extra)
    return {"type": "event_callback", "team_id": TEAM, "event_id": event_id, "event": event}


def _event(text: str, channel: str = "C1") -> InboundEvent:
    return InboundEvent.from_payload(_payload(text, channel))


# -- handle_slack_event --


async def test_url_verification_echoes_challenge(services):
    response = await handle_slack_event(
        {"type": "url_verification", "challenge": "abc"}, services, BackgroundTasks()
    )
    assert json.loads(response.body) == {"challenge": "abc"}


async def test_unknown_payload_type_is_acknowledged(services):
    tasks = BackgroundTasks()
    response = await handle_slack_event({"type": "app_rate_limited"}, services, tasks)
    assert json.loads(response.body) == {"ok": True}
    assert tasks.tasks == []


async def test_bot_message_is_not_claimed(services):
    tasks = BackgroundTasks()
    await handle_slack_event(_payload("hi", bot_id="B1"), services, tasks)
    assert tasks.tasks == []
    assert await services.dedup.is_duplicate("Ev1") is False


async def test_new_event_is_claimed_and_queued(services):
    tasks = BackgroundTasks()
    response = await handle_slack_event(_payload("<@U_BOT> feedback: x"), services, tasks)

    assert json.loads(response.body) == {"ok": True}
    assert len(tasks.tasks) == 1
    assert await services.dedup.is_duplicate("Ev1") is True


async def test_redelivered_event_is_not_queued(services):
    await handle_slack_event(_payload("<@U_BOT> feedback: x"), services, BackgroundTasks())
    tasks = BackgroundTasks()

    response = await handle_slack_event(_payload("<@U_BOT> feedback: x"), services, tasks)

    assert json.loads(response.body) == {"ok": True}
    assert tasks.tasks == []


# -- run_pipeline / process_event --


async def test_pipeline_posts_ack_then_replaces_it(services):
    await services.credentials.upsert(TEAM, "xoxb-team", BOT, team_name="Acme", hub_channel_id="C_HUB")

    await run_pipeline(_event("bug: export crashes", channel="C_HUB"), services)

    posts = services.messenger.post.await_args_list
    assert len(posts) == 2
    assert posts[0].args == ("xoxb-team", "C_HUB", format_processing_ack(IntentKind.BUG))
    assert posts[1].kwargs["replace_ts"] == "1700000001.000100"
    assert "[BUG]" in posts[1].args[2].text


async def test_pipeline_stores_raw_message(services):
    await services.credentials.upsert(TEAM, "xoxb-team", BOT)

    await run_pipeline(_event("<@U_BOT> feedback: search is slow"), services)

    messages = await services.messages.recent("C1")
    assert [m.text for m in messages] == ["<@U_BOT> feedback: search is slow"]
    services.notion.create_record.assert_awaited_once()


async def test_pipeline_uses_default_hub_when_install_named_none(services):
    services.settings.slack_default_hub_channel_id = "C_DEFAULT_HUB"
    await services.credentials.upsert(TEAM, "xoxb-team", BOT)

    await process_event(_event("feedback: nice", channel="C_DEFAULT_HUB"), services)

    services.extraction.extract.assert_awaited_once_with("nice")
    services.notion.create_record.assert_not_awaited()


async def test_no_intent_sends_nothing(services):
    await services.credentials.upsert(TEAM, "xoxb-team", BOT)

    await process_event(_event("just chatting"), services)

    services.messenger.post.assert_not_awaited()
    services.extraction.extract.assert_not_awaited()


async def test_missing_credential_ends_silently(services):
    await process_event(_event("<@U_BOT> feedback: x"), services)

    services.messenger.post.assert_not_awaited()
    services.extraction.extract.assert_not_awaited()


async def test_invalidated_credential_ends_silently(services):
    await services.credentials.upsert(TEAM, "xoxb-team", BOT)
    await services.credentials.invalidate(TEAM)

    await process_event(_event("<@U_BOT> feedback: x"), services)

    services.messenger.post.assert_not_awaited()


async def test_external_feedback_reply_targets_team_store(services, feedback):
    services.notion.create_record.return_value = FeedbackRecord(
        page_id="page-1", url="https://notion.so/page-1", summary=feedback.summary
    )
    await services.credentials.upsert(TEAM, "xoxb-team", BOT, hub_channel_id="C_HUB")

    await process_event(_event("<@U_BOT> feedback: search is slow"), services)

    reply = services.messenger.post.await_args_list[-1].args[2]
    assert "https://notion.so/page-1" in str(reply.blocks)
    assert RoutingTarget.EXTERNAL_TEAM_STORE.value in reply.blocks[-2]["elements"][0]["value"]


async def test_slack_outage_ends_at_pipeline_boundary(services):
    slack = MagicMock()
    slack.chat_postMessage = AsyncMock(side_effect=aiohttp.ClientConnectionError("reset"))
    slack.chat_update = AsyncMock(side_effect=aiohttp.ClientConnectionError("reset"))
    services.messenger = SlackMessenger(client_factory=MagicMock(return_value=slack))
    await services.credentials.upsert(TEAM, "xoxb-team", BOT, hub_channel_id="C_HUB")

    await process_event(_event("bug: export crashes", channel="C_HUB"), services)

    services.extraction.extract.assert_awaited_once()
    assert slack.chat_postMessage.await_count == 2
