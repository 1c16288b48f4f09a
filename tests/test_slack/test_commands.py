"""Tests for the summary slash command."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
from fastapi import BackgroundTasks

from feedback_bot.errors import StorageError
from feedback_bot.slack.commands import (
    NO_SUMMARY_TEXT,
    handle_board_command,
    handle_summary_command,
    post_to_response_url,
    send_latest_summary,
)

RESPONSE_URL = "https://hooks.slack.com/commands/1"


def test_ack_is_ephemeral_and_queues_summary():
    services = MagicMock()
    tasks = BackgroundTasks()

    response = handle_summary_command(
        {"team_id": "T1", "channel_id": "C1", "user_id": "U1", "response_url": RESPONSE_URL},
        services,
        tasks,
    )

    assert json.loads(response.body) == {"response_type": "ephemeral", "text": "Generating summary..."}
    assert len(tasks.tasks) == 1


def test_missing_response_url_queues_nothing():
    tasks = BackgroundTasks()
    response = handle_summary_command({"channel_id": "C1"}, MagicMock(), tasks)
    assert "Missing response_url" in json.loads(response.body)["text"]
    assert tasks.tasks == []


@patch("feedback_bot.slack.commands.post_to_response_url", new_callable=AsyncMock)
async def test_latest_channel_digest_is_posted(mock_post: AsyncMock, services):
    await services.digests.save("T1", "C1", "Exports are confusing.", "raw", 5)

    await send_latest_summary("T1", "C1", RESPONSE_URL, services)

    url, text = mock_post.await_args.args
    assert url == RESPONSE_URL
    assert "Exports are confusing." in text


@patch("feedback_bot.slack.commands.post_to_response_url", new_callable=AsyncMock)
async def test_falls_back_to_latest_digest_of_same_team(mock_post: AsyncMock, services):
    await services.digests.save("T1", "C_DIGEST", "Team digest.", "raw", 2)

    await send_latest_summary("T1", "C_OTHER", RESPONSE_URL, services)

    assert "Team digest." in mock_post.await_args.args[1]


@patch("feedback_bot.slack.commands.post_to_response_url", new_callable=AsyncMock)
async def test_other_teams_digest_is_never_returned(mock_post: AsyncMock, services):
    await services.digests.save("T_A", "C_TEAM_A", "Team A roadmap complaints.", "raw", 3)

    await send_latest_summary("T_B", "C_TEAM_B", RESPONSE_URL, services)

    assert mock_post.await_args.args[1] == NO_SUMMARY_TEXT


@patch("feedback_bot.slack.commands.post_to_response_url", new_callable=AsyncMock)
async def test_missing_team_id_reads_nothing(mock_post: AsyncMock, services):
    await services.digests.save("T1", "C1", "Exports are confusing.", "raw", 5)

    await send_latest_summary("", "C1", RESPONSE_URL, services)

    assert mock_post.await_args.args[1] == NO_SUMMARY_TEXT


@patch("feedback_bot.slack.commands.post_to_response_url", new_callable=AsyncMock)
async def test_no_digest_says_so(mock_post: AsyncMock, services):
    await send_latest_summary("T1", "C1", RESPONSE_URL, services)
    assert mock_post.await_args.args[1] == NO_SUMMARY_TEXT


@patch("feedback_bot.slack.commands.post_to_response_url", new_callable=AsyncMock)
async def test_storage_failure_is_reported(mock_post: AsyncMock):
    services = MagicMock()
    services.digests.latest = AsyncMock(side_effect=StorageError("db down"))

    await send_latest_summary("T1", "C1", RESPONSE_URL, services)

    assert "try again later" in mock_post.await_args.args[1]


async def test_post_to_response_url_sends_in_channel_json():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, text="ok")

    transport = httpx.MockTransport(handler)
    real_client = httpx.AsyncClient

    with patch(
        "feedback_bot.slack.commands.httpx.AsyncClient",
        side_effect=lambda **kwargs: real_client(transport=transport, **kwargs),
    ):
        await post_to_response_url(RESPONSE_URL, "hello")

    assert json.loads(requests[0].content) == {"response_type": "in_channel", "text": "hello"}


async def test_post_to_response_url_swallows_http_errors():
    transport = httpx.MockTransport(lambda request: httpx.Response(500))
    real_client = httpx.AsyncClient

    with patch(
        "feedback_bot.slack.commands.httpx.AsyncClient",
        side_effect=lambda **kwargs: real_client(transport=transport, **kwargs),
    ):
        await post_to_response_url(RESPONSE_URL, "hello")


# -- board command --


async def test_board_command_links_team_database(services):
    await services.links.claim("T1", "1d1e3307-bb34-8085-adcd-e44c076bff1b")

    response = await handle_board_command({"team_id": "T1", "user_id": "U1"}, services)

    body = json.loads(response.body)
    assert body["response_type"] == "ephemeral"
    button = body["blocks"][1]["elements"][0]
    assert button["text"]["text"] == "Open Feedback Board"
    assert button["url"] == "https://www.notion.so/1d1e3307bb348085adcde44c076bff1b"


async def test_board_command_before_first_feedback(services):
    await services.links.claim("T_OTHER", "db-other")

    response = await handle_board_command({"team_id": "T1"}, services)

    body = json.loads(response.body)
    assert "does not exist yet" in body["text"]
    assert "db-other" not in response.body.decode()


async def test_board_command_storage_failure(services):
    services.links = MagicMock()
    services.links.get = AsyncMock(side_effect=StorageError("db down"))

    response = await handle_board_command({"team_id": "T1"}, services)

    assert "try again later" in json.loads(response.body)["text"]
