"""End-to-end tests for the HTTP API."""

import json

import pytest
from aiohttp.test_utils import TestClient, TestServer

from conftest import RecordingSender
from wilson_bot.api.server import APIServer
from wilson_bot.config import HTTPConfig
from wilson_bot.messages.store import MessageStore
from wilson_bot.providers import GoogleChatSender
from wilson_bot.utils.exceptions import TemplateExecutionError, TransportError


BROKEN_BODY = {
    "id": "b-1",
    "name": "Alice",
    "motive": "pushed to main on a Friday",
    "time_since_broken": "12 days",
    "day_of_breakage": "2024-05-10",
}


@pytest.fixture
async def make_client(http_config):
    """Factory starting a TestClient around an APIServer."""
    clients = []

    async def _make(delivery, config: HTTPConfig = None):
        server = APIServer(config or http_config, delivery)
        client = TestClient(TestServer(server.create_app()))
        await client.start_server()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.close()


async def test_healthz(make_client, make_delivery, recording_sender):
    client = await make_client(make_delivery(recording_sender))

    response = await client.get("/healthz")

    assert response.status == 200
    assert await response.json() == {"status": "ok"}


async def test_routes_live_under_prefix(make_client, make_delivery, recording_sender):
    config = HTTPConfig(prefix="/api", enable_send=True)
    client = await make_client(make_delivery(recording_sender), config)

    assert (await client.get("/api/healthz")).status == 200
    assert (await client.get("/api/messages/1")).status == 200
    assert (await client.get("/healthz")).status == 404


async def test_list_messages(make_client, make_delivery, recording_sender):
    client = await make_client(make_delivery(recording_sender))

    response = await client.get("/messages/")

    assert response.status == 200
    body = await response.json()
    assert [m["id"] for m in body] == ["1", "2"]
    assert body[0] == {"id": "1", "text": "Hello", "sentiment": "positive", "tags": ["greeting"]}


async def test_get_message_by_id(make_client, make_delivery, recording_sender):
    client = await make_client(make_delivery(recording_sender))

    response = await client.get("/messages/2")

    assert response.status == 200
    assert (await response.json())["text"] == "World"


async def test_get_unknown_message_is_404(make_client, make_delivery, recording_sender):
    client = await make_client(make_delivery(recording_sender))

    response = await client.get("/messages/999")

    assert response.status == 404
    assert await response.json() == {"error": "message not found"}


async def test_lookups_work_while_sending_disabled(make_client, make_delivery, recording_sender):
    client = await make_client(make_delivery(recording_sender, sending_enabled=False))

    assert (await client.get("/messages/")).status == 200
    assert (await client.get("/messages/1")).status == 200


async def test_post_random_message_end_to_end(make_client, make_delivery, fake_webhook):
    sender = GoogleChatSender(fake_webhook.url)
    client = await make_client(make_delivery(sender))

    try:
        response = await client.post("/messages/")
    finally:
        await sender.close()

    assert response.status == 200
    assert await response.json() == {"message": "message sent"}

    assert len(fake_webhook.requests) == 1
    card = json.loads(fake_webhook.requests[0]["body"])["cardsV2"][0]
    text = card["card"]["sections"][0]["widgets"][0]["textParagraph"]["text"]
    assert text in {"Hello", "World"}


async def test_post_message_with_binary_upstream_reply(make_client, make_delivery, fake_webhook):
    fake_webhook.body = b"\xff\xfe\xfa ok"
    sender = GoogleChatSender(fake_webhook.url)
    client = await make_client(make_delivery(sender))

    try:
        response = await client.post("/messages/")
    finally:
        await sender.close()

    assert response.status == 200
    assert await response.json() == {"message": "message sent"}
    assert len(fake_webhook.requests) == 1


async def test_post_message_by_id_end_to_end(make_client, make_delivery, fake_webhook):
    sender = GoogleChatSender(fake_webhook.url)
    client = await make_client(make_delivery(sender))

    try:
        response = await client.post("/messages/2")
    finally:
        await sender.close()

    assert response.status == 200
    assert b"World" in fake_webhook.requests[0]["body"]


@pytest.mark.parametrize("method, path, body", [
    ("POST", "/messages/", None),
    ("POST", "/messages/1", None),
    ("POST", "/webhook/broken", BROKEN_BODY),
])
async def test_sending_disabled_is_403(make_client, make_delivery, recording_sender, method, path, body):
    client = await make_client(make_delivery(recording_sender, sending_enabled=False))

    response = await client.request(method, path, json=body)

    assert response.status == 403
    assert await response.json() == {"error": "sending messages is disabled"}
    assert recording_sender.sent == []
    assert recording_sender.broken == []


async def test_post_random_empty_store_is_404(make_client, make_delivery, recording_sender):
    delivery = make_delivery(recording_sender, message_store=MessageStore([]))
    client = await make_client(delivery)

    response = await client.post("/messages/")

    assert response.status == 404
    assert await response.json() == {"error": "no messages available"}


async def test_post_unknown_id_is_404(make_client, make_delivery, recording_sender):
    client = await make_client(make_delivery(recording_sender))

    response = await client.post("/messages/999")

    assert response.status == 404
    assert recording_sender.sent == []


async def test_upstream_rejection_is_500(make_client, make_delivery, fake_webhook):
    fake_webhook.status = 201
    sender = GoogleChatSender(fake_webhook.url)
    client = await make_client(make_delivery(sender))

    try:
        response = await client.post("/messages/")
    finally:
        await sender.close()

    assert response.status == 500
    assert await response.json() == {"error": "unexpected status code"}


@pytest.mark.parametrize("error", [
    TransportError("Failed to reach webhook"),
    TemplateExecutionError("Template references an undefined field"),
])
async def test_send_failures_are_500(make_client, make_delivery, error):
    client = await make_client(make_delivery(RecordingSender(error=error)))

    response = await client.post("/messages/1")

    assert response.status == 500
    assert await response.json() == {"error": error.message}


async def test_post_broken_message(make_client, make_delivery, recording_sender):
    client = await make_client(make_delivery(recording_sender))

    response = await client.post("/webhook/broken", json=BROKEN_BODY)

    assert response.status == 200
    assert await response.json() == {"message": "broken message sent"}
    assert recording_sender.broken[0].name == "Alice"


@pytest.mark.parametrize("data", [
    "not json",
    "[1, 2, 3]",
    json.dumps({"name": "Alice"}),
    json.dumps(dict(BROKEN_BODY, motive=42)),
])
async def test_malformed_broken_message_is_400(make_client, make_delivery, recording_sender, data):
    client = await make_client(make_delivery(recording_sender))

    response = await client.post(
        "/webhook/broken",
        data=data,
        headers={"Content-Type": "application/json"},
    )

    assert response.status == 400
    assert await response.json() == {"error": "invalid request"}
    assert recording_sender.broken == []


async def test_broken_message_upstream_failure_is_500(make_client, make_delivery):
    client = await make_client(make_delivery(RecordingSender(error=TransportError("Failed to reach webhook"))))

    response = await client.post("/webhook/broken", json=BROKEN_BODY)

    assert response.status == 500
