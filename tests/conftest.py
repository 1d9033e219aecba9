"""Test configuration and utilities."""

import asyncio
import json
import random
from typing import Dict, List, Optional

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from wilson_bot.config import AppConfig, HTTPConfig, CronConfig
from wilson_bot.delivery import DeliveryService
from wilson_bot.messages.models import BrokenMessage, Message
from wilson_bot.messages.selection import MessageSelector
from wilson_bot.messages.store import MessageStore


class FakeWebhook:
    """Records every POST and answers with a configurable status."""

    def __init__(self) -> None:
        self.status = 200
        self.body = b"{}"
        self.requests: List[Dict] = []
        self.url = ""

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append({
            "body": await request.read(),
            "content_type": request.headers.get("Content-Type"),
        })
        return web.Response(status=self.status, body=self.body)


class StrictJSONWebhook(FakeWebhook):
    """Answers 400 to bodies that are not valid JSON, like the real providers."""

    async def handle(self, request: web.Request) -> web.Response:
        body = await request.read()
        self.requests.append({"body": body, "content_type": request.headers.get("Content-Type")})
        try:
            json.loads(body)
        except ValueError:
            return web.Response(status=400, text='{"error": "invalid JSON payload"}')
        return web.Response(status=self.status, body=self.body)


class RecordingSender:
    """In-memory sender that records deliveries instead of POSTing them."""

    provider = "fake"

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.sent: List[Message] = []
        self.broken: List[BrokenMessage] = []
        self.closed = False

    async def send_message(self, message: Message) -> None:
        if self.error:
            raise self.error
        self.sent.append(message)

    async def send_broken_message(self, message: BrokenMessage) -> None:
        if self.error:
            raise self.error
        self.broken.append(message)

    async def close(self) -> None:
        self.closed = True


class BlockingSender(RecordingSender):
    """Sender that holds every delivery until release() is called."""

    def __init__(self) -> None:
        super().__init__()
        self.started = asyncio.Event()
        self._release = asyncio.Event()
        self.calls = 0

    def release(self) -> None:
        self._release.set()

    async def send_message(self, message: Message) -> None:
        self.calls += 1
        self.started.set()
        await self._release.wait()
        self.sent.append(message)


async def _serve(webhook: FakeWebhook):
    app = web.Application()
    app.router.add_post("/hook", webhook.handle)
    server = TestServer(app)
    await server.start_server()
    webhook.url = str(server.make_url("/hook"))
    return server


@pytest.fixture
def sample_messages() -> List[Message]:
    return [
        Message(id="1", text="Hello", sentiment="positive", tags=["greeting"]),
        Message(id="2", text="World", sentiment="neutral", tags=["planet"]),
    ]


@pytest.fixture
def store(sample_messages) -> MessageStore:
    return MessageStore(sample_messages)


@pytest.fixture
def selector() -> MessageSelector:
    return MessageSelector(random.Random(1234))


@pytest.fixture
def broken_message() -> BrokenMessage:
    return BrokenMessage(
        id="b-1",
        name="Alice",
        motive="pushed to main on a Friday",
        time_since_broken="12 days",
        day_of_breakage="2024-05-10",
    )


@pytest.fixture
def recording_sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def make_delivery(store, selector):
    """Factory for a DeliveryService over the sample store."""

    def _make(sender, sending_enabled: bool = True, message_store: Optional[MessageStore] = None):
        return DeliveryService(
            store=message_store if message_store is not None else store,
            selector=selector,
            sender=sender,
            sending_enabled=sending_enabled,
        )

    return _make


@pytest.fixture
async def fake_webhook():
    """A local webhook endpoint recording every POST."""
    webhook = FakeWebhook()
    server = await _serve(webhook)
    yield webhook
    await server.close()


@pytest.fixture
async def strict_webhook():
    """A local webhook endpoint rejecting invalid JSON with 400."""
    webhook = StrictJSONWebhook()
    server = await _serve(webhook)
    yield webhook
    await server.close()


@pytest.fixture
def http_config() -> HTTPConfig:
    return HTTPConfig(host="127.0.0.1", port=8080, prefix="", enable_send=True)


@pytest.fixture
def cron_config() -> CronConfig:
    return CronConfig(enabled=True, cron_string="*/5 * * * *", timezone="UTC", shutdown_timeout=5.0)


@pytest.fixture
def test_config() -> AppConfig:
    """Create a test configuration."""
    return AppConfig(
        http={"host": "127.0.0.1", "port": 8080, "prefix": "", "enable_send": True},
        cron={"enabled": False},
        google_chat={"webhook_url": "http://127.0.0.1:1/hook"},
        logging={"level": "DEBUG", "format": "text"},
    )
