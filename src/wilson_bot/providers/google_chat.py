"""Google Chat incoming webhook sender (card v2 payloads)."""

from typing import Optional

from wilson_bot.messages.models import BrokenMessage, Message
from wilson_bot.providers.templates import TemplateKind, TemplateRenderer
from wilson_bot.providers.webhook import WebhookClient
from wilson_bot.utils.logging import generate_correlation_id, get_logger


class GoogleChatSender:
    """
    Sends messages as cards to a Google Chat space.

    Attributes:
        client: HTTP client bound to the space's webhook URL
        renderer: The bundled Google Chat card templates
    """

    provider = "google_chat"

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        renderer: Optional[TemplateRenderer] = None,
    ) -> None:
        self.client = WebhookClient(webhook_url, timeout=timeout, service=self.provider)
        self.renderer = renderer or TemplateRenderer.for_provider(self.provider)
        self.logger = get_logger(__name__)

    async def send_message(self, message: Message) -> None:
        data = {
            "id": message.id,
            "message": message.text,
            "sentiment": message.sentiment,
            "tags": ", ".join(message.tags),
        }
        correlation_id = generate_correlation_id()
        payload = self.renderer.render(TemplateKind.MESSAGE, data)
        await self.client.post(payload, correlation_id=correlation_id)
        self.logger.info("Message sent to Google Chat",
                         message_id=message.id, correlation_id=correlation_id)

    async def send_broken_message(self, message: BrokenMessage) -> None:
        data = {
            "id": message.id,
            "name": message.name,
            "motive": message.motive,
            "time_since_broken": message.time_since_broken,
            "day_of_breakage": message.day_of_breakage,
        }
        correlation_id = generate_correlation_id()
        payload = self.renderer.render(TemplateKind.BROKEN, data)
        await self.client.post(payload, correlation_id=correlation_id)
        self.logger.info("Broken message sent to Google Chat",
                         broken_id=message.id, correlation_id=correlation_id)

    async def close(self) -> None:
        await self.client.close()
