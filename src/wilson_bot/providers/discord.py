"""Discord channel webhook sender (embed payloads)."""

from typing import Optional

from wilson_bot.messages.models import BrokenMessage, Message
from wilson_bot.providers.templates import TemplateKind, TemplateRenderer, json_escape
from wilson_bot.providers.webhook import WebhookClient
from wilson_bot.utils.logging import generate_correlation_id, get_logger


class DiscordSender:
    """
    Sends messages as embeds to a Discord channel webhook.

    Discord answers a plain webhook POST with 204 unless ``?wait=true`` is
    part of the URL, and only 200 counts as delivered, so configure the
    webhook URL with ``?wait=true``.

    Values are escaped for JSON strings, so quotes in free text are safe.
    """

    provider = "discord"

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        renderer: Optional[TemplateRenderer] = None,
    ) -> None:
        self.client = WebhookClient(webhook_url, timeout=timeout, service=self.provider)
        self.renderer = renderer or TemplateRenderer.for_provider(self.provider, escape=json_escape)
        self.logger = get_logger(__name__)

    async def send_message(self, message: Message) -> None:
        correlation_id = generate_correlation_id()
        payload = self.renderer.render(TemplateKind.MESSAGE, {"message": message.text})
        await self.client.post(payload, correlation_id=correlation_id)
        self.logger.info("Message sent to Discord",
                         message_id=message.id, correlation_id=correlation_id)

    async def send_broken_message(self, message: BrokenMessage) -> None:
        # The embed does not show the id
        data = {
            "name": message.name,
            "motive": message.motive,
            "time_since_broken": message.time_since_broken,
            "day_of_breakage": message.day_of_breakage,
        }
        correlation_id = generate_correlation_id()
        payload = self.renderer.render(TemplateKind.BROKEN, data)
        await self.client.post(payload, correlation_id=correlation_id)
        self.logger.info("Broken message sent to Discord",
                         broken_id=message.id, correlation_id=correlation_id)

    async def close(self) -> None:
        await self.client.close()
