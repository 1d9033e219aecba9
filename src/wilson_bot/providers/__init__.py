"""Webhook providers: payload templates, HTTP delivery and sender variants."""

from wilson_bot.config import AppConfig
from wilson_bot.providers.base import MessageSender
from wilson_bot.providers.discord import DiscordSender
from wilson_bot.providers.google_chat import GoogleChatSender
from wilson_bot.providers.templates import TemplateKind, TemplateRenderer
from wilson_bot.providers.webhook import WebhookClient
from wilson_bot.utils.exceptions import ConfigurationError


def create_sender(config: AppConfig) -> MessageSender:
    """
    Build the sender for the configured provider.

    Raises:
        ConfigurationError: If the provider's webhook URL is empty while
            the API or the scheduler may send
        TemplateParseError: If the bundled templates are invalid
    """
    url = config.webhook_url
    if not url and (config.http.enable_send or config.cron.enabled):
        raise ConfigurationError(
            "Webhook URL is required when sending is enabled",
            context={"provider": config.delivery.provider},
        )

    if config.delivery.provider == "discord":
        return DiscordSender(url, timeout=config.delivery.timeout)
    return GoogleChatSender(url, timeout=config.delivery.timeout)


__all__ = [
    "MessageSender",
    "DiscordSender",
    "GoogleChatSender",
    "TemplateKind",
    "TemplateRenderer",
    "WebhookClient",
    "create_sender",
]
