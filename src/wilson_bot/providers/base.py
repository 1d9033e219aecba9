"""
Sender capability shared by the webhook providers.

The provider set is closed: GoogleChatSender and DiscordSender. Both are a
TemplateRenderer plus a WebhookClient and differ only in their URL, template
set and the fields they feed their templates.
"""

from typing import Protocol, runtime_checkable

from wilson_bot.messages.models import BrokenMessage, Message


@runtime_checkable
class MessageSender(Protocol):
    """Delivers messages to one chat webhook."""

    provider: str

    async def send_message(self, message: Message) -> None:
        """Render and POST a plain message."""
        ...

    async def send_broken_message(self, message: BrokenMessage) -> None:
        """Render and POST a broken-streak notification."""
        ...

    async def close(self) -> None:
        """Release HTTP resources."""
        ...
