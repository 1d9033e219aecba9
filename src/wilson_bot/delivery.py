"""
Delivery orchestration.

DeliveryService composes the message store, the selector and a sender.
The HTTP handlers and the scheduler both go through it. API-triggered
deliveries are gated by ``http.enable_send``; the scheduler's cycle is
gated only by ``cron.enabled`` and calls deliver directly.
"""

from typing import Optional, Tuple

from wilson_bot.messages.models import BrokenMessage, Message
from wilson_bot.messages.selection import MessageSelector
from wilson_bot.messages.store import MessageStore
from wilson_bot.providers.base import MessageSender
from wilson_bot.utils.exceptions import SendingDisabledError
from wilson_bot.utils.logging import get_logger


class DeliveryService:
    """
    Selects messages and hands them to the sender.

    Attributes:
        store: The loaded message set
        selector: Shared random selection policy
        sender: Provider sender
        sending_enabled: Whether API-triggered deliveries are allowed
    """

    def __init__(
        self,
        store: MessageStore,
        selector: MessageSelector,
        sender: MessageSender,
        sending_enabled: bool = False,
    ) -> None:
        self.store = store
        self.selector = selector
        self.sender = sender
        self.sending_enabled = sending_enabled
        self.logger = get_logger(__name__)

    def list_messages(self) -> Tuple[Message, ...]:
        return self.store.get_all()

    def get_message(self, message_id: str) -> Message:
        return self.store.get_by_id(message_id)

    def _ensure_enabled(self) -> None:
        if not self.sending_enabled:
            raise SendingDisabledError()

    async def deliver(self, message_id: Optional[str] = None) -> Message:
        """
        Run one delivery cycle without checking the sending gate.

        Args:
            message_id: Message to send; a random one when None

        Returns:
            The message that was delivered

        Raises:
            MessageNotFoundError: If message_id is unknown
            NoMessagesAvailableError: If the store is empty
            TemplateError: If the payload cannot be rendered
            DeliveryError: If the webhook call fails
        """
        message = self.selector.select(self.store, message_id)
        await self.sender.send_message(message)
        self.logger.info("Message delivered",
                         message_id=message.id, provider=self.sender.provider)
        return message

    async def send_random(self) -> Message:
        """Deliver a random message if sending is enabled."""
        self._ensure_enabled()
        return await self.deliver()

    async def send_by_id(self, message_id: str) -> Message:
        """Deliver one message if sending is enabled."""
        self._ensure_enabled()
        return await self.deliver(message_id)

    async def send_broken(self, broken: BrokenMessage) -> None:
        """Deliver a caller-supplied broken-streak notification if sending is enabled."""
        self._ensure_enabled()
        await self.sender.send_broken_message(broken)
        self.logger.info("Broken message delivered",
                         broken_id=broken.id, provider=self.sender.provider)
