"""
Selection policy: which message gets delivered.

One MessageSelector is created at startup and shared by the API handlers
and the scheduler, so its random source is seeded exactly once.
"""

import random
import threading
from typing import Optional, Sequence

from wilson_bot.messages.models import Message
from wilson_bot.messages.store import MessageStore
from wilson_bot.utils.exceptions import NoMessagesAvailableError


class MessageSelector:
    """
    Picks messages uniformly at random from a single seeded generator.

    Attributes:
        rng: The generator; seeded from OS entropy unless one is injected
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self._lock = threading.Lock()

    def choose(self, messages: Sequence[Message]) -> Message:
        """
        Pick one message uniformly at random.

        Raises:
            NoMessagesAvailableError: If messages is empty
        """
        if not messages:
            raise NoMessagesAvailableError()

        with self._lock:
            index = self.rng.randrange(len(messages))
        return messages[index]

    def select(self, store: MessageStore, message_id: Optional[str] = None) -> Message:
        """
        Pick the message with message_id, or a random one when it is None.

        Raises:
            MessageNotFoundError: If message_id is given and unknown
            NoMessagesAvailableError: If the store is empty
        """
        if message_id is not None:
            return store.get_by_id(message_id)
        return self.choose(store.get_all())
