"""Message set: models, storage and selection."""

from wilson_bot.messages.models import BrokenMessage, Message
from wilson_bot.messages.selection import MessageSelector
from wilson_bot.messages.store import MessageStore, load_messages

__all__ = [
    "BrokenMessage",
    "Message",
    "MessageSelector",
    "MessageStore",
    "load_messages",
]
