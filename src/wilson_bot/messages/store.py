"""
In-memory message store.

The message set is deserialized once at startup from a JSON array and then
only read. Lookups by id go through a dict built at construction time.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from pydantic import ValidationError

from wilson_bot.messages.models import Message
from wilson_bot.utils.exceptions import MessageLoadError, MessageNotFoundError
from wilson_bot.utils.logging import get_logger


BUNDLED_MESSAGES_PATH = Path(__file__).parent / "data" / "messages.json"


def load_messages(raw: Union[str, bytes]) -> List[Message]:
    """
    Deserialize a JSON array of messages.

    Args:
        raw: JSON text holding an array of message objects

    Returns:
        The messages in payload order

    Raises:
        MessageLoadError: If the payload is not a JSON array of valid messages
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MessageLoadError(
            "Failed to deserialize messages",
            original_error=e,
        )

    if not isinstance(data, list):
        raise MessageLoadError(
            "Messages payload must be a JSON array",
            context={"type": type(data).__name__},
        )

    messages = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise MessageLoadError(
                "Message entry must be a JSON object",
                context={"index": index},
            )
        try:
            messages.append(Message(**item))
        except ValidationError as e:
            raise MessageLoadError(
                "Invalid message entry",
                context={"index": index, "errors": e.error_count()},
                original_error=e,
            )

    return messages


class MessageStore:
    """
    Read-only collection of messages.

    Safe for concurrent readers: nothing is mutated after __init__.
    """

    def __init__(self, messages: Iterable[Message]) -> None:
        self._messages: Tuple[Message, ...] = tuple(messages)
        self._by_id: Dict[str, Message] = {}

        for message in self._messages:
            if message.id in self._by_id:
                raise MessageLoadError(
                    "Duplicate message id",
                    context={"message_id": message.id},
                )
            self._by_id[message.id] = message

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]] = None) -> "MessageStore":
        """
        Build a store from a JSON file, the bundled set by default.

        Raises:
            MessageLoadError: If the file is missing or malformed
        """
        source = Path(path) if path else BUNDLED_MESSAGES_PATH
        logger = get_logger(__name__)

        try:
            raw = source.read_bytes()
        except OSError as e:
            raise MessageLoadError(
                "Failed to read messages file",
                context={"path": str(source)},
                original_error=e,
            )

        store = cls(load_messages(raw))
        logger.info("Messages loaded", path=str(source), count=len(store))
        return store

    def __len__(self) -> int:
        return len(self._messages)

    def get_all(self) -> Tuple[Message, ...]:
        """Return every message in load order."""
        return self._messages

    def get_by_id(self, message_id: str) -> Message:
        """
        Look up one message.

        Raises:
            MessageNotFoundError: If no message has that id
        """
        try:
            return self._by_id[message_id]
        except KeyError:
            raise MessageNotFoundError(message_id)
