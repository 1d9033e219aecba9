"""Utility modules for Wilson Bot."""

from wilson_bot.utils.exceptions import (
    WilsonBotError,
    ConfigurationError,
    MessageLoadError,
    MessageNotFoundError,
    NoMessagesAvailableError,
    SendingDisabledError,
    PayloadValidationError,
    TemplateError,
    TemplateParseError,
    TemplateExecutionError,
    DeliveryError,
    TransportError,
    UnexpectedStatusError,
)
from wilson_bot.utils.logging import setup_logging, get_logger

__all__ = [
    "WilsonBotError",
    "ConfigurationError",
    "MessageLoadError",
    "MessageNotFoundError",
    "NoMessagesAvailableError",
    "SendingDisabledError",
    "PayloadValidationError",
    "TemplateError",
    "TemplateParseError",
    "TemplateExecutionError",
    "DeliveryError",
    "TransportError",
    "UnexpectedStatusError",
    "setup_logging",
    "get_logger",
]
