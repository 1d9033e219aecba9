"""
Custom exceptions for Wilson Bot.

This module defines a hierarchy of custom exceptions that provide clear
error handling and debugging information throughout the application.
All exceptions inherit from a base WilsonBotError class so the API layer
can map them onto HTTP statuses and the scheduler can log and skip them
with a single except clause.
"""

from typing import Optional, Any, Dict


class WilsonBotError(Exception):
    """
    Base exception class for all Wilson Bot errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information about the error
        original_error: The original exception that caused this error (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message
            context: Additional context information
            original_error: The original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        error_str = self.message
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            error_str += f" (Context: {context_str})"
        if self.original_error:
            error_str += f" (Caused by: {self.original_error})"
        return error_str


class ConfigurationError(WilsonBotError):
    """
    Raised when there's an error in configuration.

    This exception is raised when:
    - Configuration values are invalid
    - A webhook URL is missing while sending is enabled
    - The cron schedule string cannot be parsed
    """
    pass


class MessageLoadError(WilsonBotError):
    """
    Raised when the bundled message payload cannot be deserialized.

    This is a fatal startup condition: the process must not start
    serving with a broken message set.
    """
    pass


class MessageNotFoundError(WilsonBotError):
    """Raised when no message has the requested id."""

    def __init__(self, message_id: str) -> None:
        super().__init__("message not found", context={"message_id": message_id})
        self.message_id = message_id


class NoMessagesAvailableError(WilsonBotError):
    """Raised when a random pick is requested from an empty message set."""

    def __init__(self) -> None:
        super().__init__("no messages available")


class SendingDisabledError(WilsonBotError):
    """Raised when a delivery is requested while sending is turned off."""

    def __init__(self) -> None:
        super().__init__("sending messages is disabled")


class PayloadValidationError(WilsonBotError):
    """
    Raised when an inbound payload fails validation.

    Example:
        ```python
        try:
            broken = BrokenMessage(**body)
        except pydantic.ValidationError as e:
            raise PayloadValidationError(
                "invalid request",
                context={"errors": e.error_count()},
                original_error=e,
            )
        ```
    """
    pass


class TemplateError(WilsonBotError):
    """Base class for template loading and rendering failures."""
    pass


class TemplateParseError(TemplateError):
    """Raised at construction when a template cannot be parsed."""
    pass


class TemplateExecutionError(TemplateError):
    """Raised when a template references a field the data does not provide."""
    pass


class DeliveryError(WilsonBotError):
    """
    Raised when a webhook delivery fails.

    This exception is raised when:
    - The webhook host is unreachable or the request times out
    - The webhook answers with anything other than HTTP 200
    """
    pass


class TransportError(DeliveryError):
    """Raised on DNS, connection or timeout failures."""
    pass


class UnexpectedStatusError(DeliveryError):
    """Raised when the webhook answers with a status other than 200."""

    def __init__(
        self,
        status_code: int,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = dict(context or {})
        context["status_code"] = status_code
        super().__init__("unexpected status code", context=context)
        self.status_code = status_code
