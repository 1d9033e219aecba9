"""
Logging configuration and utilities for Wilson Bot.

This module provides centralized logging setup with support for both
structured JSON logging (for production) and human-readable text logging
(for development). It integrates with structlog for structured logging
and rich for console output.

Helpers for the outbound webhook path live here too:
- HTTP request/response logging with sensitive URL parts masked
- Correlation IDs tying a delivery cycle's log lines together
- Operation timing
"""

import json
import logging
import sys
import time
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Optional, TYPE_CHECKING
from urllib.parse import urlparse

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from wilson_bot.config import LoggingConfig


def setup_logging(config: "LoggingConfig") -> None:
    """
    Set up application logging based on configuration.

    Configures the standard library root logger (used by aiohttp and
    APScheduler) and structlog so both produce consistent output.

    Args:
        config: Logging configuration settings

    Example:
        ```python
        from wilson_bot.config import load_config
        from wilson_bot.utils.logging import setup_logging

        app_config = load_config()
        setup_logging(app_config.logging)
        ```
    """
    # Clear any existing handlers
    logging.getLogger().handlers.clear()
    logging.getLogger().setLevel(config.level)

    if config.format == "json":
        _setup_json_logging(config)
    else:
        _setup_rich_logging(config)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                parameters=[structlog.processors.CallsiteParameter.FILENAME,
                            structlog.processors.CallsiteParameter.LINENO]
            ),
            _structlog_processor if config.format == "json" else _rich_processor,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, config.level)
        ),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    configure_external_loggers()


def _setup_json_logging(config: "LoggingConfig") -> None:
    """Set up structured JSON logging for production."""
    formatter = logging.Formatter(
        fmt='{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
            '"logger": "%(name)s", "message": "%(message)s"}',
        datefmt="%Y-%m-%dT%H:%M:%SZ"
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(config.level)

    logging.getLogger().addHandler(handler)


def _setup_rich_logging(config: "LoggingConfig") -> None:
    """Set up rich text logging for development."""
    console = Console(force_terminal=True, width=120)

    handler = RichHandler(
        console=console,
        show_time=True,
        show_level=True,
        show_path=True,
        markup=False,
        rich_tracebacks=True,
    )

    handler.setLevel(config.level)
    logging.getLogger().addHandler(handler)


def _structlog_processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> str:
    """Process structlog events for JSON output."""
    return json.dumps(event_dict, default=str)


def _rich_processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> str:
    """Process structlog events for rich text output."""
    message = event_dict.pop("event", "")
    level = event_dict.get("level", "info").upper()

    context_items = [
        f"{key}={value}"
        for key, value in event_dict.items()
        if key not in {"timestamp", "level", "filename", "lineno"}
    ]
    if context_items:
        message += f" ({', '.join(context_items)})"

    return f"{event_dict.get('timestamp', '')} {level:<8} {message}"


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Optional logger name (defaults to calling module)

    Returns:
        Configured structlog BoundLogger instance

    Example:
        ```python
        logger = get_logger(__name__)
        logger.info("Message sent", message_id="7", provider="discord")
        ```
    """
    return structlog.get_logger(name)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for tracking a delivery."""
    return str(uuid.uuid4())[:8]


def get_service_logger(service_name: str) -> structlog.BoundLogger:
    """
    Get a service-specific logger with consistent naming.

    Args:
        service_name: Name of the service (e.g. 'google_chat', 'discord')

    Returns:
        Logger bound with service context
    """
    logger = get_logger(f"service.{service_name}")
    return logger.bind(service=service_name)


def mask_url(url: str) -> str:
    """
    Hide the secret part of a webhook URL.

    Webhook URLs carry their credentials in the path and query string
    (Discord's token, Google Chat's key and token), so only the host and
    the first path segment are kept.
    """
    parsed = urlparse(url)
    first_segment = parsed.path.strip("/").split("/", 1)[0]
    masked = f"{parsed.scheme}://{parsed.netloc}"
    if first_segment:
        masked += f"/{first_segment}/***"
    return masked


def log_http_request(
    method: str,
    url: str,
    body_size: Optional[int] = None,
    service: str = "unknown",
    correlation_id: Optional[str] = None
) -> None:
    """
    Log an outbound HTTP request.

    Args:
        method: HTTP method (GET, POST, etc.)
        url: Request URL (logged masked)
        body_size: Request body size in bytes
        service: Service name (google_chat, discord)
        correlation_id: Optional correlation ID for request tracking
    """
    logger = get_service_logger(service)

    logger.info(
        "HTTP request initiated",
        method=method,
        url=mask_url(url),
        body_size_bytes=body_size,
        correlation_id=correlation_id or "none"
    )


def log_http_response(
    status_code: int,
    response_time_ms: float,
    response_size: Optional[int] = None,
    error: Optional[str] = None,
    service: str = "unknown",
    correlation_id: Optional[str] = None
) -> None:
    """
    Log an HTTP response, or a failed request when status_code is 0.

    Args:
        status_code: HTTP status code (0 when no response was received)
        response_time_ms: Response time in milliseconds
        response_size: Response size in bytes
        error: Error message if request failed
        service: Service name (google_chat, discord)
        correlation_id: Optional correlation ID for request tracking
    """
    logger = get_service_logger(service)

    log_level = "info"
    if error or status_code >= 400:
        log_level = "error" if status_code >= 500 or status_code == 0 else "warning"

    log_data: Dict[str, Any] = {
        "status_code": status_code,
        "response_time_ms": round(response_time_ms, 2),
        "correlation_id": correlation_id or "none"
    }

    if response_size is not None:
        log_data["response_size_bytes"] = response_size

    if error:
        log_data["error"] = error

    message = "HTTP request failed" if error else "HTTP response received"

    getattr(logger, log_level)(message, **log_data)


@contextmanager
def log_operation_timing(operation_name: str, **context):
    """
    Context manager to log operation timing.

    Args:
        operation_name: Name of the operation being timed
        **context: Additional context to include in logs
    """
    logger = get_logger()
    correlation_id = context.pop('correlation_id', generate_correlation_id())

    start_time = time.time()
    logger.info(
        f"Starting {operation_name}",
        operation=operation_name,
        correlation_id=correlation_id,
        **context
    )

    try:
        yield correlation_id
        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Completed {operation_name}",
            operation=operation_name,
            duration_ms=round(duration_ms, 2),
            correlation_id=correlation_id,
            status="success",
            **context
        )
    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"Failed {operation_name}",
            operation=operation_name,
            duration_ms=round(duration_ms, 2),
            correlation_id=correlation_id,
            status="error",
            error_type=type(e).__name__,
            error_message=str(e),
            **context
        )
        raise


def configure_external_loggers():
    """
    Configure logging levels for external libraries to reduce noise.
    """
    logging.getLogger('aiohttp.access').setLevel(logging.INFO)
    logging.getLogger('aiohttp.client').setLevel(logging.WARNING)
    logging.getLogger('aiohttp.server').setLevel(logging.WARNING)

    # APScheduler logs every job submission at INFO
    logging.getLogger('apscheduler').setLevel(logging.WARNING)
    logging.getLogger('apscheduler.executors').setLevel(logging.WARNING)
