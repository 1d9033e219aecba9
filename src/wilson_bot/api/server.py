"""
HTTP API server.

This module exposes the message set and the delivery operations over a
small aiohttp application. Every route lives under the configured prefix.
Errors are answered as ``{"error": "<message>"}`` with the status taken
from ERROR_STATUSES.
"""

import json
from typing import Dict, Optional, Type

from aiohttp import web
from aiohttp.web import Request, Response
from pydantic import ValidationError

from wilson_bot.config import HTTPConfig
from wilson_bot.delivery import DeliveryService
from wilson_bot.messages.models import BrokenMessage
from wilson_bot.utils.exceptions import (
    DeliveryError,
    MessageNotFoundError,
    NoMessagesAvailableError,
    PayloadValidationError,
    SendingDisabledError,
    TemplateError,
    WilsonBotError,
)
from wilson_bot.utils.logging import get_logger


ERROR_STATUSES: Dict[Type[WilsonBotError], int] = {
    MessageNotFoundError: 404,
    NoMessagesAvailableError: 404,
    SendingDisabledError: 403,
    PayloadValidationError: 400,
    DeliveryError: 500,
    TemplateError: 500,
}


def error_status(error: WilsonBotError) -> int:
    """HTTP status for an application error; 500 when unmapped."""
    for error_type, status in ERROR_STATUSES.items():
        if isinstance(error, error_type):
            return status
    return 500


def error_response(error: WilsonBotError) -> Response:
    return web.json_response({"error": error.message}, status=error_status(error))


class APIServer:
    """
    HTTP API for listing messages and triggering deliveries.

    Routes (relative to the configured prefix):
    - GET  /healthz
    - GET  /messages/          list every message
    - GET  /messages/{id}      one message
    - POST /messages/          deliver a random message
    - POST /messages/{id}      deliver one message
    - POST /webhook/broken     deliver a broken-streak notification
    """

    def __init__(self, config: HTTPConfig, delivery: DeliveryService) -> None:
        """
        Initialize the API server.

        Args:
            config: HTTP settings (bind address, prefix, drain timeout)
            delivery: Delivery service backing every route
        """
        self.config = config
        self.delivery = delivery
        self.logger = get_logger(__name__)

        self.app: Optional[web.Application] = None
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

    def create_app(self) -> web.Application:
        """Build the aiohttp application with every route registered."""
        app = web.Application()
        prefix = self.config.prefix

        app.router.add_get(f"{prefix}/healthz", self._health_check)
        app.router.add_get(f"{prefix}/messages/", self._get_all_messages)
        app.router.add_get(f"{prefix}/messages/{{id}}", self._get_message_by_id)
        app.router.add_post(f"{prefix}/messages/", self._send_message)
        app.router.add_post(f"{prefix}/messages/{{id}}", self._send_message_by_id)
        app.router.add_post(f"{prefix}/webhook/broken", self._send_broken_message)

        return app

    async def start(self) -> None:
        """Start serving on the configured host and port."""
        self.app = self.create_app()

        # A client disconnect cancels the handler and its outbound webhook call
        self.runner = web.AppRunner(
            self.app,
            handler_cancellation=True,
            shutdown_timeout=self.config.shutdown_timeout,
        )
        await self.runner.setup()

        self.site = web.TCPSite(self.runner, self.config.host, self.config.port)
        await self.site.start()

        self.logger.info("API server started",
                         host=self.config.host, port=self.config.port,
                         prefix=self.config.prefix or "/",
                         sending_enabled=self.delivery.sending_enabled)

    async def stop(self) -> None:
        """Stop accepting requests and drain in-flight ones."""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            self.site = None
        self.logger.info("API server stopped")

    async def _health_check(self, request: Request) -> Response:
        return web.json_response({"status": "ok"})

    async def _get_all_messages(self, request: Request) -> Response:
        try:
            messages = self.delivery.list_messages()
        except WilsonBotError as e:
            self.logger.error("Failed to list messages", error=str(e))
            return web.json_response({"error": e.message}, status=500)

        return web.json_response([m.model_dump(mode="json") for m in messages])

    async def _get_message_by_id(self, request: Request) -> Response:
        message_id = request.match_info["id"]
        try:
            message = self.delivery.get_message(message_id)
        except WilsonBotError as e:
            return error_response(e)

        return web.json_response(message.model_dump(mode="json"))

    async def _send_message(self, request: Request) -> Response:
        try:
            message = await self.delivery.send_random()
        except WilsonBotError as e:
            self._log_send_failure("Failed to send random message", e)
            return error_response(e)

        self.logger.info("Random message sent via API", message_id=message.id)
        return web.json_response({"message": "message sent"})

    async def _send_message_by_id(self, request: Request) -> Response:
        message_id = request.match_info["id"]
        try:
            await self.delivery.send_by_id(message_id)
        except WilsonBotError as e:
            self._log_send_failure("Failed to send message", e, message_id=message_id)
            return error_response(e)

        self.logger.info("Message sent via API", message_id=message_id)
        return web.json_response({"message": "message sent"})

    async def _send_broken_message(self, request: Request) -> Response:
        if not self.delivery.sending_enabled:
            return error_response(SendingDisabledError())

        try:
            broken = await self._parse_broken_message(request)
            await self.delivery.send_broken(broken)
        except WilsonBotError as e:
            self._log_send_failure("Failed to send broken message", e)
            return error_response(e)

        return web.json_response({"message": "broken message sent"})

    async def _parse_broken_message(self, request: Request) -> BrokenMessage:
        """
        Raises:
            PayloadValidationError: If the body is not a valid BrokenMessage
        """
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PayloadValidationError("invalid request", original_error=e)

        if not isinstance(body, dict):
            raise PayloadValidationError("invalid request",
                                         context={"type": type(body).__name__})

        try:
            return BrokenMessage(**body)
        except ValidationError as e:
            raise PayloadValidationError(
                "invalid request",
                context={"errors": e.error_count()},
                original_error=e,
            )

    def _log_send_failure(self, event: str, error: WilsonBotError, **context) -> None:
        status = error_status(error)
        log = self.logger.error if status >= 500 else self.logger.warning
        log(event, status=status, error_type=type(error).__name__, error=str(error), **context)
