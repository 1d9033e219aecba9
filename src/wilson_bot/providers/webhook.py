"""
Webhook HTTP client shared by every provider.

This module delivers an already rendered payload to one fixed URL. A call
is a single POST: there are no retries, backoff or circuit breaking. Only
HTTP 200 counts as success; every other status, 201 and 204 included, is
reported as UnexpectedStatusError.
"""

import asyncio
import time
from typing import Optional

import aiohttp

from wilson_bot.utils.exceptions import TransportError, UnexpectedStatusError
from wilson_bot.utils.logging import (
    get_logger,
    log_http_request,
    log_http_response,
    generate_correlation_id,
    mask_url,
)


class WebhookClient:
    """
    HTTP client for one webhook URL.

    The underlying aiohttp session is created on first use and reused by
    concurrent deliveries, so connections are pooled.

    Attributes:
        url: Webhook URL payloads are POSTed to
        timeout: Total timeout in seconds for one call
        service: Service name used in log lines
    """

    def __init__(self, url: str, timeout: float = 10.0, service: str = "webhook") -> None:
        self.url = url
        self.timeout = timeout
        self.service = service
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None
        self._closed = False

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """
        Ensure that we have an active HTTP session.

        Raises:
            TransportError: If the client has been closed
        """
        if self._closed:
            raise TransportError("Webhook client has been closed", context={"service": self.service})

        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                headers={"User-Agent": "Wilson-Bot/0.1.0"},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                raise_for_status=False,
            )
            self.logger.debug("Created new HTTP session for webhook client", service=self.service)

        return self.session

    async def post(self, payload: bytes, correlation_id: Optional[str] = None) -> None:
        """
        POST a rendered payload to the webhook.

        Args:
            payload: Rendered JSON body, sent as is
            correlation_id: Optional id tying the log lines of one delivery

        Raises:
            UnexpectedStatusError: If the webhook answers with anything but 200
            TransportError: On DNS, connection or timeout failures
        """
        correlation_id = correlation_id or generate_correlation_id()

        log_http_request(
            method="POST",
            url=self.url,
            body_size=len(payload),
            service=self.service,
            correlation_id=correlation_id,
        )

        start_time = time.time()
        session = await self._ensure_session()

        try:
            async with session.post(
                self.url,
                data=payload,
                headers={"Content-Type": "application/json"},
            ) as response:
                raw = await response.read()
                response_time_ms = (time.time() - start_time) * 1000

                if response.status != 200:
                    log_http_response(
                        status_code=response.status,
                        response_time_ms=response_time_ms,
                        response_size=len(raw),
                        error=f"HTTP {response.status}",
                        service=self.service,
                        correlation_id=correlation_id,
                    )
                    raise UnexpectedStatusError(
                        response.status,
                        context={
                            "service": self.service,
                            "response_text": raw[:200].decode("utf-8", errors="replace"),
                        },
                    )

                log_http_response(
                    status_code=response.status,
                    response_time_ms=response_time_ms,
                    response_size=len(raw),
                    service=self.service,
                    correlation_id=correlation_id,
                )

        except aiohttp.ClientError as e:
            response_time_ms = (time.time() - start_time) * 1000
            error_msg = "Failed to reach webhook"
            log_http_response(
                status_code=0,
                response_time_ms=response_time_ms,
                error=f"{error_msg}: {e}",
                service=self.service,
                correlation_id=correlation_id,
            )
            raise TransportError(
                error_msg,
                context={
                    "url": mask_url(self.url),
                    "error_type": type(e).__name__,
                    "correlation_id": correlation_id,
                },
                original_error=e,
            )
        except asyncio.TimeoutError as e:
            response_time_ms = (time.time() - start_time) * 1000
            error_msg = "Webhook request timed out"
            log_http_response(
                status_code=0,
                response_time_ms=response_time_ms,
                error=error_msg,
                service=self.service,
                correlation_id=correlation_id,
            )
            raise TransportError(
                error_msg,
                context={
                    "timeout": self.timeout,
                    "url": mask_url(self.url),
                    "correlation_id": correlation_id,
                },
                original_error=e,
            )

    async def close(self) -> None:
        """Close the HTTP session."""
        if not self._closed:
            if self.session and not self.session.closed:
                await self.session.close()
            self._closed = True
            self.logger.debug("Webhook client closed", service=self.service)
