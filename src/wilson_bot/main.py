"""
Main entry point for Wilson Bot.

This module wires the message store, the sender, the scheduler and the
HTTP API together, runs them until SIGINT or SIGTERM, and shuts them down
in order: API first (draining requests), then the scheduler (awaiting an
in-flight delivery), then the sender's HTTP session.

Any failure while building the components is fatal: the process exits
with status 1 before serving.
"""

import asyncio
import signal
import sys
from dataclasses import dataclass
from typing import Optional

from wilson_bot import __version__
from wilson_bot.api.server import APIServer
from wilson_bot.config import AppConfig, load_config
from wilson_bot.delivery import DeliveryService
from wilson_bot.messages.selection import MessageSelector
from wilson_bot.messages.store import MessageStore
from wilson_bot.providers import MessageSender, create_sender
from wilson_bot.scheduler.cron import MessageCronJob
from wilson_bot.utils.exceptions import WilsonBotError
from wilson_bot.utils.logging import get_logger, setup_logging


@dataclass
class Application:
    """Every long-lived component of a running bot."""

    config: AppConfig
    delivery: DeliveryService
    sender: MessageSender
    cron_job: MessageCronJob
    server: APIServer


def build_application(config: AppConfig) -> Application:
    """
    Create every component from configuration.

    Raises:
        MessageLoadError: If the message set cannot be loaded
        TemplateParseError: If the provider templates are invalid
        ConfigurationError: If the webhook URL or cron schedule is invalid
    """
    logger = get_logger(__name__)

    store = MessageStore.from_file(config.messages.path)
    sender = create_sender(config)
    delivery = DeliveryService(
        store=store,
        selector=MessageSelector(),
        sender=sender,
        sending_enabled=config.http.enable_send,
    )
    cron_job = MessageCronJob(config.cron, delivery)
    server = APIServer(config.http, delivery)

    logger.info("Application built",
                provider=sender.provider,
                messages=len(store),
                sending_enabled=config.http.enable_send,
                cron_enabled=config.cron.enabled)

    return Application(
        config=config,
        delivery=delivery,
        sender=sender,
        cron_job=cron_job,
        server=server,
    )


async def run_application(app: Application) -> None:
    """
    Run the scheduler and the API until a shutdown signal arrives.

    Args:
        app: Built application
    """
    logger = get_logger(__name__)
    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, shutdown_event.set)

    try:
        app.cron_job.start()
        await app.server.start()

        await shutdown_event.wait()
        logger.info("Received shutdown signal")

    finally:
        logger.info("Cleaning up resources")
        try:
            await app.server.stop()
        except Exception as e:
            logger.error("Error during API server shutdown", error=str(e))

        await app.cron_job.stop()
        await app.sender.close()

        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(signum)


async def main_async(config: Optional[AppConfig] = None) -> int:
    """
    Async main function that handles the complete bot lifecycle.

    Returns:
        Process exit code
    """
    try:
        if config is None:
            config = load_config()
    except WilsonBotError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.logging)
    logger = get_logger(__name__)
    logger.info("Wilson Bot starting up", version=__version__)

    try:
        app = build_application(config)
    except WilsonBotError as e:
        logger.error("Failed to start", error_type=type(e).__name__, error=str(e))
        return 1

    try:
        await run_application(app)
    except OSError as e:
        # Typically the port is already in use
        logger.error("Failed to serve", error=str(e))
        return 1

    logger.info("Wilson Bot shutdown complete")
    return 0


def main() -> None:
    """
    Main entry point for Wilson Bot.

    Example:
        Command line usage:
        ```bash
        WILSONBOT__HTTP__ENABLE_SEND=true wilson-bot
        ```
    """
    try:
        sys.exit(asyncio.run(main_async()))
    except KeyboardInterrupt:
        print("\nShutdown requested", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    main()
