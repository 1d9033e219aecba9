"""
Scheduled delivery of random messages.

MessageCronJob registers one APScheduler cron job that runs a delivery
cycle (select random, render, send) on the event loop. A failed cycle is
logged and skipped; the next trigger simply tries again.

Lifecycle::

    DISABLED                      (cron.enabled is false, never schedules)
    IDLE -> RUNNING -> IDLE       (one cycle per trigger)
    IDLE | RUNNING -> STOPPED     (stop(): no further triggers)
"""

import asyncio
from enum import Enum
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from wilson_bot.config import CronConfig
from wilson_bot.delivery import DeliveryService
from wilson_bot.utils.exceptions import ConfigurationError, WilsonBotError
from wilson_bot.utils.logging import get_logger, log_operation_timing


JOB_ID = "send-random-message"


class CronState(str, Enum):
    DISABLED = "disabled"
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class MessageCronJob:
    """
    Sends a random message on a crontab schedule.

    At most one cycle runs at a time: APScheduler is told to keep a single
    instance of the job, and run_once itself skips a trigger while a cycle
    is still in flight.

    Attributes:
        config: Cron settings
        delivery: Delivery service the cycle goes through
        state: Current lifecycle state
    """

    def __init__(self, config: CronConfig, delivery: DeliveryService) -> None:
        """
        Raises:
            ConfigurationError: If the cron string or timezone is invalid
        """
        self.config = config
        self.delivery = delivery
        self.logger = get_logger(__name__)
        self._lock = asyncio.Lock()
        self._current: Optional[asyncio.Task] = None
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._trigger: Optional[CronTrigger] = None

        if not config.enabled:
            self.state = CronState.DISABLED
            return

        try:
            self._trigger = CronTrigger.from_crontab(config.cron_string, timezone=config.timezone)
        except (ValueError, LookupError) as e:
            raise ConfigurationError(
                "Invalid cron schedule",
                context={"cron_string": config.cron_string, "timezone": config.timezone},
                original_error=e,
            )

        self._scheduler = AsyncIOScheduler(timezone=config.timezone)
        self.state = CronState.IDLE

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def start(self) -> None:
        """
        Register the job and start the scheduler. Must be called from a
        running event loop.
        """
        if self.state == CronState.DISABLED:
            self.logger.info("Cron jobs are disabled, not starting scheduler")
            return

        job = self._scheduler.add_job(
            self.run_once,
            trigger=self._trigger,
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()

        self.logger.info("Cron scheduler started",
                         cron_string=self.config.cron_string,
                         timezone=self.config.timezone,
                         job_id=job.id,
                         next_run=str(job.next_run_time))

    async def run_once(self) -> bool:
        """
        Run one delivery cycle.

        Returns:
            True if a message was delivered; False if the cycle failed or was
            skipped because another cycle is in flight
        """
        if self._lock.locked():
            self.logger.warning("Previous delivery still running, skipping trigger")
            return False

        async with self._lock:
            self._current = asyncio.current_task()
            if self.state == CronState.IDLE:
                self.state = CronState.RUNNING
            try:
                with log_operation_timing("scheduled delivery"):
                    message = await self.delivery.deliver()
                self.logger.info("Scheduled message sent successfully",
                                 message_id=message.id)
                return True
            except WilsonBotError as e:
                self.logger.error("Scheduled delivery failed",
                                  error_type=type(e).__name__, error=str(e))
                return False
            except Exception as e:
                self.logger.exception("Unexpected error in scheduled delivery", error=str(e))
                return False
            finally:
                self._current = None
                if self.state == CronState.RUNNING:
                    self.state = CronState.IDLE

    async def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop scheduling and let an in-flight cycle finish.

        Triggers are paused first, then an in-flight delivery is awaited for
        up to ``timeout`` seconds (``cron.shutdown_timeout`` by default) and
        cancelled only if it overruns.
        """
        if self.state in (CronState.DISABLED, CronState.STOPPED):
            return

        timeout = self.config.shutdown_timeout if timeout is None else timeout

        if self._scheduler.running:
            self._scheduler.pause()

        current = self._current
        if current is not None and not current.done():
            self.logger.info("Waiting for in-flight delivery", timeout=timeout)
            try:
                await asyncio.wait_for(asyncio.shield(current), timeout=timeout)
            except asyncio.TimeoutError:
                self.logger.warning("In-flight delivery timed out, cancelling it",
                                    timeout=timeout)
                current.cancel()
                try:
                    await current
                except asyncio.CancelledError:
                    pass

        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

        self.state = CronState.STOPPED
        self.logger.info("Cron scheduler stopped successfully")
