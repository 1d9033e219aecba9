"""Scheduled message delivery."""

from wilson_bot.scheduler.cron import CronState, MessageCronJob

__all__ = ["CronState", "MessageCronJob"]
