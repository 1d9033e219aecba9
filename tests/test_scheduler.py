"""Tests for the cron scheduler."""

import asyncio

import pytest

from conftest import BlockingSender, RecordingSender
from wilson_bot.config import CronConfig
from wilson_bot.messages.store import MessageStore
from wilson_bot.scheduler.cron import JOB_ID, CronState, MessageCronJob
from wilson_bot.utils.exceptions import ConfigurationError, UnexpectedStatusError


async def test_disabled_job_never_schedules(make_delivery, recording_sender):
    job = MessageCronJob(CronConfig(enabled=False), make_delivery(recording_sender))

    job.start()
    await job.stop()

    assert job.state == CronState.DISABLED
    assert recording_sender.sent == []


@pytest.mark.parametrize("cron_string", ["not a cron", "61 * * * *", "* * *"])
def test_invalid_cron_string_is_fatal(make_delivery, recording_sender, cron_string):
    config = CronConfig(enabled=True, cron_string=cron_string)

    with pytest.raises(ConfigurationError):
        MessageCronJob(config, make_delivery(recording_sender))


def test_invalid_timezone_is_fatal(make_delivery, recording_sender):
    config = CronConfig(enabled=True, timezone="Mars/Olympus_Mons")

    with pytest.raises(ConfigurationError):
        MessageCronJob(config, make_delivery(recording_sender))


async def test_start_registers_single_instance_job(cron_config, make_delivery, recording_sender):
    job = MessageCronJob(cron_config, make_delivery(recording_sender))

    job.start()
    try:
        registered = job._scheduler.get_job(JOB_ID)
        assert registered is not None
        assert registered.max_instances == 1
        assert registered.coalesce is True
        assert job.state == CronState.IDLE
    finally:
        await job.stop()

    assert job.state == CronState.STOPPED


async def test_run_once_sends_random_message(cron_config, make_delivery, recording_sender, sample_messages):
    job = MessageCronJob(cron_config, make_delivery(recording_sender, sending_enabled=False))

    assert await job.run_once() is True
    assert len(recording_sender.sent) == 1
    assert recording_sender.sent[0] in sample_messages
    assert job.state == CronState.IDLE


@pytest.mark.parametrize("error", [
    UnexpectedStatusError(500),
    RuntimeError("unexpected"),
])
async def test_run_once_swallows_failures(cron_config, make_delivery, error):
    job = MessageCronJob(cron_config, make_delivery(RecordingSender(error=error)))

    assert await job.run_once() is False
    # The next trigger still runs
    assert await job.run_once() is False
    assert job.state == CronState.IDLE


async def test_run_once_empty_store_is_logged(cron_config, make_delivery, recording_sender):
    delivery = make_delivery(recording_sender, message_store=MessageStore([]))
    job = MessageCronJob(cron_config, delivery)

    assert await job.run_once() is False


async def test_overlapping_trigger_is_skipped(cron_config, make_delivery):
    sender = BlockingSender()
    job = MessageCronJob(cron_config, make_delivery(sender))

    first = asyncio.create_task(job.run_once())
    await sender.started.wait()
    assert job.state == CronState.RUNNING

    assert await job.run_once() is False

    sender.release()
    assert await first is True
    assert sender.calls == 1


async def test_stop_waits_for_in_flight_delivery(cron_config, make_delivery):
    sender = BlockingSender()
    job = MessageCronJob(cron_config, make_delivery(sender))
    job.start()

    in_flight = asyncio.create_task(job.run_once())
    await sender.started.wait()

    stopping = asyncio.create_task(job.stop(timeout=5.0))
    await asyncio.sleep(0.05)
    assert not stopping.done()

    sender.release()
    await stopping

    assert in_flight.result() is True
    assert len(sender.sent) == 1
    assert job.state == CronState.STOPPED


async def test_stop_cancels_overrunning_delivery(cron_config, make_delivery):
    sender = BlockingSender()
    job = MessageCronJob(cron_config, make_delivery(sender))

    in_flight = asyncio.create_task(job.run_once())
    await sender.started.wait()

    await job.stop(timeout=0.05)

    assert in_flight.cancelled()
    assert sender.sent == []
    assert job.state == CronState.STOPPED
