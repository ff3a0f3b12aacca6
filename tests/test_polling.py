#!/usr/bin/env python3
"""Polling controller driven by a fake clock."""

import asyncio
from datetime import timedelta

import pytest

from ucc_clinic.polling import PollingController


def test_ticks_once_per_interval_and_never_after_stop(clock):
	async def scenario():
		ticks = []

		async def tick():
			ticks.append(clock.now)

		poll = PollingController("badge", tick, timedelta(seconds=30), sleep=clock.sleep)
		poll.start()
		await clock.advance(29)
		assert ticks == []
		await clock.advance(61)
		assert ticks == [30, 60, 90]
		await poll.stop()
		await clock.advance(300)
		return ticks, poll

	ticks, poll = asyncio.run(scenario())
	assert ticks == [30, 60, 90]
	assert poll.tick_count == 3
	assert not poll.is_running


def test_failing_tick_does_not_stop_polling(clock):
	async def scenario():
		async def tick():
			raise RuntimeError("backend hiccup")

		poll = PollingController("flaky", tick, 5, sleep=clock.sleep)
		async with poll:
			await clock.advance(15)
		return poll

	poll = asyncio.run(scenario())
	assert poll.tick_count == 3
	assert poll.failure_count == 3


def test_slow_tick_is_never_overlapped(clock):
	async def scenario():
		release = asyncio.get_running_loop().create_future()
		active = []
		overlaps = []

		async def tick():
			if active:
				overlaps.append(clock.now)
			active.append(True)
			if not release.done():
				await release
			active.pop()

		poll = PollingController("slow", tick, 10, sleep=clock.sleep)
		poll.start()
		await clock.advance(10)
		triggered = await poll.trigger()
		await clock.advance(50)
		release.set_result(None)
		await clock.advance(10)
		await poll.stop()
		return poll, triggered, overlaps

	poll, triggered, overlaps = asyncio.run(scenario())
	assert triggered is False
	assert overlaps == []
	assert poll.tick_count == 2


def test_stop_before_start_is_harmless():
	async def scenario():
		async def tick():
			pass

		poll = PollingController("idle", tick, 1)
		await poll.stop()
		return poll

	assert asyncio.run(scenario()).tick_count == 0


def test_interval_must_be_positive():
	async def tick():
		pass

	with pytest.raises(ValueError):
		PollingController("bad", tick, 0)
