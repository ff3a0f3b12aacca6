"""Cancellable fixed-interval refresh for live indicators."""

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable, Optional, Union

_LOGGER = logging.getLogger(__name__)

Tick = Callable[[], Awaitable[object]]
Sleep = Callable[[float], Awaitable[None]]


class PollingController:
	"""Re-invoke one tick at a fixed interval until stopped.

	The first tick fires one interval after ``start()``; the owning page does
	its own initial load. Ticks are serialized: the next interval starts only
	once the current tick has finished, and ``trigger()`` while a tick is in
	flight is skipped. Tick failures are logged and never propagate.
	"""

	def __init__(
		self,
		name: str,
		tick: Tick,
		interval: Union[timedelta, float],
		sleep: Optional[Sleep] = None,
	) -> None:
		self.name = name
		self._tick = tick
		self._interval = interval.total_seconds() if isinstance(interval, timedelta) else float(interval)
		if self._interval <= 0:
			raise ValueError(f"Polling interval must be positive, got {self._interval}")
		self._sleep = sleep or asyncio.sleep
		self._task: Optional[asyncio.Task] = None
		self._in_flight = False
		self.tick_count = 0
		self.failure_count = 0

	@property
	def interval(self) -> float:
		return self._interval

	@property
	def is_running(self) -> bool:
		return self._task is not None and not self._task.done()

	def start(self) -> None:
		"""Schedule the polling loop on the running event loop."""
		if self.is_running:
			return
		_LOGGER.debug(f"Starting poll '{self.name}' every {self._interval:.0f}s")
		self._task = asyncio.get_running_loop().create_task(self._run())

	async def stop(self) -> None:
		"""Cancel the loop and wait until it has fully exited."""
		task = self._task
		self._task = None
		if task is None:
			return
		task.cancel()
		try:
			await task
		except asyncio.CancelledError:
			pass
		_LOGGER.debug(f"Stopped poll '{self.name}' after {self.tick_count} ticks")

	async def trigger(self) -> bool:
		"""Run a tick now unless one is already in flight."""
		if self._in_flight:
			_LOGGER.debug(f"Poll '{self.name}' tick already in flight, skipping trigger")
			return False
		await self._run_tick()
		return True

	async def _run(self) -> None:
		while True:
			await self._sleep(self._interval)
			if self._in_flight:
				continue
			await self._run_tick()

	async def _run_tick(self) -> None:
		self._in_flight = True
		self.tick_count += 1
		try:
			await self._tick()
		except asyncio.CancelledError:
			raise
		except Exception as err:  # pylint: disable=broad-except
			self.failure_count += 1
			_LOGGER.warning(f"Poll '{self.name}' tick failed: {err}")
		finally:
			self._in_flight = False

	async def __aenter__(self) -> "PollingController":
		self.start()
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
		await self.stop()
